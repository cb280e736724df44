"""
Tests for classifying upstream failures into user-facing errors.
"""

import pytest

from sheetnotes.transcription.errors import (
    GENERAL_ERROR,
    INVALID_KEY,
    MISSING_KEY,
    MODEL_UNAVAILABLE,
    NETWORK_ERROR,
    QUOTA_EXCEEDED,
    TranscriptionError,
    classify_error,
)


class TestClassifyError:
    @pytest.mark.parametrize(
        "message,status,kind",
        [
            ("Resource has been exhausted", 429, QUOTA_EXCEEDED),
            ("You exceeded your current quota", None, QUOTA_EXCEEDED),
            ("models/foo is not found", 404, MODEL_UNAVAILABLE),
            ("did not match the expected pattern", None, MODEL_UNAVAILABLE),
            ("Permission denied", 403, INVALID_KEY),
            ("API_KEY_INVALID", 400, INVALID_KEY),
            ("network unreachable", None, NETWORK_ERROR),
            ("Internal error", 500, GENERAL_ERROR),
        ],
    )
    def test_kinds(self, message, status, kind):
        assert classify_error(message, status).kind == kind

    def test_quota_wins_over_model(self):
        assert classify_error("quota exceeded for model x").kind == QUOTA_EXCEEDED

    def test_details_keep_upstream_message(self):
        err = classify_error("quota exceeded", 429)
        assert "(quota exceeded)" in err.details
        assert err.status == 429
        assert err.suggestions

    def test_general_uses_message(self):
        err = classify_error("boom")
        assert err.title == "Failed to analyze audio"
        assert err.details == "boom"
        assert err.suggestions == []

    def test_empty_message(self):
        assert classify_error("").details == "Unknown error occurred"


class TestTranscriptionError:
    def test_missing_key_guidance(self):
        err = TranscriptionError(MISSING_KEY)
        assert "GOOGLE_AI_API_KEY" in err.details
        text = err.user_message()
        assert text.startswith(err.details)
        assert "• Restart SheetNotes completely" in text

    def test_is_runtime_error(self):
        with pytest.raises(RuntimeError):
            raise TranscriptionError(NETWORK_ERROR)

    def test_unknown_kind_uses_general_text(self):
        assert TranscriptionError("weird").title == "Failed to analyze audio"
