from __future__ import annotations

from typing import Dict, List, Optional, Tuple

AI_STUDIO_URL = "https://aistudio.google.com/app/apikey"

QUOTA_EXCEEDED = "quota_exceeded"
MODEL_UNAVAILABLE = "model_unavailable"
INVALID_KEY = "invalid_key"
MISSING_KEY = "missing_key"
NETWORK_ERROR = "network_error"
GENERAL_ERROR = "general_error"

_GUIDANCE: Dict[str, Tuple[str, str, List[str]]] = {
    QUOTA_EXCEEDED: (
        "API quota exceeded",
        "You've reached your Google AI API usage limit. Please wait for quota reset or upgrade your plan.",
        [
            "Wait for your quota to reset (usually daily)",
            f"Check usage at {AI_STUDIO_URL}",
            "Consider upgrading to a paid plan",
            "Try again tomorrow",
        ],
    ),
    MODEL_UNAVAILABLE: (
        "Model not available",
        "The requested Gemini model may not be available in your region or with your API key.",
        [
            "Check if you have access to Gemini 2.5 Pro models",
            "Verify your API key has the necessary permissions",
            "Try again later as the model may be temporarily unavailable",
            "Check Google AI Studio for model availability",
        ],
    ),
    INVALID_KEY: (
        "Invalid Google AI API key",
        "Please check your GOOGLE_AI_API_KEY environment variable.",
        [
            "Check that your API key is correct",
            "Ensure there are no extra spaces or characters",
            f"Verify the key is enabled at {AI_STUDIO_URL}",
        ],
    ),
    MISSING_KEY: (
        "Google AI API key not configured",
        "The GOOGLE_AI_API_KEY environment variable is not set.",
        [
            f"Get your API key from {AI_STUDIO_URL}",
            "Set GOOGLE_AI_API_KEY=your_actual_api_key_here in your environment",
            "No spaces around the = sign and no quotes around the key",
            "Restart SheetNotes completely",
        ],
    ),
    NETWORK_ERROR: (
        "Network error",
        "Unable to connect to Google AI services.",
        [
            "Check your internet connection",
            "Try again in a few moments",
            "Verify Google AI services are accessible",
        ],
    ),
    GENERAL_ERROR: (
        "Failed to analyze audio",
        "Unknown error occurred",
        [],
    ),
}


class TranscriptionError(RuntimeError):
    """A failed call to the transcription service, with remediation text for the user."""

    def __init__(
        self,
        kind: str,
        details: str = "",
        *,
        status: Optional[int] = None,
        title: Optional[str] = None,
        suggestions: Optional[List[str]] = None,
    ) -> None:
        default_title, default_details, default_suggestions = _GUIDANCE.get(kind, _GUIDANCE[GENERAL_ERROR])
        self.kind = kind
        self.title = title or default_title
        self.details = details or default_details
        self.status = status
        self.suggestions = list(default_suggestions if suggestions is None else suggestions)
        super().__init__(f"{self.title}: {self.details}")

    def user_message(self) -> str:
        lines = [self.details]
        if self.suggestions:
            lines.append("")
            lines.extend(f"• {s}" for s in self.suggestions)
        return "\n".join(lines)


def classify_error(message: str, status: Optional[int] = None) -> TranscriptionError:
    """
    Map an upstream failure (HTTP status and/or message text) to a TranscriptionError.
    """
    msg = message or ""
    low = msg.lower()

    if status == 429 or "quota" in low:
        kind = QUOTA_EXCEEDED
    elif status == 404 or "pattern" in low or "model" in low:
        kind = MODEL_UNAVAILABLE
    elif status in (401, 403) or "API_KEY" in msg or "key" in low:
        kind = INVALID_KEY
    elif "network" in low:
        kind = NETWORK_ERROR
    else:
        return TranscriptionError(GENERAL_ERROR, msg or "Unknown error occurred", status=status)

    _, default_details, _ = _GUIDANCE[kind]
    details = default_details if not msg else f"{default_details} ({msg})"
    return TranscriptionError(kind, details, status=status)
