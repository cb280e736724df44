"""
Tests for decoding untrusted transcription documents into SheetMusic.
"""

from sheetnotes.state import Settings
from sheetnotes.transcription.validate import (
    RawDocument,
    RawNote,
    count_raw_notes,
    normalize_duration,
    sheet_music_from_payload,
    validate_notes,
)


class TestValidateNotes:
    """Filtering, normalization, ordering and the note cap."""

    def test_sorted_by_time_and_low_confidence_dropped(self, raw_doc):
        notes = validate_notes(raw_doc["notes"])
        assert [n.pitch for n in notes] == ["C4", "E4"]
        assert [n.time for n in notes] == [0.0, 0.5]

    def test_defaults_filled(self):
        notes = validate_notes([{"pitch": "D4", "time": 1}])
        assert len(notes) == 1
        n = notes[0]
        assert n.duration == "q"
        assert n.confidence == 0.8
        assert n.velocity == 80

    def test_missing_pitch_or_time_dropped(self):
        raw = [{"time": 0.1}, {"pitch": "", "time": 0.2}, {"pitch": "A4"}, {"pitch": "B4", "time": 0.3}]
        assert [n.pitch for n in validate_notes(raw)] == ["B4"]

    def test_null_or_unparseable_confidence_dropped(self):
        raw = [
            {"pitch": "C4", "time": 0, "confidence": "very"},
            {"pitch": "D4", "time": 1, "confidence": None},
            {"pitch": "E4", "time": 2},
        ]
        assert [n.pitch for n in validate_notes(raw)] == ["E4"]

    def test_null_time_kept_at_zero(self):
        notes = validate_notes([{"pitch": "C4", "time": None, "confidence": 0.9}])
        assert len(notes) == 1
        assert notes[0].time == 0.0

    def test_cap_at_max_notes(self):
        raw = [{"pitch": "C4", "time": i * 0.1} for i in range(200)]
        notes = validate_notes(raw)
        assert len(notes) == 150
        assert notes[-1].time == raw[149]["time"]

    def test_custom_cap(self):
        raw = [{"pitch": "C4", "time": i} for i in range(10)]
        assert len(validate_notes(raw, Settings(max_notes=3))) == 3

    def test_stable_sort_for_equal_times(self):
        raw = [{"pitch": "E4", "time": 1}, {"pitch": "C4", "time": 1}, {"pitch": "G4", "time": 0}]
        assert [n.pitch for n in validate_notes(raw)] == ["G4", "E4", "C4"]

    def test_velocity_clamped_and_rounded(self):
        raw = [{"pitch": "C4", "time": 0, "velocity": 300}, {"pitch": "D4", "time": 1, "velocity": 64.6}]
        assert [n.velocity for n in validate_notes(raw)] == [127, 65]

    def test_negative_time_clamped(self):
        assert validate_notes([{"pitch": "C4", "time": -2}])[0].time == 0.0

    def test_non_list_yields_nothing(self):
        assert validate_notes(None) == []
        assert validate_notes({"pitch": "C4"}) == []
        assert validate_notes("C4 D4") == []

    def test_non_mapping_entries_skipped(self):
        assert [n.pitch for n in validate_notes([1, "x", None, {"pitch": "F4", "time": 0}])] == ["F4"]

    def test_idempotent_on_normalized_input(self, raw_doc):
        once = validate_notes(raw_doc["notes"])
        twice = validate_notes([n.to_payload() for n in once])
        assert twice == once


class TestNormalizeDuration:
    def test_codes_and_names(self):
        assert normalize_duration("h") == "h"
        assert normalize_duration("Whole") == "w"
        assert normalize_duration("sixteenth") == "s"

    def test_unknown_is_quarter(self):
        assert normalize_duration("dotted-half") == "q"
        assert normalize_duration(4) == "q"


class TestSheetMusicFromPayload:
    """Document-level defaults."""

    def test_fields_decoded(self, raw_doc):
        sheet = sheet_music_from_payload(raw_doc, sample_rate=48000)
        assert sheet.title == "Little Tune"
        assert sheet.key_signature == "G"
        assert sheet.tempo == 96
        assert sheet.sample_rate == 48000
        assert sheet.analysis.instrument == "piano"
        assert sheet.analysis.complexity == "moderate"
        assert len(sheet.notes) == 2

    def test_garbage_gets_defaults(self):
        sheet = sheet_music_from_payload("not a document")
        assert sheet.title == "Audio Analysis"
        assert sheet.time_signature == "4/4"
        assert sheet.tempo == 120.0
        assert sheet.notes == ()

    def test_bad_tempo_falls_back(self):
        for bad in (0, -10, "fast", float("nan"), None):
            assert sheet_music_from_payload({"tempo": bad}).tempo == 120.0

    def test_payload_round_trip_is_stable(self, raw_doc):
        sheet = sheet_music_from_payload(raw_doc)
        again = sheet_music_from_payload(sheet.to_payload())
        assert again == sheet

    def test_processing_info_and_model_passed_through(self):
        sheet = sheet_music_from_payload({"modelUsed": "m1", "processingInfo": {"originalNotesCount": 3}})
        assert sheet.model_used == "m1"
        assert sheet.processing_info["originalNotesCount"] == 3

    def test_count_raw_notes(self, raw_doc):
        assert count_raw_notes(raw_doc) == 3
        assert count_raw_notes({"notes": "x"}) == 0
        assert count_raw_notes(None) == 0


class TestRawModels:
    """The pydantic boundary models coerce instead of raising."""

    def test_bad_values_become_defaults(self):
        doc = RawDocument.model_validate({
            "title": 42,
            "keySignature": "",
            "tempo": "fast",
            "duration": -1,
            "notes": [{"pitch": "c4", "time": "abc", "velocity": "loud", "extra": True}, "junk"],
            "analysis": ["not", "a", "dict"],
            "processingInfo": "none",
            "somethingNew": {"ignored": True},
        })
        assert doc.title == "42"
        assert doc.keySignature == "C"
        assert doc.tempo is None
        assert doc.duration == 30.0
        assert len(doc.notes) == 1
        assert doc.notes[0].pitch == "C4"
        assert doc.notes[0].time == 0.0
        assert doc.notes[0].velocity == 80
        assert doc.analysis.instrument == "unknown"
        assert doc.processingInfo == {}

    def test_note_usable(self):
        assert RawNote.model_validate({"pitch": "C4", "time": 1}).usable(0.7)
        assert not RawNote.model_validate({"pitch": "C4"}).usable(0.7)
        assert not RawNote.model_validate({"pitch": "C4", "time": 0, "confidence": 0.5}).usable(0.7)
        assert not RawNote.model_validate({"pitch": "C4", "time": 0, "confidence": None}).usable(0.7)
