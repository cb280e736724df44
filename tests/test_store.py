"""
Tests for the session's sheet music container.
"""

import dataclasses

import pytest

from conftest import make_note
from sheetnotes.state import SheetMusic, SheetMusicStore


def _sheet(title="One"):
    return SheetMusic(title=title, notes=(make_note("C4"),))


class TestSheetMusicStore:
    def test_starts_empty(self):
        store = SheetMusicStore()
        assert store.sheet is None
        assert store.is_loading is False

    def test_set_sheet_notifies_and_clears_loading(self):
        store = SheetMusicStore()
        seen = []
        store.subscribe(seen.append)
        store.set_loading(True)
        sheet = _sheet()
        store.set_sheet(sheet)
        assert store.sheet is sheet
        assert store.is_loading is False
        assert seen == [sheet]

    def test_replace_keeps_old_snapshot_intact(self):
        store = SheetMusicStore()
        first = _sheet("First")
        store.set_sheet(first)
        held = store.sheet
        store.set_sheet(_sheet("Second"))
        assert held.title == "First"
        assert store.sheet.title == "Second"

    def test_snapshot_is_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            _sheet().title = "changed"

    def test_clear_and_unsubscribe(self):
        store = SheetMusicStore()
        seen = []
        unsubscribe = store.subscribe(seen.append)
        store.set_sheet(_sheet())
        store.clear()
        unsubscribe()
        store.set_sheet(_sheet())
        assert seen[1] is None
        assert len(seen) == 2


class TestSheetMusicPayload:
    def test_camel_case_keys(self):
        doc = _sheet().to_payload()
        assert doc["timeSignature"] == "4/4"
        assert doc["analysis"]["keyDetected"] == "unknown"
        assert doc["notes"][0]["pitch"] == "C4"
        assert "modelUsed" not in doc

    def test_with_processing_info_merges(self):
        sheet = _sheet().with_processing_info(a=1).with_processing_info(b=2)
        assert sheet.processing_info == {"a": 1, "b": 2}
        assert sheet.to_payload()["processingInfo"] == {"a": 1, "b": 2}
