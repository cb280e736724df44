"""
Tests for splitting notes into pages and measures.
"""

from conftest import make_note
from sheetnotes.notation.paginate import (
    MEASURES_PER_PAGE,
    NOTES_PER_PAGE,
    clamp_page,
    measures,
    page,
    page_bounds,
    page_count,
)


def _notes(n):
    return [make_note(time=i * 0.25) for i in range(n)]


class TestPages:
    def test_thirty_three_notes(self):
        notes = _notes(33)
        assert page_count(notes) == 2
        assert len(page(notes, 0)) == 32
        assert page(notes, 1) == [notes[32]]

    def test_pages_cover_every_note_once(self):
        notes = _notes(100)
        joined = []
        for i in range(page_count(notes)):
            joined.extend(page(notes, i))
        assert joined == notes

    def test_empty(self):
        assert page_count([]) == 0
        assert page([], 0) == []
        assert page_bounds([], 0) == (0, 0)

    def test_out_of_range_page_is_empty(self):
        assert page(_notes(5), 3) == []

    def test_negative_page_index_clamps(self):
        notes = _notes(5)
        assert page(notes, -1) == notes

    def test_bounds(self):
        notes = _notes(33)
        assert page_bounds(notes, 0) == (1, 32)
        assert page_bounds(notes, 1) == (33, 33)

    def test_clamp_page(self):
        assert clamp_page(5, 2) == 1
        assert clamp_page(-3, 2) == 0
        assert clamp_page(4, 0) == 0


class TestMeasures:
    def test_full_page_is_eight_measures_of_four(self):
        groups = measures(_notes(NOTES_PER_PAGE))
        assert len(groups) == MEASURES_PER_PAGE
        assert all(len(g) == 4 for g in groups)

    def test_partial_last_measure(self):
        groups = measures(_notes(6))
        assert [len(g) for g in groups] == [4, 2]

    def test_overflow_gets_no_measure(self):
        assert len(measures(_notes(40))) == MEASURES_PER_PAGE

    def test_deterministic(self):
        notes = _notes(13)
        assert measures(notes) == measures(notes)

    def test_empty(self):
        assert measures([]) == []
