from __future__ import annotations

import math
from typing import List, Sequence, TypeVar

T = TypeVar("T")

NOTES_PER_PAGE = 32
NOTES_PER_MEASURE = 4
MEASURES_PER_ROW = 4
ROWS_PER_PAGE = 2
MEASURES_PER_PAGE = MEASURES_PER_ROW * ROWS_PER_PAGE


def page_count(notes: Sequence[T]) -> int:
    return math.ceil(len(notes) / NOTES_PER_PAGE)


def clamp_page(page_index: int, count: int) -> int:
    if count <= 0:
        return 0
    return max(0, min(int(page_index), count - 1))


def page(notes: Sequence[T], page_index: int) -> List[T]:
    start = max(0, int(page_index)) * NOTES_PER_PAGE
    return list(notes[start:start + NOTES_PER_PAGE])


def page_bounds(notes: Sequence[T], page_index: int) -> tuple:
    """(first, last) 1-based note numbers shown on a page, (0, 0) when empty."""
    start = max(0, int(page_index)) * NOTES_PER_PAGE
    end = min(start + NOTES_PER_PAGE, len(notes))
    if end <= start:
        return 0, 0
    return start + 1, end


def measures(page_notes: Sequence[T]) -> List[List[T]]:
    """
    Chunk a page into measures of NOTES_PER_MEASURE notes, stopping after
    MEASURES_PER_PAGE groups. Overflow notes get no measure of their own.
    """
    groups: List[List[T]] = []
    i = 0
    while i < len(page_notes) and len(groups) < MEASURES_PER_PAGE:
        groups.append(list(page_notes[i:i + NOTES_PER_MEASURE]))
        i += NOTES_PER_MEASURE
    return groups
