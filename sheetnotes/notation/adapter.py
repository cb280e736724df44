from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from sheetnotes.notation.paginate import NOTES_PER_MEASURE, measures
from sheetnotes.state import Note

logger = logging.getLogger(__name__)

_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

# "C#4" -> "c#/4", C3..B5
ENGRAVING_KEYS: Dict[str, str] = {
    f"{name}{octave}": f"{name.lower()}/{octave}"
    for octave in (3, 4, 5)
    for name in _NAMES
}

REST_KEY = "b/4"


@dataclass(frozen=True)
class Tickable:
    """One quarter-note slot of a 4/4 measure: a note or a rest."""
    keys: Tuple[str, ...]
    duration: str = "q"
    accidental: Optional[str] = None

    @property
    def is_rest(self) -> bool:
        return self.duration.endswith("r")

    @property
    def duration_class(self) -> str:
        return "quarter"

    @property
    def letter(self) -> str:
        return self.keys[0].split("/")[0][0]

    @property
    def octave(self) -> int:
        return int(self.keys[0].split("/")[1])


def quarter_rest() -> Tickable:
    return Tickable(keys=(REST_KEY,), duration="qr")


def _rests(count: int = NOTES_PER_MEASURE) -> List[Tickable]:
    return [quarter_rest() for _ in range(count)]


def _to_tickable(note: Note) -> Optional[Tickable]:
    key = ENGRAVING_KEYS.get(note.pitch)
    if key is None:
        return None
    accidental = "#" if "#" in note.pitch else None
    return Tickable(keys=(key,), duration="q", accidental=accidental)


def to_engraveable(measure_notes: Sequence[Note]) -> List[Tickable]:
    """
    Always exactly NOTES_PER_MEASURE quarter tickables. Unmapped pitches are
    skipped, extra notes are cut, empty slots become rests.
    """
    try:
        ticks: List[Tickable] = []
        for note in measure_notes:
            if len(ticks) >= NOTES_PER_MEASURE:
                break
            t = _to_tickable(note)
            if t is None:
                logger.debug("No staff position for pitch %r, skipped", getattr(note, "pitch", None))
                continue
            ticks.append(t)
        ticks.extend(_rests(NOTES_PER_MEASURE - len(ticks)))
        return ticks
    except Exception:
        logger.exception("Failed to convert measure, drawing rests instead")
        return _rests()


def engrave_page(page_notes: Sequence[Note]) -> List[List[Tickable]]:
    return [to_engraveable(m) for m in measures(page_notes)]
