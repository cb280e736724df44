from __future__ import annotations
from pathlib import Path
from typing import Iterable, Optional
import logging

import pretty_midi

from sheetnotes.audio.synth import note_seconds
from sheetnotes.state import Note, SheetMusic

logger = logging.getLogger(__name__)


def midi_number(pitch: str) -> Optional[int]:
    """MIDI number for "C#4" / "DB4" style spellings, None if it can't be read."""
    p = str(pitch).strip()
    if len(p) >= 3 and p[1] == "B" and p[0] in "CDEFGAB":
        # uppercase flat ("DB4") -> "Db4"
        p = p[0] + "b" + p[2:]
    try:
        return int(pretty_midi.note_name_to_number(p))
    except (ValueError, KeyError, AttributeError):
        return None


def _time_signature(text: str) -> Optional[pretty_midi.TimeSignature]:
    try:
        num, den = (int(x) for x in str(text).split("/", 1))
    except ValueError:
        return None
    if num <= 0 or den <= 0:
        return None
    return pretty_midi.TimeSignature(num, den, 0.0)


def write_midi(
    notes: Iterable[Note],
    out_path: Path,
    tempo_bpm: float = 120.0,
    time_signature: str = "4/4",
    program: int = 0,
) -> int:
    """
    Writes a single-track MIDI file and returns how many notes went in.
    program: General MIDI program number (0 = Acoustic Grand Piano)
    """
    tempo = float(tempo_bpm) if tempo_bpm and tempo_bpm > 0 else 120.0
    pm = pretty_midi.PrettyMIDI(initial_tempo=tempo)
    ts = _time_signature(time_signature)
    if ts is not None:
        pm.time_signature_changes.append(ts)
    inst = pretty_midi.Instrument(program=program)

    for n in notes:
        pitch = midi_number(n.pitch)
        if pitch is None:
            logger.info("Skipping unknown pitch %r in MIDI export", n.pitch)
            continue
        start = max(0.0, float(n.time))
        end = start + max(0.001, note_seconds(n.duration, tempo))
        vel = int(max(1, min(127, n.velocity or 80)))
        inst.notes.append(pretty_midi.Note(velocity=vel, pitch=int(max(0, min(127, pitch))), start=start, end=end))

    pm.instruments.append(inst)
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    pm.write(str(out_path))
    return len(inst.notes)


def write_sheet_midi(sheet: SheetMusic, out_path: Path) -> int:
    return write_midi(sheet.notes, out_path, tempo_bpm=sheet.tempo, time_signature=sheet.time_signature)
