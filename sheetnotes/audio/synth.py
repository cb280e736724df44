from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, Optional, Sequence

import numpy as np

from sheetnotes.state import Note

logger = logging.getLogger(__name__)

FALLBACK_HZ = 440.0
REFERENCE_BPM = 120.0
DEFAULT_SAMPLE_RATE = 44100
DEFAULT_GAIN = 0.8
DECAY_RATE = 2.0
MASTER_GAIN = 0.3
# longest buffer a single page may render to
MAX_RENDER_SECONDS = 600.0

NOTE_FREQUENCIES: Dict[str, float] = {
    "C3": 130.81, "C#3": 138.59, "D3": 146.83, "D#3": 155.56, "E3": 164.81, "F3": 174.61,
    "F#3": 185.0, "G3": 196.0, "G#3": 207.65, "A3": 220.0, "A#3": 233.08, "B3": 246.94,
    "C4": 261.63, "C#4": 277.18, "D4": 293.66, "D#4": 311.13, "E4": 329.63, "F4": 349.23,
    "F#4": 369.99, "G4": 392.0, "G#4": 415.3, "A4": 440.0, "A#4": 466.16, "B4": 493.88,
    "C5": 523.25, "C#5": 554.37, "D5": 587.33, "D#5": 622.25, "E5": 659.25, "F5": 698.46,
    "F#5": 739.99, "G5": 783.99, "G#5": 830.61, "A5": 880.0, "A#5": 932.33, "B5": 987.77,
}

_FLAT_OF = {"C#": "DB", "D#": "EB", "F#": "GB", "G#": "AB", "A#": "BB"}

# flat spellings alias the sharp entry ("DB4" == "C#4")
NOTE_FREQUENCIES.update({
    f"{_FLAT_OF[pitch[:2]]}{pitch[2:]}": hz
    for pitch, hz in list(NOTE_FREQUENCIES.items())
    if pitch[:2] in _FLAT_OF
})

# seconds at REFERENCE_BPM
DURATION_SECONDS: Dict[str, float] = {
    "w": 1.6,
    "h": 0.8,
    "q": 0.4,
    "e": 0.2,
    "s": 0.1,
}


@dataclass(frozen=True)
class MonoPCM:
    samples: np.ndarray  # float32, one channel
    sample_rate: int

    def __len__(self) -> int:
        return int(self.samples.shape[0])

    @property
    def duration_sec(self) -> float:
        return len(self) / float(self.sample_rate) if self.sample_rate else 0.0


def frequency_for(pitch: str) -> float:
    hz = NOTE_FREQUENCIES.get(str(pitch).strip().upper())
    if hz is None:
        logger.info("Unknown pitch %r, using %.0f Hz", pitch, FALLBACK_HZ)
        return FALLBACK_HZ
    return hz


def note_seconds(duration: str, tempo_bpm: float) -> float:
    return DURATION_SECONDS.get(duration, DURATION_SECONDS["q"]) * (REFERENCE_BPM / tempo_bpm)


def _gain(velocity: Optional[int]) -> float:
    return velocity / 127.0 if velocity else DEFAULT_GAIN


def synthesize(
    page_notes: Sequence[Note],
    tempo_bpm: float = REFERENCE_BPM,
    sample_rate: int = DEFAULT_SAMPLE_RATE,
) -> MonoPCM:
    """
    Additive sine rendering of a page of notes.

    Each note adds sin(2*pi*f*t) * gain * exp(-2t) * 0.3 over its window,
    where t restarts at 0 on the note's first sample. Overlapping notes sum
    and nothing is normalized afterwards, so loud chords can exceed [-1, 1];
    the WAV encoder clamps.

    The buffer never extends past MAX_RENDER_SECONDS: notes starting later
    are skipped, notes running over it are cut.
    """
    sr = int(sample_rate)
    sr = DEFAULT_SAMPLE_RATE if sr <= 0 else sr
    tempo = float(tempo_bpm) if tempo_bpm and tempo_bpm > 0 else REFERENCE_BPM

    spans = []
    for n in page_notes:
        st = float(n.time)
        if not (0.0 <= st < MAX_RENDER_SECONDS):
            logger.warning("Skipping %s at %.3fs, outside the %.0fs render window", n.pitch, st, MAX_RENDER_SECONDS)
            continue
        spans.append((n, st, note_seconds(n.duration, tempo)))

    if not spans:
        return MonoPCM(np.zeros(0, dtype=np.float32), sr)

    end_time = min(max(st + dur for _, st, dur in spans), MAX_RENDER_SECONDS)
    total = max(0, int(math.ceil(round(sr * end_time, 6))))
    buf = np.zeros(total, dtype=np.float32)

    for n, st, dur in spans:
        start = int(math.floor(st * sr))
        stop = min(int(math.floor((st + dur) * sr)), total)
        if stop <= start:
            continue
        hz = frequency_for(n.pitch)
        t = np.arange(stop - start, dtype=np.float64) / sr
        buf[start:stop] += np.sin(2.0 * math.pi * hz * t) * (_gain(n.velocity) * np.exp(-DECAY_RATE * t)) * MASTER_GAIN

    return MonoPCM(buf, sr)


def reference_tone(sample_rate: int = DEFAULT_SAMPLE_RATE, seconds: float = 2.0, hz: float = 440.0, amp: float = 0.5) -> MonoPCM:
    """Plain sine for checking that the audio device works."""
    sr = DEFAULT_SAMPLE_RATE if int(sample_rate) <= 0 else int(sample_rate)
    n = int(sr * seconds)
    t = np.arange(n, dtype=np.float64) / sr
    return MonoPCM((np.sin(2.0 * math.pi * hz * t) * amp).astype(np.float32), sr)
