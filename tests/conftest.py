from __future__ import annotations

from typing import Any, Dict, Optional

import pytest

from sheetnotes.state import Note


def make_note(pitch: str = "C4", time: float = 0.0, duration: str = "q",
              velocity: Optional[int] = 80, confidence: float = 0.9) -> Note:
    return Note(pitch=pitch, duration=duration, time=time, confidence=confidence, velocity=velocity)


@pytest.fixture
def raw_doc() -> Dict[str, Any]:
    return {
        "title": "Little Tune",
        "timeSignature": "4/4",
        "keySignature": "G",
        "tempo": 96,
        "duration": 12,
        "notes": [
            {"pitch": "e4", "duration": "q", "time": 0.5, "confidence": 0.92, "velocity": 75},
            {"pitch": "C4", "duration": "quarter", "time": 0.0, "confidence": 0.95, "velocity": 80},
            {"pitch": "G4", "duration": "h", "time": 1.0, "confidence": 0.4, "velocity": 70},
        ],
        "analysis": {"instrument": "piano", "keyDetected": "G major", "tempoDetected": 96},
    }
