from __future__ import annotations

import io
import wave
from pathlib import Path

import numpy as np

from sheetnotes.audio.synth import MonoPCM

HEADER_BYTES = 44


def pcm16(samples: np.ndarray) -> bytes:
    """Clamp to [-1, 1] and scale asymmetrically to little-endian int16."""
    x = np.clip(np.asarray(samples, dtype=np.float64), -1.0, 1.0)
    scaled = np.where(x < 0, x * 32768.0, x * 32767.0)
    return np.trunc(scaled).astype("<i2").tobytes()


def encode(pcm: MonoPCM) -> bytes:
    """Mono 16-bit RIFF/WAVE bytes (44-byte header + samples)."""
    out = io.BytesIO()
    with wave.open(out, "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(int(pcm.sample_rate))
        wf.writeframes(pcm16(pcm.samples))
    return out.getvalue()


def write_wav(pcm: MonoPCM, out_path: Path) -> Path:
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(encode(pcm))
    return out_path
