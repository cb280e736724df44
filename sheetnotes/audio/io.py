from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple
import logging
import mimetypes

import numpy as np
import soundfile as sf

logger = logging.getLogger(__name__)

AUDIO_EXTS = {".mp3", ".wav", ".ogg", ".flac", ".m4a", ".aac"}

_MIME_OVERRIDES = {
    ".m4a": "audio/mp4",
    ".aac": "audio/aac",
    ".flac": "audio/flac",
    ".ogg": "audio/ogg",
    ".wav": "audio/wav",
    ".mp3": "audio/mpeg",
}


class UploadError(ValueError):
    pass


@dataclass(frozen=True)
class AudioInfo:
    sample_rate: int
    frames: int
    channels: int

    @property
    def duration_sec(self) -> float:
        return self.frames / float(self.sample_rate) if self.sample_rate else 0.0


def check_upload(input_path: Path, max_mb: float = 10) -> Path:
    """
    Make sure the selected file exists, looks like audio and is within the size limit.
    """
    p = Path(input_path)
    if not p.exists():
        raise UploadError(f"File not found: {p}")
    if p.suffix.lower() not in AUDIO_EXTS:
        raise UploadError(
            "Invalid file type. Please choose an audio file (MP3, WAV, OGG, FLAC, M4A)."
        )
    size_mb = p.stat().st_size / (1024 * 1024)
    if max_mb and size_mb > max_mb:
        raise UploadError(f"File is {size_mb:.2f} MB; the maximum is {max_mb:g} MB.")
    return p


def mime_type_for(input_path: Path) -> str:
    ext = Path(input_path).suffix.lower()
    if ext in _MIME_OVERRIDES:
        return _MIME_OVERRIDES[ext]
    guessed, _ = mimetypes.guess_type(str(input_path))
    return guessed or "audio/mpeg"


def probe_audio(input_path: Path) -> Optional[AudioInfo]:
    """
    Sample rate / length of an audio file, or None when libsndfile can't read it
    (e.g. m4a). Transcription doesn't need it, so failures are only logged.
    """
    try:
        info = sf.info(str(input_path))
    except Exception as e:
        logger.warning("Could not probe %s: %s", input_path, e)
        return None
    return AudioInfo(sample_rate=int(info.samplerate), frames=int(info.frames), channels=int(info.channels))


def load_audio_mono(input_path: Path) -> Tuple[np.ndarray, int]:
    """
    Load audio into mono float32, clipped to [-1, 1].
    """
    audio, sr = sf.read(str(input_path), dtype="float32", always_2d=False)
    if isinstance(audio, np.ndarray) and audio.ndim > 1:
        audio = audio.mean(axis=1).astype(np.float32)
    audio = np.asarray(audio, dtype=np.float32)
    audio = np.clip(audio, -1.0, 1.0)
    return audio, sr


def waveform_points(audio: np.ndarray, max_points: int = 2000) -> np.ndarray:
    """Decimated copy of the signal for drawing."""
    n = int(audio.shape[0])
    if n == 0:
        return np.zeros(0, dtype=np.float32)
    step = max(1, n // max_points)
    return np.asarray(audio[::step], dtype=np.float32)
