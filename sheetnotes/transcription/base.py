from __future__ import annotations
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict


class Transcriber(ABC):
    @abstractmethod
    def transcribe(self, audio_path: Path) -> Dict[str, Any]:
        """Return the raw transcription document (see sheetnotes.transcription.validate)."""
        raise NotImplementedError
