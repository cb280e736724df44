from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional, Tuple


@dataclass
class Settings:
    sample_rate: int = 44100
    default_tempo: float = 120.0
    confidence_threshold: float = 0.7
    max_notes: int = 150
    playback_volume: float = 0.7
    max_upload_mb: int = 10


@dataclass(frozen=True)
class Note:
    pitch: str
    duration: str = "q"
    time: float = 0.0
    confidence: float = 0.8
    velocity: Optional[int] = 80

    def to_payload(self) -> Dict[str, Any]:
        return {
            "pitch": self.pitch,
            "duration": self.duration,
            "time": self.time,
            "confidence": self.confidence,
            "velocity": self.velocity,
        }


@dataclass(frozen=True)
class Analysis:
    instrument: str = "unknown"
    complexity: str = "moderate"
    quality: str = "unknown"
    key_detected: str = "unknown"
    tempo_detected: float = 120.0
    time_signature_detected: str = "4/4"
    musical_style: str = "unknown"
    dynamic_range: str = "unknown"
    recommendations: str = "No specific recommendations"

    def to_payload(self) -> Dict[str, Any]:
        return {
            "instrument": self.instrument,
            "complexity": self.complexity,
            "quality": self.quality,
            "keyDetected": self.key_detected,
            "tempoDetected": self.tempo_detected,
            "timeSignatureDetected": self.time_signature_detected,
            "musicalStyle": self.musical_style,
            "dynamicRange": self.dynamic_range,
            "recommendations": self.recommendations,
        }


@dataclass(frozen=True)
class SheetMusic:
    title: str = "Audio Analysis"
    time_signature: str = "4/4"
    key_signature: str = "C"
    tempo: float = 120.0
    duration: float = 30.0
    sample_rate: int = 44100
    notes: Tuple[Note, ...] = ()
    analysis: Analysis = field(default_factory=Analysis)
    processing_info: Dict[str, Any] = field(default_factory=dict, compare=False)
    model_used: str = ""

    def with_processing_info(self, **info: Any) -> "SheetMusic":
        merged = dict(self.processing_info)
        merged.update(info)
        return replace(self, processing_info=merged)

    def to_payload(self) -> Dict[str, Any]:
        """The validated document, in the same camelCase shape the service returns."""
        doc: Dict[str, Any] = {
            "title": self.title,
            "timeSignature": self.time_signature,
            "keySignature": self.key_signature,
            "tempo": self.tempo,
            "duration": self.duration,
            "sampleRate": self.sample_rate,
            "notes": [n.to_payload() for n in self.notes],
            "analysis": self.analysis.to_payload(),
        }
        if self.model_used:
            doc["modelUsed"] = self.model_used
        if self.processing_info:
            doc["processingInfo"] = dict(self.processing_info)
        return doc


Listener = Callable[[Optional[SheetMusic]], None]


class SheetMusicStore:
    """
    Holds the current SheetMusic for the session.
    The value is only ever replaced as a whole; readers get the frozen snapshot.
    """
    def __init__(self) -> None:
        self._sheet: Optional[SheetMusic] = None
        self._loading = False
        self._listeners: List[Listener] = []

    @property
    def sheet(self) -> Optional[SheetMusic]:
        return self._sheet

    @property
    def is_loading(self) -> bool:
        return self._loading

    def subscribe(self, fn: Listener) -> Callable[[], None]:
        self._listeners.append(fn)

        def unsubscribe() -> None:
            if fn in self._listeners:
                self._listeners.remove(fn)

        return unsubscribe

    def set_loading(self, loading: bool) -> None:
        self._loading = bool(loading)

    def set_sheet(self, sheet: SheetMusic) -> None:
        self._sheet = sheet
        self._loading = False
        self._notify()

    def clear(self) -> None:
        self._sheet = None
        self._loading = False
        self._notify()

    def _notify(self) -> None:
        for fn in list(self._listeners):
            fn(self._sheet)
