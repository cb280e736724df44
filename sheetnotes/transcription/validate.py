"""
Boundary models for the transcription document.

The service returns loosely shaped JSON. The Raw* models below accept
anything: each field coerces bad or missing values to its default in a
"before" validator, so model_validate never raises on a JSON object. The
validated document is then mapped onto the frozen app dataclasses.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from sheetnotes.state import Analysis, Note, Settings, SheetMusic

logger = logging.getLogger(__name__)

DURATIONS = ("w", "h", "q", "e", "s")

_DURATION_NAMES = {
    "whole": "w",
    "half": "h",
    "quarter": "q",
    "eighth": "e",
    "sixteenth": "s",
}

DEFAULT_CONFIDENCE = 0.8
DEFAULT_VELOCITY = 80


def _to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        f = float(value)
    except (TypeError, ValueError):
        return None
    return f if math.isfinite(f) else None


def _positive(value: Any) -> Optional[float]:
    # zero and negatives count as missing, same as an empty field
    f = _to_float(value)
    return f if f is not None and f > 0 else None


def _text(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def normalize_duration(value: Any) -> str:
    if not isinstance(value, str):
        return "q"
    s = value.strip().lower()
    if s in DURATIONS:
        return s
    return _DURATION_NAMES.get(s, "q")


def _default(model: type, info: ValidationInfo) -> Any:
    return model.model_fields[info.field_name].get_default(call_default_factory=True)


def _note_dicts(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, (list, tuple)):
        if value is not None:
            logger.warning("Ignoring non-list notes field (%s)", type(value).__name__)
        return []
    return [dict(n) for n in value if isinstance(n, Mapping)]


class RawNote(BaseModel):
    """One note event as sent by the service."""
    model_config = ConfigDict(extra="ignore")

    pitch: str = ""
    duration: str = "q"
    time: float = 0.0
    # None when the field was sent but is null or not a number
    confidence: Optional[float] = None
    velocity: int = DEFAULT_VELOCITY

    @field_validator("pitch", mode="before")
    @classmethod
    def coerce_pitch(cls, v: Any) -> str:
        return (_text(v) or "").upper()

    @field_validator("duration", mode="before")
    @classmethod
    def coerce_duration(cls, v: Any) -> str:
        return normalize_duration(v)

    @field_validator("time", mode="before")
    @classmethod
    def coerce_time(cls, v: Any) -> float:
        f = _to_float(v)
        return max(0.0, f) if f is not None else 0.0

    @field_validator("confidence", mode="before")
    @classmethod
    def coerce_confidence(cls, v: Any) -> Optional[float]:
        return _to_float(v)

    @field_validator("velocity", mode="before")
    @classmethod
    def coerce_velocity(cls, v: Any) -> int:
        f = _positive(v)
        return int(max(1, min(127, round(f)))) if f is not None else DEFAULT_VELOCITY

    def usable(self, threshold: float) -> bool:
        """Needs a pitch and a time key; a confidence that was sent must reach the threshold."""
        if not self.pitch or "time" not in self.model_fields_set:
            return False
        if "confidence" not in self.model_fields_set:
            return True
        return self.confidence is not None and self.confidence >= threshold

    def to_note(self) -> Note:
        c = self.confidence
        return Note(
            pitch=self.pitch,
            duration=self.duration,
            time=self.time,
            confidence=min(1.0, c) if c is not None and c > 0 else DEFAULT_CONFIDENCE,
            velocity=self.velocity,
        )


class RawAnalysis(BaseModel):
    model_config = ConfigDict(extra="ignore")

    instrument: str = "unknown"
    complexity: str = "moderate"
    quality: str = "unknown"
    keyDetected: str = "unknown"
    tempoDetected: float = 120.0
    timeSignatureDetected: str = "4/4"
    musicalStyle: str = "unknown"
    dynamicRange: str = "unknown"
    recommendations: str = "No specific recommendations"

    @field_validator(
        "instrument", "complexity", "quality", "keyDetected", "timeSignatureDetected",
        "musicalStyle", "dynamicRange", "recommendations", mode="before",
    )
    @classmethod
    def coerce_str_or_default(cls, v: Any, info: ValidationInfo) -> str:
        return _text(v) or _default(cls, info)

    @field_validator("tempoDetected", mode="before")
    @classmethod
    def coerce_tempo(cls, v: Any, info: ValidationInfo) -> float:
        f = _positive(v)
        return f if f is not None else _default(cls, info)

    def to_analysis(self) -> Analysis:
        return Analysis(
            instrument=self.instrument,
            complexity=self.complexity,
            quality=self.quality,
            key_detected=self.keyDetected,
            tempo_detected=self.tempoDetected,
            time_signature_detected=self.timeSignatureDetected,
            musical_style=self.musicalStyle,
            dynamic_range=self.dynamicRange,
            recommendations=self.recommendations,
        )


class RawDocument(BaseModel):
    """The whole transcription reply. Settings-dependent defaults stay None here."""
    model_config = ConfigDict(extra="ignore")

    title: str = "Audio Analysis"
    timeSignature: str = "4/4"
    keySignature: str = "C"
    tempo: Optional[float] = None
    duration: float = 30.0
    sampleRate: Optional[float] = None
    notes: List[RawNote] = Field(default_factory=list)
    analysis: RawAnalysis = Field(default_factory=RawAnalysis)
    processingInfo: Dict[str, Any] = Field(default_factory=dict)
    modelUsed: str = ""

    @field_validator("title", "timeSignature", "keySignature", "modelUsed", mode="before")
    @classmethod
    def coerce_str_or_default(cls, v: Any, info: ValidationInfo) -> str:
        return _text(v) or _default(cls, info)

    @field_validator("tempo", "sampleRate", mode="before")
    @classmethod
    def coerce_optional_positive(cls, v: Any) -> Optional[float]:
        return _positive(v)

    @field_validator("duration", mode="before")
    @classmethod
    def coerce_duration(cls, v: Any, info: ValidationInfo) -> float:
        f = _positive(v)
        return f if f is not None else _default(cls, info)

    @field_validator("notes", mode="before")
    @classmethod
    def coerce_notes(cls, v: Any) -> List[Dict[str, Any]]:
        return _note_dicts(v)

    @field_validator("analysis", mode="before")
    @classmethod
    def coerce_analysis(cls, v: Any) -> Dict[str, Any]:
        return dict(v) if isinstance(v, Mapping) else {}

    @field_validator("processingInfo", mode="before")
    @classmethod
    def coerce_info(cls, v: Any) -> Dict[str, Any]:
        return dict(v) if isinstance(v, Mapping) else {}


def _select(raw_notes: List[RawNote], settings: Settings, received: int) -> List[Note]:
    kept = [r.to_note() for r in raw_notes if r.usable(settings.confidence_threshold)]
    if received - len(kept):
        logger.debug("Dropped %d of %d raw notes", received - len(kept), received)
    kept.sort(key=lambda n: n.time)
    return kept[: max(0, int(settings.max_notes))]


def validate_notes(raw_notes: Any, settings: Optional[Settings] = None) -> List[Note]:
    """
    Filter, normalize, sort and cap the raw notes array.
    Anything that is not a list yields no notes.
    """
    s = settings or Settings()
    parsed = [RawNote.model_validate(n) for n in _note_dicts(raw_notes)]
    return _select(parsed, s, count_raw_notes({"notes": raw_notes}))


def sheet_music_from_payload(
    payload: Any,
    *,
    sample_rate: Optional[int] = None,
    settings: Optional[Settings] = None,
) -> SheetMusic:
    """
    Decode an untrusted transcription document into a SheetMusic, filling
    defaults for anything missing or malformed. Never raises.
    """
    s = settings or Settings()
    if not isinstance(payload, Mapping):
        logger.warning("Transcription payload is not an object (%s)", type(payload).__name__)
        payload = {}
    doc = RawDocument.model_validate(dict(payload))

    sr = _positive(sample_rate) if sample_rate is not None else doc.sampleRate
    return SheetMusic(
        title=doc.title,
        time_signature=doc.timeSignature,
        key_signature=doc.keySignature,
        tempo=doc.tempo if doc.tempo is not None else float(s.default_tempo),
        duration=doc.duration,
        sample_rate=int(sr) if sr is not None else int(s.sample_rate),
        notes=tuple(_select(doc.notes, s, count_raw_notes(payload))),
        analysis=doc.analysis.to_analysis(),
        processing_info=doc.processingInfo,
        model_used=doc.modelUsed,
    )


def count_raw_notes(payload: Any) -> int:
    if isinstance(payload, Mapping) and isinstance(payload.get("notes"), (list, tuple)):
        return len(payload["notes"])
    return 0


def payload_summary(sheet: SheetMusic) -> Dict[str, Any]:
    return {
        "title": sheet.title,
        "notes": len(sheet.notes),
        "tempo": sheet.tempo,
        "key": sheet.key_signature,
        "model": sheet.model_used,
    }
