"""
Gemini transcription backend.

Sends the uploaded audio inline (base64) together with the transcription
prompt to the Generative Language REST API and returns the raw JSON document
the model produced. Model selection walks a fallback chain: when a model is
not available for the key/region, the next one is tried.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import httpx

from sheetnotes import config
from sheetnotes.audio.io import mime_type_for
from sheetnotes.transcription.base import Transcriber
from sheetnotes.transcription.errors import (
    GENERAL_ERROR,
    MISSING_KEY,
    MODEL_UNAVAILABLE,
    NETWORK_ERROR,
    TranscriptionError,
    classify_error,
)
from sheetnotes.transcription.response import extract_payload
from sheetnotes.transcription.validate import count_raw_notes

logger = logging.getLogger(__name__)

ANALYSIS_METHOD = "google_gemini"
CONFIDENCE_THRESHOLD = 0.7

TRANSCRIPTION_PROMPT = """You are a professional music transcription assistant with perfect pitch. \
Listen to this audio file and extract the musical notes for sheet music.

Return ONLY valid JSON in exactly this shape (no markdown, no explanations):
{
  "title": "Audio Analysis",
  "timeSignature": "4/4",
  "keySignature": "C",
  "tempo": 120,
  "duration": 30,
  "notes": [
    {"pitch": "C4", "duration": "q", "time": 0.0, "confidence": 0.95, "velocity": 80},
    {"pitch": "E4", "duration": "q", "time": 0.5, "confidence": 0.92, "velocity": 75}
  ],
  "analysis": {
    "instrument": "piano",
    "complexity": "moderate",
    "quality": "excellent",
    "keyDetected": "C major",
    "tempoDetected": 120,
    "timeSignatureDetected": "4/4",
    "musicalStyle": "classical",
    "dynamicRange": "moderate",
    "recommendations": "Clear melody line"
  }
}

Guidelines:
- pitch: scientific pitch notation using sharps only, C3 through B5 (e.g. C4, C#4, D4).
- duration: "w" (whole), "h" (half), "q" (quarter), "e" (eighth), "s" (sixteenth).
- time: onset in seconds from the start of the audio.
- confidence: 0.0 to 1.0; only include notes with confidence above 0.7.
- velocity: MIDI velocity 1-127 from the loudness and attack of the note.
- Return at most 150 notes, the most musically significant ones, ordered by time.
- Identify the instrument, key, tempo, time signature and style.
"""


def _check_prompt(model: str) -> str:
    return 'Respond with this exact JSON: {"status": "working", "message": "API key works!", "model": "' + model + '"}'


@dataclass
class ModelCheck:
    model: str
    success: bool
    response: str = ""
    error: str = ""


@dataclass
class ConnectionReport:
    success: bool
    working_model: Optional[str] = None
    results: List[ModelCheck] = field(default_factory=list)


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text.strip() or f"HTTP {resp.status_code}"
    err = body.get("error") if isinstance(body, dict) else None
    if isinstance(err, dict):
        return str(err.get("message") or err.get("status") or f"HTTP {resp.status_code}")
    return f"HTTP {resp.status_code}"


def _reply_text(body: Any) -> str:
    if not isinstance(body, dict):
        return ""
    candidates = body.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        feedback = body.get("promptFeedback")
        if feedback:
            logger.warning("Gemini returned no candidates: %s", feedback)
        return ""
    first = candidates[0]
    content = first.get("content") if isinstance(first, dict) else None
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        logger.warning("Gemini candidate has no text parts: %.200r", first)
        return ""
    return "".join(str(p.get("text", "")) for p in parts if isinstance(p, dict))


class GeminiTranscriber(Transcriber):
    def __init__(
        self,
        api_key: Optional[str] = None,
        models: Optional[Sequence[str]] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.Client] = None,
        base_url: str = config.GEMINI_API_BASE,
    ) -> None:
        self.api_key = (api_key if api_key is not None else config.api_key()).strip()
        self.models = tuple(models) if models else config.gemini_models()
        self.timeout = timeout if timeout is not None else config.http_timeout()
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._http = client or httpx.Client(timeout=self.timeout)

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    def __enter__(self) -> "GeminiTranscriber":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def _require_key(self) -> str:
        if not self.api_key:
            raise TranscriptionError(MISSING_KEY)
        return self.api_key

    def _generate(self, model: str, parts: List[Dict[str, Any]]) -> str:
        url = f"{self.base_url}/models/{model}:generateContent"
        headers = {"x-goog-api-key": self._require_key()}
        body = {"contents": [{"role": "user", "parts": parts}]}
        try:
            resp = self._http.post(url, headers=headers, json=body, timeout=self.timeout)
        except httpx.TransportError as e:
            raise TranscriptionError(NETWORK_ERROR, f"Unable to connect to Google AI services ({e})") from e

        if resp.status_code >= 400:
            raise classify_error(_error_message(resp), status=resp.status_code)

        try:
            return _reply_text(resp.json())
        except ValueError as e:
            raise TranscriptionError(GENERAL_ERROR, f"Unreadable reply body ({e})", status=resp.status_code) from e

    def transcribe(self, audio_path: Path) -> Dict[str, Any]:
        self._require_key()
        audio_path = Path(audio_path)
        data = base64.b64encode(audio_path.read_bytes()).decode("ascii")
        parts = [
            {"text": TRANSCRIPTION_PROMPT},
            {"inline_data": {"mime_type": mime_type_for(audio_path), "data": data}},
        ]
        logger.info("Transcribing %s (%d bytes)", audio_path.name, audio_path.stat().st_size)

        last_error: Optional[TranscriptionError] = None
        for model in self.models:
            try:
                text = self._generate(model, parts)
            except TranscriptionError as e:
                if e.kind != MODEL_UNAVAILABLE:
                    raise
                logger.warning("Model %s unavailable, trying next: %s", model, e.details)
                last_error = e
                continue

            logger.info("Received %d characters from %s", len(text), model)
            payload = extract_payload(text)
            payload["modelUsed"] = model
            payload["processingInfo"] = {
                "originalNotesCount": count_raw_notes(payload),
                "confidenceThreshold": CONFIDENCE_THRESHOLD,
                "analysisMethod": ANALYSIS_METHOD,
                "modelFallback": model != self.models[0],
            }
            return payload

        raise last_error or TranscriptionError(MODEL_UNAVAILABLE, "No Gemini models configured.")

    def check_connection(self) -> ConnectionReport:
        """Ask every model in the chain for a tiny reply; the first that answers wins."""
        self._require_key()
        report = ConnectionReport(success=False)
        for model in self.models:
            try:
                text = self._generate(model, [{"text": _check_prompt(model)}])
            except TranscriptionError as e:
                logger.info("Model check failed for %s: %s", model, e)
                report.results.append(ModelCheck(model=model, success=False, error=str(e)))
                continue
            report.results.append(ModelCheck(model=model, success=True, response=text))
            if report.working_model is None:
                report.working_model = model
        report.success = report.working_model is not None
        return report
