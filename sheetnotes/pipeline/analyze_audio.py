from __future__ import annotations
from pathlib import Path
from typing import Callable, Optional
import logging

from sheetnotes.audio.io import check_upload, probe_audio
from sheetnotes.state import Settings, SheetMusic
from sheetnotes.transcription.base import Transcriber
from sheetnotes.transcription.validate import payload_summary, sheet_music_from_payload


ProgressFn = Optional[Callable[[int, str], None]]

logger = logging.getLogger(__name__)


def analyze_audio(
    input_path: Path,
    transcriber: Transcriber,
    settings: Optional[Settings] = None,
    progress: ProgressFn = None,
) -> SheetMusic:
    settings = settings or Settings()

    def emit(pct: int, msg: str) -> None:
        if progress:
            progress(pct, msg)

    emit(10, "Preparing…")
    path = check_upload(input_path, max_mb=settings.max_upload_mb)
    info = probe_audio(path)
    sample_rate = info.sample_rate if info else settings.sample_rate

    emit(30, "Uploading…")
    emit(50, "Analyzing…")
    payload = transcriber.transcribe(path)

    emit(80, "Processing results…")
    sheet = sheet_music_from_payload(payload, sample_rate=sample_rate, settings=settings)
    sheet = sheet.with_processing_info(filteredNotesCount=len(sheet.notes))
    logger.info("Analysis complete: %s", payload_summary(sheet))

    emit(100, "Analysis complete.")
    return sheet
