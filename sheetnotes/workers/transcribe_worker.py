from __future__ import annotations
from pathlib import Path
import logging

from PySide6.QtCore import QObject, Signal, Slot, QThread

from sheetnotes.pipeline.analyze_audio import analyze_audio
from sheetnotes.state import Settings
from sheetnotes.transcription.gemini import GeminiTranscriber

logger = logging.getLogger(__name__)


class AnalyzeWorker(QObject):
    progress = Signal(int, str)
    finished = Signal(object)  # SheetMusic
    error = Signal(object)  # Exception

    def __init__(self, input_path: Path, settings: Settings) -> None:
        super().__init__()
        self.input_path = input_path
        self.settings = settings

    @Slot()
    def run(self) -> None:
        try:
            with GeminiTranscriber() as transcriber:
                sheet = analyze_audio(
                    self.input_path,
                    transcriber,
                    self.settings,
                    progress=lambda p, m: self.progress.emit(p, m),
                )
            self.finished.emit(sheet)
        except Exception as e:
            logger.exception("Analysis failed for %s", self.input_path)
            self.error.emit(e)


class ConnectionCheckWorker(QObject):
    finished = Signal(object)  # ConnectionReport
    error = Signal(object)

    @Slot()
    def run(self) -> None:
        try:
            with GeminiTranscriber() as transcriber:
                report = transcriber.check_connection()
            self.finished.emit(report)
        except Exception as e:
            logger.exception("API key check failed")
            self.error.emit(e)


def _start(worker: QObject):
    thread = QThread()
    worker.moveToThread(thread)

    thread.started.connect(worker.run)
    worker.finished.connect(thread.quit)
    worker.finished.connect(worker.deleteLater)
    thread.finished.connect(thread.deleteLater)

    worker.error.connect(thread.quit)
    worker.error.connect(worker.deleteLater)

    thread.start()
    return thread, worker


def start_analyze_worker(input_path: Path, settings: Settings):
    return _start(AnalyzeWorker(input_path, settings))


def start_connection_check():
    return _start(ConnectionCheckWorker())
