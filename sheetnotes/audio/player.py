from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtCore import QObject, QUrl, Signal
from PySide6.QtMultimedia import QAudioOutput, QMediaPlayer

from sheetnotes.utils.cache import SessionCache

logger = logging.getLogger(__name__)


class PagePlayer(QObject):
    """
    Plays WAV bytes through QMediaPlayer.

    play() returns immediately; the outcome arrives as exactly one of
    finished() or failed(message). stop() ends playback without either.
    """

    started = Signal()
    finished = Signal()
    failed = Signal(str)

    def __init__(self, cache: SessionCache, volume: float = 0.7, parent=None) -> None:
        super().__init__(parent)
        self._cache = cache
        self._active = False

        self.audio_out = QAudioOutput()
        self.audio_out.setVolume(float(volume))
        self.player = QMediaPlayer()
        self.player.setAudioOutput(self.audio_out)

        self.player.mediaStatusChanged.connect(self._on_status)
        self.player.playbackStateChanged.connect(self._on_state)
        self.player.errorOccurred.connect(self._on_error)

    def is_playing(self) -> bool:
        return self._active

    def play(self, wav_bytes: bytes, stem: str = "page") -> None:
        self.stop()
        path = self._cache.write(stem, wav_bytes, suffix=".wav")
        logger.info("Playing %s (%d bytes)", path.name, len(wav_bytes))
        self._active = True
        self.player.setSource(QUrl.fromLocalFile(str(path)))
        self.player.play()

    def stop(self) -> None:
        self._active = False
        self.player.stop()

    def _on_state(self, state) -> None:
        if self._active and state == QMediaPlayer.PlayingState:
            self.started.emit()

    def _on_status(self, status) -> None:
        if not self._active:
            return
        if status == QMediaPlayer.EndOfMedia:
            self._active = False
            self.finished.emit()
        elif status == QMediaPlayer.InvalidMedia:
            self._fail("The rendered audio could not be decoded.")

    def _on_error(self, _error, message: Optional[str] = None) -> None:
        if self._active:
            self._fail(message or self.player.errorString() or "An error occurred during playback")

    def _fail(self, message: str) -> None:
        logger.error("Playback failed: %s", message)
        self._active = False
        self.player.stop()
        self.failed.emit(message)
