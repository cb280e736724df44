from __future__ import annotations

from pathlib import Path
from typing import Optional
import logging
import os
import sys

from PySide6.QtCore import Qt, QThread
from PySide6.QtGui import QDragEnterEvent, QDropEvent, QIcon
from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout,
    QPushButton, QLabel, QFileDialog, QMessageBox,
    QGroupBox, QFormLayout, QSplitter, QScrollArea, QPlainTextEdit, QProgressBar,
)

from sheetnotes import config
from sheetnotes.audio.io import AUDIO_EXTS, load_audio_mono, probe_audio
from sheetnotes.audio.player import PagePlayer
from sheetnotes.audio.synth import reference_tone
from sheetnotes.audio.wav import encode
from sheetnotes.notation.paginate import clamp_page, page, page_bounds, page_count
from sheetnotes.pipeline.export import (
    export_json, export_midi, export_page_wav,
    json_filename, midi_filename, svg_filename, wav_filename,
)
from sheetnotes.pipeline.render_page import render_page_wav
from sheetnotes.state import Settings, SheetMusic, SheetMusicStore
from sheetnotes.transcription.errors import TranscriptionError
from sheetnotes.ui.sheet_view import SheetPageWidget
from sheetnotes.ui.waveform import WaveformWidget
from sheetnotes.utils.cache import SessionCache
from sheetnotes.workers.transcribe_worker import start_analyze_worker, start_connection_check

logger = logging.getLogger(__name__)


def resource_path(relative_path: str) -> str:
    """
    Return an absolute path to a resource. Works for dev and for PyInstaller (--onefile/--onedir).
    """
    base_path = getattr(sys, "_MEIPASS", os.path.abspath("."))
    return os.path.join(base_path, relative_path)


class MainWindow(QMainWindow):
    def __init__(self, settings: Optional[Settings] = None) -> None:
        super().__init__()
        self.setWindowTitle("SheetNotes")
        self.setMinimumSize(1180, 720)
        self.resize(1320, 800)
        self.setWindowIcon(QIcon(resource_path("assets/icon/SheetNotes.ico")))
        self.setAcceptDrops(True)

        self.settings = settings or Settings()
        self.store = SheetMusicStore()
        self.cache = SessionCache()
        self.audio_path: Optional[Path] = None
        self.current_page = 0

        self._thread: Optional[QThread] = None
        self._worker = None

        self.player = PagePlayer(self.cache, volume=self.settings.playback_volume, parent=self)
        self.player.started.connect(self._on_play_started)
        self.player.finished.connect(self._on_play_finished)
        self.player.failed.connect(self._on_play_failed)

        central = QWidget()
        self.setCentralWidget(central)
        root = QVBoxLayout(central)

        splitter = QSplitter(Qt.Horizontal)
        splitter.setChildrenCollapsible(False)
        root.addWidget(splitter)

        # ================= LEFT =================
        left = QWidget()
        left_layout = QVBoxLayout(left)

        # --- Audio file
        file_box = QGroupBox("Audio")
        file_form = QFormLayout(file_box)
        self.lbl_file = QLabel("No file selected")
        self.lbl_file.setWordWrap(True)
        self.lbl_size = QLabel("–")
        self.lbl_type = QLabel("–")
        self.lbl_duration = QLabel("–")
        file_form.addRow("Selected", self.lbl_file)
        file_form.addRow("Size", self.lbl_size)
        file_form.addRow("Type", self.lbl_type)
        file_form.addRow("Duration", self.lbl_duration)

        self.waveform = WaveformWidget()
        file_form.addRow(self.waveform)

        btn_row = QHBoxLayout()
        self.btn_open = QPushButton("Open…")
        self.btn_check_key = QPushButton("Test API key")
        btn_row.addWidget(self.btn_open)
        btn_row.addWidget(self.btn_check_key)
        file_form.addRow(btn_row)
        file_form.addRow(QLabel("Supported formats: MP3, WAV, OGG, FLAC, M4A. "
                                f"Maximum file size: {self.settings.max_upload_mb} MB."))
        left_layout.addWidget(file_box)

        # Transcription action
        self.btn_analyze = QPushButton("Analyze")
        self.btn_analyze.setEnabled(False)
        left_layout.addWidget(self.btn_analyze)

        self.progress_analyze = QProgressBar()
        self.progress_analyze.setFixedHeight(18)
        self.progress_analyze.setRange(0, 100)
        self.progress_analyze.setVisible(False)
        left_layout.addWidget(self.progress_analyze)
        self.lbl_progress = QLabel("")
        left_layout.addWidget(self.lbl_progress)

        # --- Analysis summary
        info_box = QGroupBox("Analysis")
        info_form = QFormLayout(info_box)
        self.info_labels = {}
        for key in ("Title", "Time signature", "Key", "Tempo", "Total notes",
                    "Instrument", "Style", "Quality", "Model"):
            lbl = QLabel("–")
            lbl.setWordWrap(True)
            self.info_labels[key] = lbl
            info_form.addRow(key, lbl)
        left_layout.addWidget(info_box)

        left_layout.addStretch(1)

        # ================= RIGHT =================
        right = QWidget()
        right_outer = QVBoxLayout(right)
        right_outer.setContentsMargins(0, 0, 0, 0)

        right_splitter = QSplitter(Qt.Vertical)
        right_splitter.setChildrenCollapsible(False)

        # --- Sheet music page
        sheet_box = QGroupBox("Sheet music")
        sheet_layout = QVBoxLayout(sheet_box)
        self.sheet_view = SheetPageWidget()
        self.sheet_view.clear()
        self.sheet_scroll = QScrollArea()
        self.sheet_scroll.setWidgetResizable(True)
        self.sheet_scroll.setWidget(self.sheet_view)
        sheet_layout.addWidget(self.sheet_scroll)

        nav = QHBoxLayout()
        self.btn_prev = QPushButton("◀ Previous")
        self.lbl_page = QLabel("")
        self.lbl_page.setAlignment(Qt.AlignCenter)
        self.btn_next = QPushButton("Next ▶")
        nav.addStretch(1)
        nav.addWidget(self.btn_prev)
        nav.addWidget(self.lbl_page)
        nav.addWidget(self.btn_next)
        nav.addStretch(1)
        sheet_layout.addLayout(nav)

        actions = QHBoxLayout()
        self.btn_play = QPushButton("Play Current Page")
        self.btn_test_audio = QPushButton("Test Audio")
        self.btn_download = QPushButton("Download Page")
        self.btn_export_json = QPushButton("Export JSON")
        self.btn_export_midi = QPushButton("Export MIDI")
        self.btn_export_wav = QPushButton("Export WAV")
        self.btn_reset = QPushButton("Reset")
        for b in (self.btn_play, self.btn_test_audio, self.btn_download, self.btn_export_json,
                  self.btn_export_midi, self.btn_export_wav, self.btn_reset):
            actions.addWidget(b)
        sheet_layout.addLayout(actions)

        # --- Log
        log_box = QGroupBox("Log")
        log_layout = QVBoxLayout(log_box)
        self.log = QPlainTextEdit()
        self.log.setReadOnly(True)
        self.log.setMaximumBlockCount(2000)
        log_layout.addWidget(self.log)

        right_splitter.addWidget(sheet_box)
        right_splitter.addWidget(log_box)
        right_splitter.setSizes([560, 160])
        right_outer.addWidget(right_splitter)

        splitter.addWidget(left)
        splitter.addWidget(right)
        splitter.setSizes([380, 900])

        # Signals
        self.btn_open.clicked.connect(self.open_audio)
        self.btn_check_key.clicked.connect(self.check_api_key)
        self.btn_analyze.clicked.connect(self.start_analyze)
        self.btn_prev.clicked.connect(lambda: self.go_to_page(self.current_page - 1))
        self.btn_next.clicked.connect(lambda: self.go_to_page(self.current_page + 1))
        self.btn_play.clicked.connect(self.toggle_playback)
        self.btn_test_audio.clicked.connect(self.play_test_tone)
        self.btn_download.clicked.connect(self.download_page)
        self.btn_export_json.clicked.connect(self.export_json_dialog)
        self.btn_export_midi.clicked.connect(self.export_midi_dialog)
        self.btn_export_wav.clicked.connect(self.export_wav_dialog)
        self.btn_reset.clicked.connect(self.reset)

        self.store.subscribe(lambda _sheet: self._update_views())
        self._update_views()
        self._log("SheetNotes ready.")

    def _log(self, msg: str) -> None:
        logger.info(msg)
        self.log.appendPlainText(msg)

    # ---------------- File open / drop ----------------
    def open_audio(self) -> None:
        exts = " ".join(f"*{e}" for e in sorted(AUDIO_EXTS))
        path, _ = QFileDialog.getOpenFileName(self, "Open audio", "", f"Audio ({exts})")
        if path:
            self.set_audio_file(Path(path))

    def dragEnterEvent(self, event: QDragEnterEvent) -> None:
        if event.mimeData().hasUrls():
            for url in event.mimeData().urls():
                if Path(url.toLocalFile()).suffix.lower() in AUDIO_EXTS:
                    event.acceptProposedAction()
                    return
        event.ignore()

    def dropEvent(self, event: QDropEvent) -> None:
        for url in event.mimeData().urls():
            p = Path(url.toLocalFile())
            if p.suffix.lower() in AUDIO_EXTS:
                self.set_audio_file(p)
                event.acceptProposedAction()
                return

    def set_audio_file(self, p: Path) -> None:
        if p.suffix.lower() not in AUDIO_EXTS:
            QMessageBox.warning(self, "Invalid file type", "Please choose an audio file (MP3, WAV, etc.).")
            return
        self.audio_path = p
        self.lbl_file.setText(p.name)
        size_mb = p.stat().st_size / (1024 * 1024) if p.exists() else 0.0
        self.lbl_size.setText(f"{size_mb:.2f} MB")
        self.lbl_type.setText(p.suffix.lower().lstrip("."))

        info = probe_audio(p)
        self.lbl_duration.setText(f"{info.duration_sec:.1f} s" if info else "?")
        try:
            audio, _sr = load_audio_mono(p)
            self.waveform.set_audio(audio)
        except Exception as e:
            logger.warning("No waveform for %s: %s", p, e)
            self.waveform.set_audio(None)

        self.btn_analyze.setEnabled(True)
        self._log(f"Selected {p.name}. Click Analyze to process it.")

    # ---------------- Analysis ----------------
    def start_analyze(self) -> None:
        if not self.audio_path or self._thread is not None:
            return
        self.player.stop()
        self.store.set_loading(True)
        self.btn_analyze.setEnabled(False)
        self.btn_analyze.setText("Analyzing…")
        self.progress_analyze.setValue(0)
        self.progress_analyze.setVisible(True)

        self._thread, self._worker = start_analyze_worker(self.audio_path, self.settings)
        self._worker.progress.connect(self._on_analyze_progress)
        self._worker.finished.connect(self._on_analyze_done)
        self._worker.error.connect(self._on_analyze_failed)
        self._thread.finished.connect(self._on_thread_finished)
        self._log(f"Analyzing {self.audio_path.name}…")

    def _on_thread_finished(self) -> None:
        self._thread = None
        self._worker = None
        self.btn_analyze.setText("Analyze")
        self.btn_analyze.setEnabled(self.audio_path is not None)
        self.progress_analyze.setVisible(False)
        self.lbl_progress.setText("")

    def _on_analyze_progress(self, pct: int, msg: str) -> None:
        self.progress_analyze.setValue(pct)
        self.lbl_progress.setText(msg)

    def _on_analyze_done(self, sheet_obj: object) -> None:
        sheet: SheetMusic = sheet_obj  # type: ignore[assignment]
        self.current_page = 0
        self.store.set_sheet(sheet)
        info = sheet.processing_info
        self._log(
            f"Analysis complete: {len(sheet.notes)} high-confidence notes "
            f"(of {info.get('originalNotesCount', '?')}) via {sheet.model_used or 'unknown model'}."
        )
        if not sheet.notes:
            self._log("The transcription contained no usable notes.")

    def _on_analyze_failed(self, err: object) -> None:
        self.store.set_loading(False)
        self._show_error("Analysis failed", err)

    def _show_error(self, title: str, err: object) -> None:
        if isinstance(err, TranscriptionError):
            self._log(f"{err.title}: {err.details}")
            QMessageBox.critical(self, err.title, err.user_message())
        else:
            self._log(f"{title}: {err}")
            QMessageBox.critical(self, title, str(err))

    def check_api_key(self) -> None:
        if self._thread is not None:
            return
        self.btn_check_key.setEnabled(False)
        self._thread, self._worker = start_connection_check()
        self._worker.finished.connect(self._on_check_done)
        self._worker.error.connect(lambda e: self._show_error("API key test failed", e))
        self._thread.finished.connect(self._on_thread_finished)
        self._thread.finished.connect(lambda: self.btn_check_key.setEnabled(True))
        self._log("Testing Google AI API key…")

    def _on_check_done(self, report) -> None:
        for r in report.results:
            self._log(f"  {r.model}: {'ok' if r.success else r.error}")
        if report.success:
            QMessageBox.information(self, "API key works",
                                    f"Google AI API key is working correctly.\nWorking model: {report.working_model}")
        else:
            QMessageBox.warning(self, "API key test failed", "No Gemini models are working with this key.")

    # ---------------- Views / pagination ----------------
    def _update_views(self) -> None:
        sheet = self.store.sheet
        has = sheet is not None
        for b in (self.btn_play, self.btn_download, self.btn_export_json,
                  self.btn_export_midi, self.btn_export_wav, self.btn_reset):
            b.setEnabled(has)

        if not has:
            self.sheet_view.clear()
            self.lbl_page.setText("")
            self.btn_prev.setVisible(False)
            self.btn_next.setVisible(False)
            for lbl in self.info_labels.values():
                lbl.setText("–")
            return

        count = page_count(sheet.notes)
        self.current_page = clamp_page(self.current_page, count)
        first, last = page_bounds(sheet.notes, self.current_page)
        self.sheet_view.set_page(sheet.title, page(sheet.notes, self.current_page))

        self.lbl_page.setText(f"Page {self.current_page + 1} of {max(1, count)}"
                              + (f"  (notes {first}-{last})" if last else ""))
        self.btn_prev.setVisible(count > 1)
        self.btn_next.setVisible(count > 1)
        self.btn_prev.setEnabled(self.current_page > 0)
        self.btn_next.setEnabled(self.current_page < count - 1)

        a = sheet.analysis
        values = {
            "Title": sheet.title,
            "Time signature": sheet.time_signature,
            "Key": f"{sheet.key_signature} ({a.key_detected})",
            "Tempo": f"{sheet.tempo:g} BPM",
            "Total notes": str(len(sheet.notes)),
            "Instrument": a.instrument,
            "Style": a.musical_style,
            "Quality": f"{a.quality}, {a.complexity}",
            "Model": sheet.model_used or "–",
        }
        for key, text in values.items():
            self.info_labels[key].setText(text)

    def go_to_page(self, index: int) -> None:
        sheet = self.store.sheet
        if sheet is None:
            return
        target = clamp_page(index, page_count(sheet.notes))
        if target != self.current_page:
            self.player.stop()
            self._on_play_finished()
            self.current_page = target
            self._update_views()

    # ---------------- Playback ----------------
    def toggle_playback(self) -> None:
        if self.player.is_playing():
            self.player.stop()
            self._on_play_finished()
            return

        sheet = self.store.sheet
        if sheet is None:
            return
        notes = page(sheet.notes, self.current_page)
        if not notes:
            QMessageBox.information(self, "No notes to play", "This page doesn't contain any notes to play.")
            return

        wav = render_page_wav(sheet, self.current_page, self.settings)
        self.btn_play.setText("Stop Playback")
        self.player.play(wav, stem=f"page-{self.current_page + 1}")
        self._log(f"Playing {len(notes)} notes from page {self.current_page + 1} at {sheet.tempo:g} BPM")

    def play_test_tone(self) -> None:
        self.btn_play.setText("Stop Playback")
        self.player.play(encode(reference_tone(self.settings.sample_rate)), stem="test-tone")
        self._log("Playing 2-second A4 test tone")

    def _on_play_started(self) -> None:
        self.btn_play.setText("Stop Playback")

    def _on_play_finished(self) -> None:
        self.btn_play.setText("Play Current Page")

    def _on_play_failed(self, message: str) -> None:
        self._on_play_finished()
        self._log(f"Playback failed: {message}")
        QMessageBox.warning(self, "Playback failed", message)

    # ---------------- Export ----------------
    def _save_path(self, caption: str, filename: str, filt: str) -> Optional[Path]:
        config.DEFAULT_EXPORT_DIR.mkdir(parents=True, exist_ok=True)
        out, _ = QFileDialog.getSaveFileName(self, caption, str(config.DEFAULT_EXPORT_DIR / filename), filt)
        return Path(out) if out else None

    def _export(self, what: str, fn) -> None:
        try:
            out = fn()
        except Exception as e:
            logger.exception("%s export failed", what)
            QMessageBox.critical(self, "Export failed", f"{what} export failed:\n{e}")
            return
        if out is not None:
            self._log(f"Exported {what}: {out}")

    def download_page(self) -> None:
        sheet = self.store.sheet
        if sheet is None:
            return
        out = self._save_path("Download page", svg_filename(sheet, self.current_page), "SVG (*.svg)")
        if out:
            self._export("SVG", lambda: self.sheet_view.render_svg(out))

    def export_json_dialog(self) -> None:
        sheet = self.store.sheet
        if sheet is None:
            return
        out = self._save_path("Export JSON", json_filename(sheet), "JSON (*.json)")
        if out:
            self._export("JSON", lambda: export_json(sheet, out))

    def export_midi_dialog(self) -> None:
        sheet = self.store.sheet
        if sheet is None:
            return
        out = self._save_path("Export MIDI", midi_filename(sheet), "MIDI (*.mid)")
        if out:
            self._export("MIDI", lambda: export_midi(sheet, out))

    def export_wav_dialog(self) -> None:
        sheet = self.store.sheet
        if sheet is None:
            return
        out = self._save_path("Export WAV", wav_filename(sheet, self.current_page), "WAV (*.wav)")
        if out:
            self._export("WAV", lambda: export_page_wav(sheet, self.current_page, out, self.settings))

    # ---------------- Reset / close ----------------
    def reset(self) -> None:
        self.player.stop()
        self._on_play_finished()
        self.current_page = 0
        self.store.clear()
        self._log("Cleared sheet music.")

    def closeEvent(self, event) -> None:
        self.player.stop()
        if self._thread is not None:
            self._thread.quit()
            self._thread.wait(2000)
        self.cache.cleanup()
        super().closeEvent(event)
