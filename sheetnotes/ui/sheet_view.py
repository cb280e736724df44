from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from PySide6.QtCore import QPointF, QRectF, QSize, Qt
from PySide6.QtGui import QBrush, QColor, QFont, QPainter, QPainterPath, QPen
from PySide6.QtSvg import QSvgGenerator
from PySide6.QtWidgets import QWidget

from sheetnotes.notation.adapter import Tickable, engrave_page
from sheetnotes.notation.paginate import MEASURES_PER_ROW, ROWS_PER_PAGE
from sheetnotes.state import Note

logger = logging.getLogger(__name__)

_LETTERS = "cdefgab"
_BOTTOM_LINE_STEP = 4 * 7 + 2  # E4
_TOP_LINE_STEP = _BOTTOM_LINE_STEP + 8  # F5
_MIDDLE_LINE_STEP = _BOTTOM_LINE_STEP + 4  # B4


def staff_step(t: Tickable) -> int:
    """Diatonic position, C0 = 0, so E4 (bottom treble line) = 30."""
    return t.octave * 7 + _LETTERS.index(t.letter)


class SheetPageWidget(QWidget):
    """
    Draws one page: ROWS_PER_PAGE rows of MEASURES_PER_ROW treble staves, each
    holding the 4 tickables produced for its measure.
    """

    stave_width = 180
    stave_height = 120
    line_gap = 10.0

    def __init__(self, parent=None):
        super().__init__(parent)
        self._measures: List[List[Tickable]] = []
        self._title = ""
        self._has_sheet = False
        self._page_has_notes = False
        self.setMinimumSize(self.page_size())

    def page_size(self) -> QSize:
        return QSize(MEASURES_PER_ROW * self.stave_width + 50, ROWS_PER_PAGE * self.stave_height + 100)

    def sizeHint(self) -> QSize:
        return self.page_size()

    def set_page(self, title: str, page_notes: Optional[List[Note]]) -> None:
        self._has_sheet = page_notes is not None
        self._title = title
        notes = page_notes or []
        self._page_has_notes = bool(notes)
        self._measures = engrave_page(notes)
        self.update()

    def clear(self) -> None:
        self.set_page("", None)

    # ---------------- painting ----------------
    def paintEvent(self, event):
        p = QPainter(self)
        p.setRenderHint(QPainter.Antialiasing)
        self._paint(p, self.width(), self.height())
        p.end()

    def _paint(self, p: QPainter, width: int, height: int) -> None:
        p.fillRect(QRectF(0, 0, width, height), QColor("#f8f9fa"))
        ink = QColor("#202124")
        p.setPen(QPen(ink))

        if not self._has_sheet:
            p.drawText(QRectF(0, 0, width, height), Qt.AlignCenter,
                       "No sheet music to display. Open an audio file to get started.")
            return

        title_font = QFont(p.font())
        title_font.setBold(True)
        p.setFont(title_font)
        p.drawText(QPointF(12, 22), self._title)
        p.setFont(QFont())

        for i, ticks in enumerate(self._measures):
            row, col = divmod(i, MEASURES_PER_ROW)
            x = 10 + col * self.stave_width
            y = 40 + row * self.stave_height
            try:
                self._draw_measure(p, x, y, self.stave_width - 10, ticks, first_in_row=(col == 0))
            except Exception:
                logger.exception("Failed to draw measure %d", i + 1)

        if not self._page_has_notes:
            p.setPen(QPen(ink))
            p.drawText(QRectF(0, height - 40, width, 30), Qt.AlignCenter, "No notes on this page.")

    def _line_y(self, top: float, step: int) -> float:
        return top + (_TOP_LINE_STEP - step) * (self.line_gap / 2.0)

    def _draw_measure(self, p: QPainter, x: float, y: float, w: float, ticks: List[Tickable], first_in_row: bool) -> None:
        top = y + 30
        bottom = top + 4 * self.line_gap
        pen = QPen(QColor("#202124"))
        pen.setWidthF(1.0)
        p.setPen(pen)
        for k in range(5):
            ly = top + k * self.line_gap
            p.drawLine(QPointF(x, ly), QPointF(x + w, ly))
        p.drawLine(QPointF(x, top), QPointF(x, bottom))
        p.drawLine(QPointF(x + w, top), QPointF(x + w, bottom))

        start = x + 12
        if first_in_row:
            clef_font = QFont()
            clef_font.setPixelSize(44)
            p.setFont(clef_font)
            p.drawText(QPointF(x + 4, bottom + 6), "\U0001D11E")
            sig_font = QFont()
            sig_font.setPixelSize(18)
            sig_font.setBold(True)
            p.setFont(sig_font)
            p.drawText(QPointF(x + 36, top + 18), "4")
            p.drawText(QPointF(x + 36, bottom), "4")
            p.setFont(QFont())
            start = x + 58

        slot = (x + w - start) / max(1, len(ticks))
        for j, t in enumerate(ticks):
            cx = start + slot * j + slot / 2.0
            if t.is_rest:
                self._draw_rest(p, cx, top)
            else:
                self._draw_note(p, cx, top, t)

    def _draw_rest(self, p: QPainter, cx: float, top: float) -> None:
        g = self.line_gap
        path = QPainterPath(QPointF(cx - 2, top + 0.5 * g))
        path.lineTo(cx + 3, top + 1.3 * g)
        path.lineTo(cx - 2, top + 2.1 * g)
        path.lineTo(cx + 3, top + 2.9 * g)
        path.quadTo(cx - 5, top + 2.6 * g, cx, top + 3.6 * g)
        pen = QPen(QColor("#202124"))
        pen.setWidthF(2.0)
        p.setPen(pen)
        p.setBrush(Qt.NoBrush)
        p.drawPath(path)

    def _draw_note(self, p: QPainter, cx: float, top: float, t: Tickable) -> None:
        g = self.line_gap
        step = staff_step(t)
        cy = self._line_y(top, step)
        ink = QColor("#202124")
        p.setPen(QPen(ink))

        # ledger lines below / above the staff
        for s in range(_BOTTOM_LINE_STEP - 2, step - 1, -2):
            ly = self._line_y(top, s)
            p.drawLine(QPointF(cx - 9, ly), QPointF(cx + 9, ly))
        for s in range(_TOP_LINE_STEP + 2, step + 1, 2):
            ly = self._line_y(top, s)
            p.drawLine(QPointF(cx - 9, ly), QPointF(cx + 9, ly))

        p.setBrush(QBrush(ink))
        p.save()
        p.translate(cx, cy)
        p.rotate(-20)
        p.drawEllipse(QRectF(-6, -g / 2.5, 12, 2 * g / 2.5))
        p.restore()

        if step < _MIDDLE_LINE_STEP:
            p.drawLine(QPointF(cx + 5.5, cy), QPointF(cx + 5.5, cy - 3.5 * g))
        else:
            p.drawLine(QPointF(cx - 5.5, cy), QPointF(cx - 5.5, cy + 3.5 * g))

        if t.accidental:
            acc_font = QFont()
            acc_font.setPixelSize(16)
            p.setFont(acc_font)
            p.drawText(QPointF(cx - 20, cy + 5), t.accidental)
            p.setFont(QFont())

    # ---------------- export ----------------
    def render_svg(self, out_path: Path) -> Path:
        size = self.page_size()
        gen = QSvgGenerator()
        gen.setFileName(str(out_path))
        gen.setSize(size)
        gen.setViewBox(QRectF(0, 0, size.width(), size.height()))
        gen.setTitle(self._title or "Sheet music")
        p = QPainter(gen)
        p.setRenderHint(QPainter.Antialiasing)
        self._paint(p, size.width(), size.height())
        p.end()
        return Path(out_path)
