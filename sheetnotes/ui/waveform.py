from __future__ import annotations

from typing import Optional

import numpy as np
from PySide6.QtCore import QPointF, Qt
from PySide6.QtGui import QPainter, QPainterPath, QPen
from PySide6.QtWidgets import QWidget

from sheetnotes.audio.io import waveform_points


class WaveformWidget(QWidget):
    def __init__(self, parent=None):
        super().__init__(parent)
        self._points: Optional[np.ndarray] = None
        self.setMinimumHeight(80)

    def set_audio(self, audio: Optional[np.ndarray]) -> None:
        self._points = waveform_points(audio) if audio is not None else None
        self.update()

    def paintEvent(self, event):
        p = QPainter(self)
        p.fillRect(self.rect(), self.palette().base())
        if self._points is None or self._points.size == 0:
            p.setPen(QPen(self.palette().mid().color()))
            p.drawText(self.rect().adjusted(8, 0, 0, 0), Qt.AlignLeft | Qt.AlignVCenter, "No waveform")
            return

        w, h = self.width(), self.height()
        step_x = w / max(1, self._points.size)
        path = QPainterPath()
        for i, v in enumerate(self._points):
            pt = QPointF(i * step_x, (float(v) * 0.5 + 1.0) * h / 2.0)
            if i == 0:
                path.moveTo(pt)
            else:
                path.lineTo(pt)

        p.setRenderHint(QPainter.Antialiasing)
        p.setPen(QPen(self.palette().highlight().color()))
        p.drawPath(path)
