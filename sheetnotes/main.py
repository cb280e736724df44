from __future__ import annotations
import logging
import sys
from logging.handlers import RotatingFileHandler

from PySide6.QtWidgets import QApplication

from sheetnotes import config
from sheetnotes.ui.main_window import MainWindow

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _init_logging() -> None:
    if logging.getLogger().handlers:
        return

    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    try:
        config.LOG_DIR.mkdir(parents=True, exist_ok=True)
        fh = RotatingFileHandler(config.LOG_DIR / "app.log", maxBytes=2 * 1024 * 1024,
                                 backupCount=3, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(LOG_FORMAT))
        logging.getLogger().addHandler(fh)
    except OSError as e:
        logging.getLogger(__name__).warning("File logging disabled: %s", e)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def main() -> int:
    _init_logging()

    # Windows taskbar icon consistency
    try:
        import ctypes
        ctypes.windll.shell32.SetCurrentProcessExplicitAppUserModelID("SheetNotes.SheetNotes")
    except (ImportError, AttributeError, OSError):
        pass

    app = QApplication(sys.argv)
    app.setStyle("Fusion")
    if not config.api_key():
        logging.getLogger(__name__).warning(
            "%s is not set; analysis will fail until it is configured.", config.API_KEY_ENV
        )
    win = MainWindow()
    win.show()
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
