from __future__ import annotations
from pathlib import Path
import itertools
import logging
import tempfile

logger = logging.getLogger(__name__)


class SessionCache:
    """
    Temporary folder for rendered page audio of this app run.
    The window calls cleanup() on close.
    """
    def __init__(self, prefix: str = "sheetnotes_") -> None:
        self._tmp = tempfile.TemporaryDirectory(prefix=prefix)
        self.dir = Path(self._tmp.name)
        self._counter = itertools.count(1)

    def write(self, stem: str, data: bytes, suffix: str = ".wav") -> Path:
        # fresh name each time; the media player may still hold the previous file
        out = self.dir / f"{stem}-{next(self._counter)}{suffix}"
        out.write_bytes(data)
        return out

    def clear(self) -> None:
        """Remove rendered files, keep the folder."""
        for p in self.dir.glob("*"):
            try:
                p.unlink()
            except OSError as e:
                logger.debug("Could not remove %s: %s", p, e)

    def cleanup(self) -> None:
        try:
            self._tmp.cleanup()
        except OSError as e:
            logger.warning("Could not remove session cache %s: %s", self.dir, e)
