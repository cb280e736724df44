from __future__ import annotations
from typing import Optional

from sheetnotes.audio.synth import MonoPCM, synthesize
from sheetnotes.audio.wav import encode
from sheetnotes.notation.paginate import page
from sheetnotes.state import Settings, SheetMusic


def render_page_audio(sheet: SheetMusic, page_index: int, settings: Optional[Settings] = None) -> MonoPCM:
    """
    Synthesize every note of a page, including any that had no measure to be
    drawn in.
    """
    settings = settings or Settings()
    return synthesize(page(sheet.notes, page_index), sheet.tempo, settings.sample_rate)


def render_page_wav(sheet: SheetMusic, page_index: int, settings: Optional[Settings] = None) -> bytes:
    return encode(render_page_audio(sheet, page_index, settings))
