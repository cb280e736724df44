from __future__ import annotations
from pathlib import Path
from typing import Optional
import json
import re

from sheetnotes.audio.wav import write_wav
from sheetnotes.midi.writer import write_sheet_midi
from sheetnotes.pipeline.render_page import render_page_audio
from sheetnotes.state import Settings, SheetMusic

_UNSAFE = re.compile(r'[\\/:*?"<>|]+')


def safe_title(sheet: SheetMusic) -> str:
    return _UNSAFE.sub("_", sheet.title).strip() or "sheet-music"


def json_filename(sheet: SheetMusic) -> str:
    return f"{safe_title(sheet)}-all-notes.json"


def svg_filename(sheet: SheetMusic, page_index: int) -> str:
    return f"{safe_title(sheet)}-page-{page_index + 1}-sheet-music.svg"


def wav_filename(sheet: SheetMusic, page_index: int) -> str:
    return f"{safe_title(sheet)}-page-{page_index + 1}.wav"


def midi_filename(sheet: SheetMusic) -> str:
    return f"{safe_title(sheet)}.mid"


def export_json(sheet: SheetMusic, out_path: Path) -> Path:
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(json.dumps(sheet.to_payload(), indent=2), encoding="utf-8")
    return out_path


def export_page_wav(sheet: SheetMusic, page_index: int, out_path: Path, settings: Optional[Settings] = None) -> Path:
    return write_wav(render_page_audio(sheet, page_index, settings), out_path)


def export_midi(sheet: SheetMusic, out_path: Path) -> Path:
    write_sheet_midi(sheet, Path(out_path))
    return Path(out_path)
