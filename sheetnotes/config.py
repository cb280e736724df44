from __future__ import annotations
from pathlib import Path
from typing import Tuple
import os


def project_root() -> Path:
    # sheetnotes/ is one level under the repo root
    return Path(__file__).resolve().parents[1]


ROOT_DIR = project_root()
ASSETS_DIR = ROOT_DIR / "assets"
DEFAULT_EXPORT_DIR = ROOT_DIR / "exports"
LOG_DIR = ROOT_DIR / "logs"

API_KEY_ENV = "GOOGLE_AI_API_KEY"
GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
GEMINI_MODELS: Tuple[str, ...] = (
    "gemini-2.5-pro-preview-06-05",
    "gemini-1.5-pro",
    "gemini-1.5-flash",
)
DEFAULT_HTTP_TIMEOUT = 120.0


def api_key() -> str:
    return (os.getenv(API_KEY_ENV) or "").strip()


def gemini_models() -> Tuple[str, ...]:
    override = os.getenv("SHEETNOTES_GEMINI_MODELS", "")
    models = tuple(m.strip() for m in override.split(",") if m.strip())
    return models or GEMINI_MODELS


def http_timeout() -> float:
    try:
        return float(os.getenv("SHEETNOTES_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT))
    except ValueError:
        return DEFAULT_HTTP_TIMEOUT
