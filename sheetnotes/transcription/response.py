from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)
_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def fallback_payload(raw_text: str) -> Dict[str, Any]:
    return {
        "title": "Analysis Failed - Parse Error",
        "timeSignature": "4/4",
        "keySignature": "C",
        "tempo": 120,
        "duration": 30,
        "notes": [],
        "analysis": {
            "instrument": "unknown",
            "complexity": "unknown",
            "quality": "parsing_failed",
            "keyDetected": "unknown",
            "tempoDetected": 120,
            "timeSignatureDetected": "4/4",
            "musicalStyle": "unknown",
            "dynamicRange": "unknown",
            "recommendations": f"Could not parse AI response. Raw response: {raw_text[:200]}...",
        },
    }


def extract_payload(text: str) -> Dict[str, Any]:
    """
    Pull the JSON object out of a model reply. Replies sometimes arrive wrapped
    in markdown fences or with prose around them. Unparseable replies give the
    zero-note fallback document instead of an error.
    """
    raw = text or ""
    cleaned = _FENCE_RE.sub("", raw.strip())
    match = _OBJECT_RE.search(cleaned)
    if not match:
        logger.error("No JSON object in model reply: %s", raw[:300])
        return fallback_payload(raw)

    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        logger.error("Failed to parse model reply (%s): %s", e, raw[:300])
        return fallback_payload(raw)

    if not isinstance(data, dict):
        return fallback_payload(raw)
    return data
