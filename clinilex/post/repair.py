"""Best-effort JSON object recovery from model responses.

Two attempts, no repair grammar: parse the fence-stripped text as-is, then
parse the greedy ``{ ... }`` span between the first ``{`` and the last ``}``.
Approximate by construction; prose around one object is handled, arbitrarily
broken JSON is not.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

from .sanitize import strip_fences


def _loads_object(candidate: str) -> Optional[Dict[str, Any]]:
    try:
        value = json.loads(candidate)
    except (ValueError, RecursionError):
        return None
    return value if isinstance(value, dict) else None


def parse_json_object(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """Extract a single JSON object from ``text``; ``None`` when nothing parses."""
    if not text:
        return None

    cleaned = strip_fences(text).strip()
    parsed = _loads_object(cleaned)
    if parsed is not None:
        return parsed

    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end <= start:
        return None
    return _loads_object(cleaned[start : end + 1])
