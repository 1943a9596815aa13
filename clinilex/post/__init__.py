"""Post-processing of raw model output: sanitizing and JSON recovery."""

from __future__ import annotations

from .repair import parse_json_object
from .sanitize import clean, strip_fences

__all__ = ["clean", "strip_fences", "parse_json_object"]
