"""Redaction of credentials and patient identifiers in log context."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Pattern, Union

PREVIEW_CHARS = 30
REDACTED = "[REDACTED]"

DEFAULT_PATTERNS: List[Pattern[str]] = [
    # Groq / OpenAI style API keys
    re.compile(r"\b(gsk|sk)[-_][A-Za-z0-9_-]{8,}"),
    re.compile(r"Bearer\s+[A-Za-z0-9._~+/=-]{8,}", re.IGNORECASE),
    re.compile(
        r'(token|key|secret|password|api_key|credential)["\']?\s*[=:]\s*["\']?[A-Za-z0-9_-]{8,}["\']?',
        re.IGNORECASE,
    ),
    # home directories
    re.compile(r"/(home|Users)/[^/\s]+"),
]

# Field names whose values are dropped wholesale
SENSITIVE_FIELDS: FrozenSet[str] = frozenset(
    {
        "password", "token", "secret", "key", "auth", "authorization", "credential",
        "api_key", "groq_api_key", "access_token", "email", "phone", "address",
        "patient_name", "dob",
    }
)


def preview(text: Optional[str], limit: int = PREVIEW_CHARS) -> str:
    """Short single-line preview of patient text for log lines."""
    if not text:
        return ""
    flat = " ".join(text.split())
    return flat if len(flat) <= limit else flat[:limit] + "..."


class DataRedactor:
    """Scrub strings, paths and nested dicts before they reach a log sink."""

    def __init__(
        self,
        custom_patterns: Optional[Iterable[Pattern[str]]] = None,
        sensitive_fields: Iterable[str] = SENSITIVE_FIELDS,
    ) -> None:
        self.patterns = list(DEFAULT_PATTERNS) + list(custom_patterns or ())
        self.sensitive_fields = {f.lower() for f in sensitive_fields}

    def add_pattern(self, pattern: Union[str, Pattern[str]]) -> None:
        self.patterns.append(re.compile(pattern) if isinstance(pattern, str) else pattern)

    def redact_string(self, text: str) -> str:
        for pattern in self.patterns:
            text = pattern.sub(REDACTED, text)
        return text

    def redact_path(self, path: Union[str, Path]) -> str:
        """Keep only the file name."""
        return f"{REDACTED}/{Path(str(path)).name}"

    def _value(self, value: Any) -> Any:
        if isinstance(value, dict):
            return self.redact_dict(value)
        if isinstance(value, (list, tuple)):
            return [self._value(item) for item in value]
        if isinstance(value, str):
            return self.redact_string(value)
        if isinstance(value, Path):
            return self.redact_path(value)
        return value

    def redact_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return {
            key: REDACTED if str(key).lower() in self.sensitive_fields else self._value(value)
            for key, value in data.items()
        }
