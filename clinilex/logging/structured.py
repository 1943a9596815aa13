"""Structured JSON-lines logging with redaction.

Every entry carries component, session id and session-relative time so that
capture, session and translation logs can be joined after the fact. Console
output goes to stderr; stdout stays free for command-line JSON results.
"""

from __future__ import annotations

import json
import os
import sys
import time
import uuid
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, TextIO, Union

from .redaction import DataRedactor


class LogLevel(Enum):
    """Standard log levels."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return list(LogLevel).index(self)


class RotatingLogFile:
    """Append-only JSONL file, rotated to ``name.1.jsonl`` .. ``name.N.jsonl`` by size."""

    def __init__(self, path: Path, max_bytes: Optional[int] = None, keep: int = 5) -> None:
        self.path = path
        self.max_bytes = max_bytes
        self.keep = keep
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._fh: Optional[TextIO] = open(self.path, "a", encoding="utf-8")

    def _rotated(self, index: int) -> Path:
        return self.path.with_suffix(f".{index}{self.path.suffix}")

    def _rotate(self) -> None:
        if self._fh:
            self._fh.close()
        oldest = self._rotated(self.keep)
        if oldest.exists():
            oldest.unlink()
        for i in range(self.keep - 1, 0, -1):
            if self._rotated(i).exists():
                self._rotated(i).rename(self._rotated(i + 1))
        self.path.rename(self._rotated(1))
        self._fh = open(self.path, "a", encoding="utf-8")

    def write(self, line: str) -> None:
        if self._fh is None:
            return
        if self.max_bytes and self.path.exists() and self.path.stat().st_size > self.max_bytes:
            try:
                self._rotate()
            except OSError:
                # keep appending to whatever is open
                if self._fh is None or self._fh.closed:
                    self._fh = open(self.path, "a", encoding="utf-8")
        self._fh.write(line + "\n")
        self._fh.flush()

    def close(self) -> None:
        if self._fh:
            self._fh.close()
            self._fh = None


class StructuredLogger:
    """Structured logger with consistent format and redaction."""

    def __init__(
        self,
        component: str,
        session_id: Optional[str] = None,
        output_file: Optional[Union[str, Path, TextIO]] = None,
        enable_console: bool = True,
        redactor: Optional[DataRedactor] = None,
        max_log_size_mb: Optional[int] = None,
        max_log_files: int = 5,
        min_level: LogLevel = LogLevel.DEBUG,
    ) -> None:
        """Initialize structured logger.

        Args:
            component: Component identifier (e.g., 'translate', 'capture', 'session')
            session_id: Optional session ID for correlation
            output_file: Optional file path (rotated by size) or open text handle
            enable_console: Whether to echo entries to stderr
            redactor: Optional data redactor for sensitive information
            max_log_size_mb: Rotate the log file past this size (None = no limit)
            max_log_files: Number of rotated files to keep
            min_level: Entries below this level are dropped
        """
        self.component = component
        self.session_id = session_id or str(uuid.uuid4())[:8]
        self.start_time = time.time()
        self.redactor = redactor or DataRedactor()
        self.min_level = min_level
        self.console_enabled = enable_console

        self.file: Optional[RotatingLogFile] = None
        self.stream: Optional[TextIO] = None
        if isinstance(output_file, (str, Path)):
            max_bytes = max_log_size_mb * 1024 * 1024 if max_log_size_mb else None
            self.file = RotatingLogFile(Path(output_file), max_bytes, max_log_files)
        elif output_file is not None:
            self.stream = output_file

    def _entry(self, level: LogLevel, message: str, context: Dict[str, Any]) -> Dict[str, Any]:
        now = time.time()
        return {
            "timestamp": now,
            "iso_timestamp": time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(now)) + "Z",
            "level": level.value,
            "component": self.component,
            "session_id": self.session_id,
            "session_time": now - self.start_time,
            "message": self.redactor.redact_string(message),
            **self.redactor.redact_dict(context),
        }

    def log(self, level: LogLevel, message: str, **context: Any) -> None:
        if level.rank < self.min_level.rank:
            return
        line = json.dumps(
            self._entry(level, message, context),
            default=str,
            separators=(",", ":"),
            ensure_ascii=False,
        )
        if self.console_enabled:
            print(line, file=sys.stderr, flush=True)
        if self.file:
            self.file.write(line)
        if self.stream:
            self.stream.write(line + "\n")
            self.stream.flush()

    def debug(self, message: str, **context: Any) -> None:
        self.log(LogLevel.DEBUG, message, **context)

    def info(self, message: str, **context: Any) -> None:
        self.log(LogLevel.INFO, message, **context)

    def warning(self, message: str, **context: Any) -> None:
        self.log(LogLevel.WARNING, message, **context)

    def error(self, message: str, **context: Any) -> None:
        self.log(LogLevel.ERROR, message, **context)

    def critical(self, message: str, **context: Any) -> None:
        self.log(LogLevel.CRITICAL, message, **context)

    def close(self) -> None:
        """Close the log file if this logger opened one."""
        if self.file:
            self.file.close()
            self.file = None


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def create_logger(
    component: str,
    session_id: Optional[str] = None,
    log_dir: Optional[Union[str, Path]] = None,
    **kwargs: Any,
) -> StructuredLogger:
    """Create a logger configured from ``CX_LOG_*`` environment variables.

    ``CX_LOG_DIR`` enables file output (``<component>_<session>.jsonl``),
    ``CX_LOG_CONSOLE`` toggles stderr echo, ``CX_LOG_LEVEL`` sets the floor and
    ``CX_LOG_MAX_SIZE_MB`` / ``CX_LOG_MAX_FILES`` control rotation. Explicit
    keyword arguments win over the environment.
    """
    log_dir = log_dir or os.getenv("CX_LOG_DIR") or None

    max_size = os.getenv("CX_LOG_MAX_SIZE_MB")
    if max_size and "max_log_size_mb" not in kwargs:
        kwargs["max_log_size_mb"] = int(max_size)
    max_files = os.getenv("CX_LOG_MAX_FILES")
    if max_files and "max_log_files" not in kwargs:
        kwargs["max_log_files"] = int(max_files)

    kwargs.setdefault("enable_console", _env_flag("CX_LOG_CONSOLE", "1"))
    if "min_level" not in kwargs:
        try:
            kwargs["min_level"] = LogLevel(os.getenv("CX_LOG_LEVEL", "info").lower())
        except ValueError:
            kwargs["min_level"] = LogLevel.INFO

    output_file = None
    if log_dir:
        output_file = Path(log_dir) / f"{component}_{session_id or 'default'}.jsonl"

    return StructuredLogger(
        component=component, session_id=session_id, output_file=output_file, **kwargs
    )
