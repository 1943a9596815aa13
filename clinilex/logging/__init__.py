"""Structured logging and metrics for CliniLex."""

from .structured import StructuredLogger, LogLevel, create_logger
from .metrics import LatencyStats, PerformanceMetrics
from .redaction import DataRedactor, preview

__all__ = [
    "StructuredLogger",
    "LogLevel",
    "create_logger",
    "PerformanceMetrics",
    "LatencyStats",
    "DataRedactor",
    "preview",
]
