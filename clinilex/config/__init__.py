"""CliniLex centralized configuration.

All settings are backed by environment variables following the CX_* naming
convention (provider-standard names such as GROQ_API_KEY and OLLAMA_BASE_URL
are honoured as fallbacks). The dataclasses are frozen; build one instance at
process start and pass it explicitly into the resolver and orchestrator.

Example:
    >>> from clinilex.config import BACKEND
    >>> BACKEND.request_timeout_s
    60.0

Environment Variables:
    CX_GROQ_API_KEY / GROQ_API_KEY: Hosted backend credential (empty = local only)
    CX_GROQ_MODEL / GROQ_MODEL: Hosted chat model (default: llama-3.3-70b-versatile)
    CX_OLLAMA_BASE_URL / OLLAMA_BASE_URL: Local backend address (default: http://localhost:11434)
    CX_OLLAMA_MODEL / OLLAMA_MODEL: Local chat model (default: mistral)
    CX_REQUEST_TIMEOUT_S: Per-call deadline (default: 60s)
    CX_SILENCE_TIMEOUT_S: Silence before auto-submit (default: 4s)
    CX_MAX_INPUT_CHARS: Input clamp (default: 5000)
"""

from __future__ import annotations

from clinilex.config.defaults import (
    BACKEND,
    CAPTURE,
    PIPELINE,
    RT,
    BackendDefaults,
    CaptureDefaults,
    PipelineDefaults,
    RuntimeDefaults,
)

__all__ = [
    "BACKEND",
    "CAPTURE",
    "PIPELINE",
    "RT",
    "BackendDefaults",
    "CaptureDefaults",
    "PipelineDefaults",
    "RuntimeDefaults",
]
