"""CliniLex config defaults.

No side effects on import. Values are read once from CX_* environment variables;
logging reads its own CX_LOG_* variables (see clinilex.logging.create_logger).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


def _env(name: str, default: str) -> str:
    if not name.startswith("CX_"):
        raise ValueError(f"Only CX_* env vars are allowed, got: {name}")
    return os.getenv(name, default)


def _env_legacy(name: str, default: str, legacy_name: Optional[str] = None) -> str:
    """Read a CX_* variable, falling back to a legacy (provider-standard) name.

    Provider SDKs conventionally read e.g. GROQ_API_KEY or OLLAMA_BASE_URL;
    those are honoured when the CX_* name is not set.
    """
    if not name.startswith("CX_"):
        raise ValueError(f"Only CX_* env vars are allowed, got: {name}")
    raw = os.getenv(name) or (os.getenv(legacy_name) if legacy_name else None)
    return raw or default


def _env_bool(name: str, default: bool) -> bool:
    raw = _env(name, str(default))
    return raw.lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = _env(name, str(default))
    try:
        return int(raw)
    except Exception:
        return default


def _env_float(name: str, default: float) -> float:
    raw = _env(name, str(default))
    try:
        return float(raw)
    except Exception:
        return default


def _env_time_seconds(name: str, default_seconds: float) -> float:
    """Parse time value with unit suffixes (s, ms, m) and return seconds."""
    raw = _env(name, str(default_seconds))
    try:
        if raw.isdigit() or (raw.replace(".", "").isdigit()):
            return float(raw)

        raw = raw.strip().lower()
        if raw.endswith("ms"):
            return float(raw[:-2]) / 1000.0
        if raw.endswith("s"):
            return float(raw[:-1])
        if raw.endswith("m"):
            return float(raw[:-1]) * 60.0
        return float(raw)
    except Exception:
        return default_seconds


@dataclass(frozen=True)
class BackendDefaults:
    # Hosted (Groq, OpenAI-compatible) backend
    groq_api_key: str = _env_legacy("CX_GROQ_API_KEY", "", "GROQ_API_KEY")
    hosted_base_url: str = _env("CX_GROQ_BASE_URL", "https://api.groq.com/openai/v1")
    hosted_model: str = _env_legacy("CX_GROQ_MODEL", "llama-3.3-70b-versatile", "GROQ_MODEL")
    hosted_audio_model: str = _env("CX_GROQ_AUDIO_MODEL", "distil-whisper-large-v3-en")

    # Local (Ollama) backend
    local_model: str = _env_legacy("CX_OLLAMA_MODEL", "mistral", "OLLAMA_MODEL")
    local_base_url: str = _env_legacy(
        "CX_OLLAMA_BASE_URL", "http://localhost:11434", "OLLAMA_BASE_URL"
    )
    local_fallback_url: str = _env("CX_OLLAMA_FALLBACK_URL", "http://127.0.0.1:11434")
    local_num_predict: int = _env_int("CX_OLLAMA_NUM_PREDICT", 1024)

    # Shared call controls
    request_timeout_s: float = _env_time_seconds("CX_REQUEST_TIMEOUT_S", 60.0)
    temperature: float = _env_float("CX_TEMPERATURE", 0.1)

    @property
    def has_hosted_credential(self) -> bool:
        return bool(self.groq_api_key)

    def local_candidates(self) -> list[str]:
        """Ordered, de-duplicated local base URLs (primary first, loopback last)."""
        out: list[str] = []
        for url in (self.local_base_url, self.local_fallback_url):
            url = url.rstrip("/")
            if url and url not in out:
                out.append(url)
        return out


@dataclass(frozen=True)
class PipelineDefaults:
    max_input_chars: int = _env_int("CX_MAX_INPUT_CHARS", 5000)
    default_confidence: float = _env_float("CX_DEFAULT_CONFIDENCE", 0.95)
    degraded_confidence: float = 0.5
    target_language: str = _env("CX_TARGET_LANGUAGE", "es")
    input_language: str = _env("CX_INPUT_LANGUAGE", "auto")
    dialect: str = _env("CX_DIALECT", "standard")
    medical_correction: bool = _env_bool("CX_MEDICAL_CORRECTION", True)


@dataclass(frozen=True)
class CaptureDefaults:
    silence_timeout_s: float = _env_time_seconds("CX_SILENCE_TIMEOUT_S", 4.0)
    silence_poll_s: float = _env_time_seconds("CX_SILENCE_POLL_S", 0.25)
    sample_rate: int = _env_int("CX_SAMPLE_RATE", 16000)
    channels: int = _env_int("CX_CHANNELS", 1)
    frame_samples: int = _env_int("CX_FRAME_SAMPLES", 1600)  # 100 ms frames
    autoplay: bool = _env_bool("CX_AUTOPLAY", True)
    autoplay_delay_s: float = _env_time_seconds("CX_AUTOPLAY_DELAY_S", 0.5)


@dataclass(frozen=True)
class RuntimeDefaults:
    api_port: int = _env_int("CX_API_PORT", 8000)
    dev_mode: bool = _env_bool("CX_DEV", False)


BACKEND = BackendDefaults()
PIPELINE = PipelineDefaults()
CAPTURE = CaptureDefaults()
RT = RuntimeDefaults()
