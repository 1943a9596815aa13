"""MT core module."""

from .protocol import ChatBackend, SpeechToTextBackend
from .types import (
    AudioTranslationRequest,
    BackendConfigError,
    BackendConnectionError,
    BackendStatusError,
    BackendTimeoutError,
    BackendUnavailableError,
    InputError,
    MalformedOutputError,
    TranslationError,
    TranslationRequest,
    TranslationResult,
    TransportError,
    user_message,
)

__all__ = [
    "ChatBackend",
    "SpeechToTextBackend",
    "AudioTranslationRequest",
    "BackendConfigError",
    "BackendConnectionError",
    "BackendStatusError",
    "BackendTimeoutError",
    "BackendUnavailableError",
    "InputError",
    "MalformedOutputError",
    "TranslationError",
    "TranslationRequest",
    "TranslationResult",
    "TransportError",
    "user_message",
]
