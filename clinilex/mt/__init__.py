"""CliniLex MT (clinical correction + translation) module."""

from .core import (
    AudioTranslationRequest,
    InputError,
    TranslationError,
    TranslationRequest,
    TranslationResult,
    TransportError,
    user_message,
)
from .resolver import BackendResolver
from .service import TranslationOrchestrator, get_orchestrator

__all__ = [
    "AudioTranslationRequest",
    "BackendResolver",
    "InputError",
    "TranslationError",
    "TranslationOrchestrator",
    "TranslationRequest",
    "TranslationResult",
    "TransportError",
    "get_orchestrator",
    "user_message",
]
