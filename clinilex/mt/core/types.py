"""Translation core types: request/result values and the error taxonomy."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from clinilex.config.defaults import PIPELINE

CONNECTIVITY_MESSAGE = "Could not connect to AI Service. Check your internet."
GENERIC_FAILURE_MESSAGE = "Translation processing failed"


# ============================================================================
# Errors
# ============================================================================


class TranslationError(Exception):
    """Base translation pipeline error."""

    status_code = 500
    is_connectivity = False


class InputError(TranslationError):
    """Empty/missing text or audio; no backend call is attempted."""

    status_code = 400


class MalformedOutputError(TranslationError):
    """Structured model output unusable; recovered into a degraded result."""


class TransportError(TranslationError):
    """Failure reaching or talking to an inference backend."""


class BackendConnectionError(TransportError):
    """Network-level failure (DNS, refused connection, reset)."""

    is_connectivity = True


class BackendStatusError(TransportError):
    """Backend answered with a non-2xx HTTP status."""

    def __init__(self, message: str, status: int) -> None:
        super().__init__(message)
        self.status = status


class BackendUnavailableError(TransportError):
    """Every local backend candidate failed."""

    is_connectivity = True


class BackendTimeoutError(TransportError):
    """Per-call deadline expired; the in-flight request was aborted."""

    is_connectivity = True


class BackendConfigError(TransportError):
    """A required backend is not configured (e.g. no hosted credential)."""


def user_message(exc: BaseException) -> str:
    """Short, non-technical message for surfacing ``exc`` to a user."""
    if isinstance(exc, InputError):
        return str(exc) or "Input text is empty."
    if isinstance(exc, TranslationError) and exc.is_connectivity:
        return CONNECTIVITY_MESSAGE
    return GENERIC_FAILURE_MESSAGE


# ============================================================================
# Values
# ============================================================================


@dataclass(frozen=True)
class TranslationRequest:
    """Normalized text-mode request. Build with :meth:`create`."""

    text: str
    target_language: str
    input_language: str = "auto"
    use_offline: bool = False
    medical_correction: bool = True
    simplify: bool = False
    dialect: str = "standard"

    @classmethod
    def create(
        cls,
        text: Optional[str],
        target_language: Optional[str] = None,
        input_language: Optional[str] = None,
        *,
        use_offline: bool = False,
        medical_correction: Optional[bool] = None,
        simplify: bool = False,
        dialect: Optional[str] = None,
        max_chars: int = PIPELINE.max_input_chars,
    ) -> "TranslationRequest":
        """Trim, reject empty input and silently clamp to ``max_chars``.

        Raises:
            InputError: If ``text`` is missing or whitespace only
        """
        trimmed = (text or "").strip()
        if not trimmed:
            raise InputError("Input text is empty.")
        return cls(
            text=trimmed[:max_chars],
            target_language=target_language or PIPELINE.target_language,
            input_language=input_language or PIPELINE.input_language,
            use_offline=bool(use_offline),
            medical_correction=(
                PIPELINE.medical_correction if medical_correction is None else medical_correction
            ),
            simplify=bool(simplify),
            dialect=dialect or PIPELINE.dialect,
        )


@dataclass(frozen=True)
class AudioTranslationRequest:
    """Recorded-audio request; transcribed before entering the text pipeline."""

    audio: bytes
    target_language: str
    input_language: str = "auto"
    use_offline: bool = False
    filename: str = "audio.webm"
    content_type: str = "audio/webm"

    def __post_init__(self) -> None:
        if not self.audio:
            raise InputError("No audio file uploaded")

    def to_text_request(self, transcript: str) -> TranslationRequest:
        # audio mode: correction always on, plain style
        return TranslationRequest.create(
            transcript,
            self.target_language,
            self.input_language,
            use_offline=self.use_offline,
            medical_correction=True,
            simplify=False,
            dialect="standard",
        )


@dataclass(frozen=True)
class TranslationResult:
    """The contract returned for every successful request."""

    original: str
    corrected: str
    translated: str
    confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def unavailable(cls, original: str) -> "TranslationResult":
        """Display placeholder used by callers when a request hard-fails."""
        return cls(
            original=original,
            corrected=f"[Error/Offline] {original}",
            translated="Translation Service Unavailable",
            confidence=0.0,
        )
