"""Recognizer event stream, capture collaborators and finalized utterances."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Union

__all__ = [
    "RecognizerStarted",
    "TranscriptUpdate",
    "RecognizerError",
    "RecognizerEnded",
    "RecognizerEvent",
    "Recognizer",
    "RecognizerFactory",
    "AudioRecorder",
    "TextUtterance",
    "AudioUtterance",
    "Utterance",
    "CaptureError",
    "RecognizerUnavailable",
]


@dataclass(frozen=True)
class RecognizerStarted:
    """Recognizer began listening."""

    type: str = "recognizer.start"


@dataclass(frozen=True)
class TranscriptUpdate:
    """Incremental recognition result.

    Final text is committed and accumulated; interim text replaces the previous
    interim hypothesis.
    """

    text: str = ""
    is_final: bool = False
    type: str = "recognizer.result"


@dataclass(frozen=True)
class RecognizerError:
    """Recognizer error, coded like the Web Speech API (``no-speech``, ``not-allowed``, ...)."""

    code: str = ""
    message: str = ""
    type: str = "recognizer.error"


@dataclass(frozen=True)
class RecognizerEnded:
    """Recognizer stopped delivering results (after stop(), abort() or on its own)."""

    type: str = "recognizer.end"


RecognizerEvent = Union[RecognizerStarted, TranscriptUpdate, RecognizerError, RecognizerEnded]


class Recognizer(Protocol):
    """Continuous speech recognizer bound to one locale.

    Implementations deliver ``RecognizerEvent`` objects through the ``emit``
    callback they were built with, in order.
    """

    locale: str

    def start(self) -> None: ...

    def stop(self) -> None:
        """Stop listening; pending audio still yields final results, then an end event."""
        ...

    def abort(self) -> None:
        """Stop immediately and drop pending results."""
        ...


# (locale, emit) -> Recognizer; raises RecognizerUnavailable when there is none
RecognizerFactory = Callable[[str, Callable[[RecognizerEvent], None]], Recognizer]


class AudioRecorder(Protocol):
    """Manual start/stop recorder used when continuous recognition is unavailable."""

    async def open(self) -> None:
        """Acquire the audio input and start buffering chunks."""
        ...

    def close(self) -> bytes:
        """Release the input and return the buffered chunks as one payload."""
        ...

    def abort(self) -> None:
        """Release the input and discard buffered audio."""
        ...


@dataclass(frozen=True)
class TextUtterance:
    text: str


@dataclass(frozen=True)
class AudioUtterance:
    audio: bytes
    content_type: str = "audio/wav"
    filename: str = "recording.wav"


Utterance = Union[TextUtterance, AudioUtterance]


class CaptureError(Exception):
    """Microphone permission denied or audio device unavailable."""

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.code = code


class RecognizerUnavailable(CaptureError):
    """No continuous recognizer exists on this platform; use the recorder."""
