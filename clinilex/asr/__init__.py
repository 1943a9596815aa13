"""Speech capture: recognizer events and the capture state machine."""

from .capture import CaptureSession, CaptureStateMachine, CaptureStatus
from .events import (
    AudioRecorder,
    AudioUtterance,
    CaptureError,
    Recognizer,
    RecognizerEnded,
    RecognizerError,
    RecognizerEvent,
    RecognizerFactory,
    RecognizerStarted,
    RecognizerUnavailable,
    TextUtterance,
    TranscriptUpdate,
    Utterance,
)

__all__ = [
    "AudioRecorder",
    "AudioUtterance",
    "CaptureError",
    "CaptureSession",
    "CaptureStateMachine",
    "CaptureStatus",
    "Recognizer",
    "RecognizerEnded",
    "RecognizerError",
    "RecognizerEvent",
    "RecognizerFactory",
    "RecognizerStarted",
    "RecognizerUnavailable",
    "TextUtterance",
    "TranscriptUpdate",
    "Utterance",
]
