"""Capture state machine: decides when an utterance is done and submits it.

Continuous mode: IDLE -> LISTENING -> IDLE, or IDLE -> LISTENING -> FINALIZING
-> IDLE when the silence deadline passes with text accumulated. Fallback mode
(no continuous recognizer): IDLE -> RECORDING -> IDLE on explicit stop only.

Recognizer callbacks and the silence watchdog are the only triggers besides
user start/stop. Each session submits at most once.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from clinilex.config.defaults import CAPTURE
from clinilex.logging import create_logger, preview

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

__all__ = ["CaptureStatus", "CaptureSession", "CaptureStateMachine"]

IGNORED_ERRORS = {"no-speech"}
PERMISSION_ERRORS = {"not-allowed", "service-not-allowed", "audio-capture"}


class CaptureStatus(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"
    FINALIZING = "finalizing"
    RECORDING = "recording"


@dataclass
class CaptureSession:
    """Per-recording state; dropped when the session finalizes or aborts."""

    status: CaptureStatus
    committed_text: str = ""
    interim_text: str = ""
    silence_deadline: Optional[float] = None
    submitted: bool = False

    @property
    def accumulated_text(self) -> str:
        return " ".join(p for p in (self.committed_text, self.interim_text) if p)


class CaptureStateMachine:
    """Recording lifecycle with silence-based auto-submit and a recorder fallback."""

    def __init__(
        self,
        recognizer_factory: Optional[RecognizerFactory],
        on_submit: Callable[[Utterance], None],
        *,
        locale: str = "en-US",
        recorder_factory: Optional[Callable[[], AudioRecorder]] = None,
        on_session_start: Optional[Callable[[], None]] = None,
        on_transcript: Optional[Callable[[str], None]] = None,
        on_error: Optional[Callable[[CaptureError], None]] = None,
        silence_timeout_s: float = CAPTURE.silence_timeout_s,
        now_fn: Optional[Callable[[], float]] = None,
        session_id: Optional[str] = None,
    ) -> None:
        self.on_submit = on_submit
        self.on_session_start = on_session_start
        self.on_transcript = on_transcript
        self.on_error = on_error
        self.silence_timeout_s = silence_timeout_s
        self.now = now_fn or time.monotonic
        self.logger = create_logger(component="capture", session_id=session_id)

        self._recognizer_factory = recognizer_factory
        self._recorder_factory = recorder_factory
        self._recognizer: Optional[Recognizer] = None
        self._recorder: Optional[AudioRecorder] = None
        self._session: Optional[CaptureSession] = None
        self._starting = False
        self.fallback_mode = False
        self.locale = locale
        self._build_recognizer(locale)

    # ------------------------------------------------------------------
    # state
    # ------------------------------------------------------------------

    @property
    def status(self) -> CaptureStatus:
        return self._session.status if self._session else CaptureStatus.IDLE

    @property
    def session(self) -> Optional[CaptureSession]:
        return self._session

    @property
    def is_active(self) -> bool:
        return self._session is not None or self._starting

    def _build_recognizer(self, locale: str) -> None:
        self.locale = locale
        self._recognizer = None
        if self._recognizer_factory is None:
            self.fallback_mode = True
        else:
            try:
                self._recognizer = self._recognizer_factory(locale, self.handle)
                self.fallback_mode = False
            except RecognizerUnavailable:
                self.fallback_mode = True

        if self.fallback_mode:
            self.logger.warning(
                "Continuous speech recognition unavailable; using fallback audio recorder"
            )
        else:
            self.logger.info("Recognizer ready", locale=locale)

    def set_locale(self, locale: str) -> None:
        """Rebind capture to another speech locale; only allowed between sessions.

        Raises:
            CaptureError: If a capture session is active
        """
        if self.is_active:
            raise CaptureError("Cannot change input language while capture is active")
        if locale == self.locale:
            return
        if self._recognizer is not None:
            self._recognizer.abort()
        self._build_recognizer(locale)

    # ------------------------------------------------------------------
    # user actions
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Begin a new capture session (no-op while one is active).

        Raises:
            CaptureError: If the recognizer or audio input cannot be started
        """
        if self.is_active:
            self.logger.debug("Start ignored; capture already active", status=self.status.value)
            return

        if self.on_session_start:
            self.on_session_start()

        if self.fallback_mode:
            await self._start_recorder()
            return

        if self._recognizer is None:
            raise CaptureError("Speech recognition is not available")
        # a recognition left running by an earlier session would reject start()
        self._recognizer.abort()
        self._session = CaptureSession(CaptureStatus.LISTENING)
        try:
            self._recognizer.start()
        except Exception as e:
            self._session = None
            self.logger.error("Recognizer failed to start", error=str(e), locale=self.locale)
            raise CaptureError(f"Could not start speech recognition: {e}") from e
        self.logger.info("Listening", locale=self.locale)

    async def _start_recorder(self) -> None:
        recorder = (self._recorder_factory or _default_recorder_factory)()
        self._starting = True
        try:
            await recorder.open()
        except CaptureError:
            raise
        except Exception as e:
            self.logger.error("Audio input unavailable", error=str(e))
            raise CaptureError(
                "Microphone access denied. Check settings.", code="not-allowed"
            ) from e
        finally:
            self._starting = False
        self._recorder = recorder
        self._session = CaptureSession(CaptureStatus.RECORDING)
        self.logger.info("Recording (fallback mode)")

    async def stop(self) -> None:
        """Explicit user stop: finish the session and submit what was captured."""
        session = self._session
        if session is None:
            return

        if session.status is CaptureStatus.RECORDING:
            recorder = self._recorder
            self._session = None
            self._recorder = None
            payload = b""
            if recorder is not None:
                # closing stops the input stream; keep that off the event loop
                payload = await asyncio.get_running_loop().run_in_executor(None, recorder.close)
            self.logger.info("Recording stopped", audio_bytes=len(payload))
            if payload:
                self._submit(AudioUtterance(payload))
            return

        if self._recognizer is not None:
            self._recognizer.stop()
        self._finish("user-stop")

    def abort(self) -> None:
        """Drop the current session without submitting anything."""
        session = self._session
        if session is None:
            return
        self._session = None
        if session.status is CaptureStatus.RECORDING:
            if self._recorder is not None:
                self._recorder.abort()
            self._recorder = None
        elif self._recognizer is not None:
            self._recognizer.abort()
        self.logger.info("Capture aborted")

    def close(self) -> None:
        self.abort()
        if self._recognizer is not None:
            self._recognizer.abort()
            self._recognizer = None

    # ------------------------------------------------------------------
    # recognizer event stream
    # ------------------------------------------------------------------

    def handle(self, event: RecognizerEvent) -> None:
        """Apply one recognizer event to the machine."""
        if isinstance(event, RecognizerError):
            self._on_recognizer_error(event)
            return

        session = self._session
        if session is None or session.status not in (
            CaptureStatus.LISTENING,
            CaptureStatus.FINALIZING,
        ):
            self.logger.debug("Event ignored outside a session", event_type=event.type)
            return

        if isinstance(event, RecognizerStarted):
            session.silence_deadline = None
        elif isinstance(event, TranscriptUpdate):
            text = event.text.strip()
            if event.is_final:
                if text:
                    session.committed_text = " ".join(
                        p for p in (session.committed_text, text) if p
                    )
                session.interim_text = ""
            else:
                session.interim_text = text
            if session.status is CaptureStatus.LISTENING:
                session.silence_deadline = self.now() + self.silence_timeout_s
            if self.on_transcript:
                self.on_transcript(session.accumulated_text)
        elif isinstance(event, RecognizerEnded):
            self._finish("ended")

    async def consume(self, events) -> None:
        """Feed an async iterable of recognizer events through :meth:`handle`."""
        async for event in events:
            self.handle(event)

    def _on_recognizer_error(self, event: RecognizerError) -> None:
        code = event.code
        if code in IGNORED_ERRORS:
            return
        if code in PERMISSION_ERRORS:
            self.logger.error("Microphone permission denied", code=code)
            self._session = None
            if self._recognizer is not None:
                self._recognizer.abort()
            if self.on_error:
                self.on_error(CaptureError("Microphone permission denied.", code=code))
            return
        if code == "language-not-supported":
            self.logger.warning("Language not fully supported by recognizer", locale=self.locale)
            return
        self.logger.warning("Speech recognition error", code=code, detail=event.message)

    # ------------------------------------------------------------------
    # silence detection
    # ------------------------------------------------------------------

    def poll_silence(self) -> bool:
        """Request finalization if the silence deadline passed with text pending.

        Returns True only on the call that moved LISTENING -> FINALIZING.
        """
        session = self._session
        if session is None or session.status is not CaptureStatus.LISTENING:
            return False
        if session.silence_deadline is None or self.now() < session.silence_deadline:
            return False

        session.silence_deadline = None
        if not session.accumulated_text:
            return False

        session.status = CaptureStatus.FINALIZING
        self.logger.info(
            "Silence detected; auto-submitting", silence_timeout_s=self.silence_timeout_s
        )
        if self._recognizer is not None:
            self._recognizer.stop()
        return True

    async def watch_silence(self, interval_s: Optional[float] = None) -> None:
        """Poll the silence deadline until the current session ends (or cancelled)."""
        interval = CAPTURE.silence_poll_s if interval_s is None else interval_s
        session = self._session
        while session is not None and self._session is session:
            await asyncio.sleep(interval)
            self.poll_silence()

    # ------------------------------------------------------------------
    # submission
    # ------------------------------------------------------------------

    def _finish(self, reason: str) -> None:
        session = self._session
        if session is None:
            return
        self._session = None
        text = session.accumulated_text
        self.logger.info("Capture finished", reason=reason, text_preview=preview(text))
        if text and not session.submitted:
            session.submitted = True
            self._submit(TextUtterance(text))

    def _submit(self, utterance: Utterance) -> None:
        self.on_submit(utterance)


def _default_recorder_factory() -> AudioRecorder:
    from clinilex.audio.recorder import SoundDeviceRecorder

    return SoundDeviceRecorder()
