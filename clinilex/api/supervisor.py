from __future__ import annotations

import asyncio
from typing import Any, Callable, Optional, Protocol, Union

from clinilex.asr import (
    AudioRecorder,
    AudioUtterance,
    CaptureError,
    CaptureStateMachine,
    RecognizerFactory,
    TextUtterance,
    Utterance,
)
from clinilex.capabilities import LanguageCatalog, get_catalog
from clinilex.config.defaults import CAPTURE, PIPELINE
from clinilex.logging import PerformanceMetrics, create_logger, preview
from clinilex.mt import (
    AudioTranslationRequest,
    TranslationError,
    TranslationOrchestrator,
    TranslationRequest,
    TranslationResult,
    get_orchestrator,
)

"""Interpreter session: ties capture, translation and speech playback together.

One session owns one capture state machine and at most one in-flight
translation. Starting a new recording supersedes whatever is still running.
"""

SERVICE_UNAVAILABLE = "Service unavailable. Check API Key or Connection."
AUDIO_PENDING_ORIGINAL = "Audio Processing..."


class Speaker(Protocol):
    """Text-to-speech sink for translated output."""

    def speak(self, text: str, locale: str) -> None: ...

    def cancel(self) -> None: ...


class NullSpeaker:
    """Speaker that plays nothing (headless runs and tests)."""

    def speak(self, text: str, locale: str) -> None:
        return None

    def cancel(self) -> None:
        return None


class InterpreterSession:
    """Presentation-facing coordinator for a single interpreter screen."""

    def __init__(
        self,
        orchestrator: Optional[TranslationOrchestrator] = None,
        *,
        recognizer_factory: Optional[RecognizerFactory] = None,
        recorder_factory: Optional[Callable[[], AudioRecorder]] = None,
        speaker: Optional[Speaker] = None,
        catalog: Optional[LanguageCatalog] = None,
        input_language: str = "en",
        target_language: str = PIPELINE.target_language,
        use_offline: bool = False,
        autoplay: bool = CAPTURE.autoplay,
        autoplay_delay_s: float = CAPTURE.autoplay_delay_s,
        silence_timeout_s: float = CAPTURE.silence_timeout_s,
        now_fn: Optional[Callable[[], float]] = None,
        session_id: Optional[str] = None,
    ) -> None:
        self.orchestrator = orchestrator or get_orchestrator()
        self.catalog = catalog or get_catalog()
        self.speaker: Speaker = speaker or NullSpeaker()
        self.input_language = input_language
        self.target_language = target_language
        self.use_offline = use_offline
        self.autoplay = autoplay
        self.autoplay_delay_s = autoplay_delay_s

        # What the screen shows
        self.transcript = ""
        self.result: Optional[TranslationResult] = None
        self.error = ""
        self.is_loading = False

        self.logger = create_logger(component="session", session_id=session_id)
        self.metrics = PerformanceMetrics(logger=self.logger, component="session")

        self._generation = 0
        self._task: Optional[asyncio.Task[None]] = None
        self._autoplay_task: Optional[asyncio.Task[None]] = None
        self._watcher: Optional[asyncio.Task[None]] = None

        self.capture = CaptureStateMachine(
            recognizer_factory,
            self._on_utterance,
            locale=self.catalog.speech_locale(input_language),
            recorder_factory=recorder_factory,
            on_session_start=self._on_capture_start,
            on_transcript=self._on_transcript,
            on_error=self._on_capture_error,
            silence_timeout_s=silence_timeout_s,
            now_fn=now_fn,
            session_id=session_id,
        )

    # ------------------------------------------------------------------
    # recording
    # ------------------------------------------------------------------

    @property
    def is_recording(self) -> bool:
        return self.capture.is_active

    @property
    def generation(self) -> int:
        return self._generation

    async def toggle_recording(self) -> None:
        if self.capture.is_active:
            await self.stop_recording()
        else:
            await self.start_recording()

    async def start_recording(self) -> None:
        try:
            await self.capture.start()
        except CaptureError as e:
            self.error = str(e)
            self.logger.error("Could not start capture", error=str(e), code=e.code)
            return
        if not self.capture.fallback_mode and self.capture.is_active:
            self._cancel_watcher()
            self._watcher = asyncio.create_task(self.capture.watch_silence())

    async def stop_recording(self) -> None:
        self._cancel_watcher()
        await self.capture.stop()

    def _on_capture_start(self) -> None:
        # a new recording supersedes any translation still in flight
        self._generation += 1
        if self._task is not None and not self._task.done():
            self._task.cancel()
            self.metrics.increment_counter("translations_superseded")
            self.logger.info("Superseded in-flight translation", generation=self._generation)
        self._task = None
        self._cancel_autoplay()
        self.speaker.cancel()
        self.transcript = ""
        self.result = None
        self.error = ""
        self.is_loading = False

    def _on_transcript(self, text: str) -> None:
        self.transcript = text

    def _on_capture_error(self, exc: CaptureError) -> None:
        self._cancel_watcher()
        self.error = str(exc)

    def _on_utterance(self, utterance: Utterance) -> None:
        self._cancel_watcher()
        request: Union[TranslationRequest, AudioTranslationRequest]
        if isinstance(utterance, TextUtterance):
            self.transcript = utterance.text
            original = utterance.text
            request = TranslationRequest.create(
                utterance.text,
                self.target_language,
                self.input_language,
                use_offline=self.use_offline,
                medical_correction=True,
            )
        elif isinstance(utterance, AudioUtterance):
            original = AUDIO_PENDING_ORIGINAL
            request = AudioTranslationRequest(
                audio=utterance.audio,
                target_language=self.target_language,
                input_language=self.input_language,
                use_offline=self.use_offline,
                filename=utterance.filename,
                content_type=utterance.content_type,
            )
        else:  # pragma: no cover - exhaustive over Utterance
            raise TypeError(f"unknown utterance: {utterance!r}")

        self.is_loading = True
        self.error = ""
        self._task = asyncio.get_running_loop().create_task(
            self._run(self._generation, original, request)
        )

    # ------------------------------------------------------------------
    # translation task
    # ------------------------------------------------------------------

    async def _run(
        self,
        generation: int,
        original: str,
        request: Union[TranslationRequest, AudioTranslationRequest],
    ) -> None:
        audio = isinstance(request, AudioTranslationRequest)
        try:
            if isinstance(request, AudioTranslationRequest):
                result = await self.orchestrator.translate_audio(request)
            else:
                result = await self.orchestrator.translate(request)
        except asyncio.CancelledError:
            self.logger.debug("Translation task cancelled", generation=generation)
            raise
        except TranslationError as e:
            if generation != self._generation:
                return
            self.logger.error(
                "Translation request failed",
                error=str(e),
                error_type=type(e).__name__,
                text_preview=preview(original),
            )
            self.metrics.increment_counter("session_failures")
            self.result = TranslationResult.unavailable(original)
            self.error = SERVICE_UNAVAILABLE
            self.is_loading = False
            return

        if generation != self._generation:
            self.logger.info("Dropped stale translation result", generation=generation)
            return

        self.is_loading = False
        self.result = result
        if audio:
            self.transcript = result.original
        self.logger.info("Translation ready", confidence=result.confidence)

        if self.autoplay:
            self._cancel_autoplay()
            locale = self.catalog.speech_locale(self.target_language)
            self._autoplay_task = asyncio.create_task(self._speak_later(result.translated, locale))

    async def _speak_later(self, text: str, locale: str) -> None:
        await asyncio.sleep(self.autoplay_delay_s)
        self.speaker.speak(text, locale)

    async def wait_idle(self) -> Optional[TranslationResult]:
        """Wait for the in-flight translation (if any) and return the shown result."""
        task = self._task
        if task is not None:
            await asyncio.wait({task})
        return self.result

    def speak_result(self) -> None:
        """Replay the current translation through the speaker."""
        if self.result is None:
            return
        self.speaker.cancel()
        locale = self.catalog.speech_locale(self.target_language)
        self.speaker.speak(self.result.translated, locale)

    # ------------------------------------------------------------------
    # languages
    # ------------------------------------------------------------------

    def swap_languages(self) -> None:
        """Exchange input and target languages and clear the current exchange.

        Raises:
            CaptureError: If a capture session is active
            ValueError: If the input language is auto-detect
        """
        if self.input_language == "auto":
            raise ValueError("Cannot swap languages while input is auto-detect")
        self.speaker.cancel()
        self._cancel_autoplay()
        new_input, new_target = self.target_language, self.input_language
        self.capture.set_locale(self.catalog.speech_locale(new_input))
        self.input_language, self.target_language = new_input, new_target
        self.result = None
        self.transcript = ""
        self.logger.info(
            "Languages swapped", input_language=new_input, target_language=new_target
        )

    def set_input_language(self, code: str) -> None:
        self.capture.set_locale(self.catalog.speech_locale(code))
        self.input_language = code

    def set_target_language(self, code: str) -> None:
        self.target_language = code

    # ------------------------------------------------------------------
    # teardown
    # ------------------------------------------------------------------

    def _cancel_autoplay(self) -> None:
        if self._autoplay_task is not None and not self._autoplay_task.done():
            self._autoplay_task.cancel()
        self._autoplay_task = None

    def _cancel_watcher(self) -> None:
        if self._watcher is not None and not self._watcher.done():
            self._watcher.cancel()
        self._watcher = None

    def close(self) -> None:
        self._cancel_watcher()
        self._cancel_autoplay()
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self.speaker.cancel()
        self.capture.close()
        self.logger.close()

    def snapshot(self) -> dict[str, Any]:
        return {
            "recording": self.capture.status.value,
            "input_language": self.input_language,
            "target_language": self.target_language,
            "transcript": self.transcript,
            "result": self.result.to_dict() if self.result else None,
            "error": self.error,
            "loading": self.is_loading,
        }
