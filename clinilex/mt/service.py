"""Two-pass translation pipeline: correction pass, then structured translation pass."""

from __future__ import annotations

import asyncio
import math
import time
from typing import Any, Dict, Optional

from clinilex.capabilities import LanguageCatalog, get_catalog
from clinilex.config.defaults import PIPELINE, PipelineDefaults
from clinilex.logging import PerformanceMetrics, create_logger, preview
from clinilex.post import clean, parse_json_object

from . import prompts
from .core.types import (
    AudioTranslationRequest,
    InputError,
    MalformedOutputError,
    TranslationError,
    TranslationRequest,
    TranslationResult,
)
from .resolver import BackendResolver

PLACEHOLDER_CORRECTED = "Medical context unavailable"
DEGRADED_CORRECTED = "Translation processing error (Raw Output)"


def coerce_confidence(value: Any, default: float) -> float:
    """Model-supplied confidence clamped to [0, 1]; ``default`` when absent or zero.

    Percent-style values (e.g. ``95``) are scaled down.
    """
    if isinstance(value, bool) or value is None:
        return default
    try:
        conf = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(conf) or conf == 0:
        return default
    if 1.0 < conf <= 100.0:
        conf = conf / 100.0
    return min(1.0, max(0.0, conf))


class TranslationOrchestrator:
    """Turn a normalized request into a ``TranslationResult``.

    Backend failures propagate as ``TransportError`` subclasses. Unusable
    structured output is absorbed into a degraded result (confidence 0.5).
    """

    def __init__(
        self,
        resolver: Optional[BackendResolver] = None,
        *,
        catalog: Optional[LanguageCatalog] = None,
        pipeline: PipelineDefaults = PIPELINE,
        session_id: Optional[str] = None,
    ) -> None:
        self.resolver = resolver or BackendResolver()
        self.catalog = catalog or get_catalog()
        self.pipeline = pipeline

        self.logger = create_logger(component="translate", session_id=session_id)
        self.metrics = PerformanceMetrics(logger=self.logger, component="translate")
        self.metrics.set_threshold("translation_latency", warning=15000.0, critical=45000.0)

    async def translate(self, request: TranslationRequest) -> TranslationResult:
        """Run the correction (optional) and translation passes for ``request``.

        Raises:
            InputError: If the request text is empty after trimming
            TransportError: If a backend call fails or exceeds its deadline
        """
        original = request.text.strip()[: self.pipeline.max_input_chars]
        if not original:
            raise InputError("Input text is empty.")

        input_name = self.catalog.prompt_name(request.input_language)
        target_name = self.catalog.prompt_name(request.target_language)
        backend = self.resolver.select(request.use_offline).name

        self.logger.info(
            "Translating",
            text_preview=preview(original),
            input_language=input_name,
            target_language=target_name,
            backend=backend,
            medical_correction=request.medical_correction,
            simplify=request.simplify,
        )

        started = time.monotonic()
        try:
            source = original
            if request.medical_correction:
                source = await self._correct(original, input_name, request.use_offline)

            raw = await self.resolver.infer(
                prompts.translation_system_prompt(
                    input_name, target_name, simplify=request.simplify, dialect=request.dialect
                ),
                prompts.translation_user_prompt(source, input_name, target_name),
                structured=True,
                prefer_local=request.use_offline,
            )
        except asyncio.CancelledError:
            self.logger.info("Translation cancelled", text_preview=preview(original))
            raise
        except TranslationError as e:
            self.metrics.increment_counter("translations_failed")
            self.logger.error(
                "Translation failed",
                error=str(e),
                error_type=type(e).__name__,
                connectivity=e.is_connectivity,
                backend=backend,
            )
            raise

        result = self._build_result(original, raw)
        self.metrics.record_latency(
            "translation_latency", (time.monotonic() - started) * 1000, backend=backend
        )
        self.metrics.increment_counter("translations_success")
        return result

    async def translate_audio(self, request: AudioTranslationRequest) -> TranslationResult:
        """Transcribe recorded audio, then translate the transcript.

        Transcription failures are fatal; there is no fallback transcription path.
        """
        self.logger.info("Transcribing audio", audio_bytes=len(request.audio))
        started = time.monotonic()
        try:
            transcript = await self.resolver.transcribe(
                request.audio, filename=request.filename, content_type=request.content_type
            )
        except TranslationError as e:
            self.metrics.increment_counter("transcriptions_failed")
            self.logger.error(
                "Transcription failed", error=str(e), error_type=type(e).__name__
            )
            raise
        self.metrics.record_latency("transcription_latency", (time.monotonic() - started) * 1000)
        self.logger.info("Audio transcribed", text_preview=preview(transcript, 50))

        return await self.translate(request.to_text_request(transcript))

    async def _correct(self, text: str, input_name: str, use_offline: bool) -> str:
        started = time.monotonic()
        raw = await self.resolver.infer(
            prompts.correction_system_prompt(input_name),
            prompts.correction_user_prompt(text),
            structured=False,
            prefer_local=use_offline,
        )
        self.metrics.record_latency("correction_latency", (time.monotonic() - started) * 1000)
        corrected = clean(raw)
        if not corrected:
            self.logger.warning("Correction pass returned nothing; using input as-is")
            return text
        return corrected

    def _parse_translation(self, raw: str) -> Dict[str, Any]:
        parsed = parse_json_object(raw)
        if parsed is None:
            raise MalformedOutputError("response is not a JSON object")
        translated = parsed.get("translated")
        if not isinstance(translated, str) or not translated.strip():
            raise MalformedOutputError("response lacks a 'translated' field")
        return parsed

    def _build_result(self, original: str, raw: str) -> TranslationResult:
        try:
            parsed = self._parse_translation(raw)
        except MalformedOutputError as e:
            self.metrics.increment_counter("translations_degraded")
            self.logger.warning(
                "Structured output unusable; returning raw text",
                reason=str(e),
                raw_preview=preview(raw, 120),
            )
            return TranslationResult(
                original=original,
                corrected=DEGRADED_CORRECTED,
                translated=clean(raw.replace("{", "").replace("}", "")),
                confidence=self.pipeline.degraded_confidence,
            )

        corrected = parsed.get("corrected")
        if not isinstance(corrected, str) or not corrected.strip():
            corrected = PLACEHOLDER_CORRECTED

        return TranslationResult(
            original=original,
            corrected=corrected.strip(),
            translated=clean(parsed["translated"]),
            confidence=coerce_confidence(
                parsed.get("confidence"), self.pipeline.default_confidence
            ),
        )


_default_orchestrator: Optional[TranslationOrchestrator] = None


def get_orchestrator() -> TranslationOrchestrator:
    """Get the process-wide orchestrator built from the environment config."""
    global _default_orchestrator
    if _default_orchestrator is None:
        _default_orchestrator = TranslationOrchestrator()
    return _default_orchestrator
