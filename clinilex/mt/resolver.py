"""Per-request backend selection and deadline-bounded inference calls.

Selection is a pre-request decision: hosted when a credential exists and the
caller did not ask for offline use, local otherwise. A hosted failure never
falls back to local and a local failure never falls back to hosted.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Dict, Optional, TypeVar

import httpx
from loguru import logger

from clinilex.config.defaults import BACKEND, BackendDefaults
from clinilex.mt.backends import HostedBackend, LocalBackend
from clinilex.mt.core.protocol import ChatBackend
from clinilex.mt.core.types import BackendConfigError, BackendTimeoutError

T = TypeVar("T")


class BackendResolver:
    """Choose hosted or local inference per call and enforce the call deadline."""

    def __init__(
        self,
        config: BackendDefaults = BACKEND,
        *,
        hosted: Optional[HostedBackend] = None,
        local: Optional[ChatBackend] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config
        self.hosted = hosted or HostedBackend(config, transport=transport)
        self.local = local or LocalBackend(config, transport=transport)

    def select(self, prefer_local: bool) -> ChatBackend:
        if not prefer_local and self.config.has_hosted_credential:
            return self.hosted
        return self.local

    async def _bounded(self, call: Awaitable[T], deadline_s: Optional[float], label: str) -> T:
        deadline = self.config.request_timeout_s if deadline_s is None else deadline_s
        try:
            return await asyncio.wait_for(call, timeout=deadline)
        except asyncio.TimeoutError as e:
            logger.warning(f"{label} call exceeded {deadline:.1f}s deadline")
            raise BackendTimeoutError(f"{label} backend exceeded {deadline:.1f}s deadline") from e

    async def infer(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        structured: bool = False,
        prefer_local: bool = False,
        deadline_s: Optional[float] = None,
    ) -> str:
        """Run one chat call on the selected backend within the deadline.

        Raises:
            TransportError: Any backend failure (see subclasses)
            asyncio.CancelledError: If the calling task is cancelled
        """
        backend = self.select(prefer_local)
        if backend is self.local:
            logger.info("Using local backend")
        return await self._bounded(
            backend.chat(system_prompt, user_prompt, structured=structured),
            deadline_s,
            backend.name,
        )

    async def transcribe(
        self,
        audio: bytes,
        *,
        filename: str = "audio.webm",
        content_type: str = "audio/webm",
        deadline_s: Optional[float] = None,
    ) -> str:
        """Speech-to-text through the hosted backend (the local one has none)."""
        if not self.config.has_hosted_credential:
            raise BackendConfigError("Speech-to-text requires a hosted backend credential")
        return await self._bounded(
            self.hosted.transcribe(audio, filename=filename, content_type=content_type),
            deadline_s,
            "transcription",
        )

    def describe(self) -> Dict[str, Any]:
        return {
            "hosted_configured": self.config.has_hosted_credential,
            "hosted_model": self.config.hosted_model,
            "local_model": self.config.local_model,
            "local_candidates": list(self.config.local_candidates()),
            "default_backend": self.select(prefer_local=False).name,
            "request_timeout_s": self.config.request_timeout_s,
        }
