"""Hosted inference backend (Groq, OpenAI-compatible chat + transcription API)."""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx
from loguru import logger

from clinilex.config.defaults import BACKEND, BackendDefaults
from clinilex.mt.core.types import (
    BackendConfigError,
    BackendConnectionError,
    BackendStatusError,
    BackendTimeoutError,
    TransportError,
)


class HostedBackend:
    """Single-shot calls against the hosted API; failures are never retried here."""

    name = "hosted"

    def __init__(
        self,
        config: BackendDefaults = BACKEND,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config
        self._transport = transport
        self.base_url = config.hosted_base_url.rstrip("/")

    def _client(self) -> httpx.AsyncClient:
        if not self.config.has_hosted_credential:
            raise BackendConfigError("Hosted backend credential is not configured")
        return httpx.AsyncClient(
            timeout=self.config.request_timeout_s,
            transport=self._transport,
            headers={"Authorization": f"Bearer {self.config.groq_api_key}"},
        )

    async def _post(self, path: str, **kwargs: Any) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            async with self._client() as client:
                response = await client.post(url, **kwargs)
        except httpx.TimeoutException as e:
            raise BackendTimeoutError(f"Hosted backend timed out: {e}") from e
        except httpx.RequestError as e:
            logger.error(f"Hosted backend request failed: {e}")
            raise BackendConnectionError(f"Hosted backend request failed: {e}") from e

        if not response.is_success:
            body = response.text[:300]
            logger.error(f"Hosted backend returned {response.status_code}: {body}")
            raise BackendStatusError(
                f"Groq API Error: {response.status_code} - {body}", response.status_code
            )

        try:
            data = response.json()
        except ValueError as e:
            raise TransportError("Hosted backend returned a non-JSON body") from e
        if not isinstance(data, dict):
            raise TransportError("Hosted backend returned an unexpected payload")
        return data

    async def chat(self, system_prompt: str, user_prompt: str, *, structured: bool) -> str:
        payload = {
            "model": self.config.hosted_model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": self.config.temperature,
            "response_format": {"type": "json_object" if structured else "text"},
        }
        data = await self._post("/chat/completions", json=payload)
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None
        return content or ""

    async def transcribe(
        self, audio: bytes, *, filename: str = "audio.webm", content_type: str = "audio/webm"
    ) -> str:
        logger.info(f"Transcribing audio payload ({len(audio)} bytes)")
        data = await self._post(
            "/audio/transcriptions",
            files={"file": (filename, audio, content_type)},
            data={
                "model": self.config.hosted_audio_model,
                "response_format": "json",
                "temperature": "0.0",
            },
        )
        text = data.get("text")
        return text if isinstance(text, str) else ""
