"""Local inference backend (Ollama chat API) with ordered address fallback."""

from __future__ import annotations

from typing import Optional

import httpx
from loguru import logger

from clinilex.config.defaults import BACKEND, BackendDefaults
from clinilex.mt.core.types import BackendTimeoutError, BackendUnavailableError


class LocalBackend:
    """Try each candidate base URL in order; the first 2xx answer wins.

    Non-2xx answers, connection failures and unreadable bodies advance to the
    next candidate. Timeouts and task cancellation propagate immediately.
    """

    name = "local"

    def __init__(
        self,
        config: BackendDefaults = BACKEND,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config
        self._transport = transport
        self.candidates = config.local_candidates()

    async def chat(self, system_prompt: str, user_prompt: str, *, structured: bool) -> str:
        payload = {
            "model": self.config.local_model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "stream": False,
            "options": {
                "temperature": self.config.temperature,
                "num_predict": self.config.local_num_predict,
            },
        }
        if structured:
            payload["format"] = "json"

        async with httpx.AsyncClient(
            timeout=self.config.request_timeout_s, transport=self._transport
        ) as client:
            for base_url in self.candidates:
                try:
                    response = await client.post(f"{base_url}/api/chat", json=payload)
                    response.raise_for_status()
                    data = response.json()
                except httpx.TimeoutException as e:
                    raise BackendTimeoutError(f"Local backend timed out at {base_url}") from e
                except (httpx.HTTPError, ValueError) as e:
                    logger.warning(f"Local backend candidate {base_url} failed: {e}")
                    continue

                message = data.get("message") if isinstance(data, dict) else None
                content = message.get("content") if isinstance(message, dict) else None
                logger.debug(f"Local backend answered from {base_url}")
                return (content or "").strip()

        raise BackendUnavailableError("Local AI is offline.")
