"""Backend protocols for the translation pipeline."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ChatBackend(Protocol):
    """Chat-completion style inference backend."""

    name: str

    async def chat(self, system_prompt: str, user_prompt: str, *, structured: bool) -> str:
        """Send system+user messages, return the model's free text."""
        ...


@runtime_checkable
class SpeechToTextBackend(Protocol):
    """Speech-to-text backend for recorded audio payloads."""

    async def transcribe(self, audio: bytes, *, filename: str, content_type: str) -> str:
        """Return the transcript of ``audio``."""
        ...
