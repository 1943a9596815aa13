"""Fake fallback recorder."""

from __future__ import annotations

from typing import List


class FakeRecorder:
    def __init__(self, payload: bytes = b"RIFF0000WAVEfmt ", fail_open: bool = False) -> None:
        self.payload = payload
        self.fail_open = fail_open
        self.calls: List[str] = []

    async def open(self) -> None:
        self.calls.append("open")
        if self.fail_open:
            raise PermissionError("microphone blocked")

    def close(self) -> bytes:
        self.calls.append("close")
        return self.payload

    def abort(self) -> None:
        self.calls.append("abort")
