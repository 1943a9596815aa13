"""Speaker that records what it was asked to say."""

from __future__ import annotations

from typing import List, Tuple


class RecordingSpeaker:
    def __init__(self) -> None:
        self.spoken: List[Tuple[str, str]] = []
        self.cancels = 0

    def speak(self, text: str, locale: str) -> None:
        self.spoken.append((text, locale))

    def cancel(self) -> None:
        self.cancels += 1
