"""Fallback microphone recorder built on sounddevice.

Buffers 16 kHz mono float32 blocks between open() and close() and hands them
back as a single WAV payload. No side effects on import.
"""

from __future__ import annotations

import asyncio
import io
import threading
import wave
from typing import Any, List, Optional

import numpy as np

from clinilex.config.defaults import CAPTURE
from clinilex.logging import create_logger


def encode_wav(samples: np.ndarray, sample_rate: int, channels: int = 1) -> bytes:
    """Encode float32 samples in [-1, 1] as 16-bit PCM WAV bytes."""
    pcm = (np.clip(samples, -1.0, 1.0) * 32767.0).astype("<i2")
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(2)
        wf.setframerate(sample_rate)
        wf.writeframes(pcm.tobytes())
    return buf.getvalue()


class SoundDeviceRecorder:
    """Manual start/stop recorder; close() returns WAV bytes (empty if nothing was heard)."""

    def __init__(
        self,
        sample_rate: int = CAPTURE.sample_rate,
        channels: int = CAPTURE.channels,
        frame_samples: int = CAPTURE.frame_samples,
    ) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self.frame_samples = frame_samples
        self.logger = create_logger(component="recorder")
        self._stream: Optional[Any] = None
        self._chunks: List[np.ndarray] = []
        self._lock = threading.Lock()

    def _on_audio(self, indata: np.ndarray, frames: int, time_info, status) -> None:  # type: ignore
        if status:
            self.logger.warning("sounddevice status", status=str(status))
        with self._lock:
            self._chunks.append(indata.copy().reshape(-1))

    def _open_stream(self) -> Any:
        import sounddevice as sd  # type: ignore

        stream = sd.InputStream(
            samplerate=self.sample_rate,
            channels=self.channels,
            dtype="float32",
            blocksize=self.frame_samples,
            callback=self._on_audio,
        )
        stream.start()
        return stream

    async def open(self) -> None:
        if self._stream is not None:
            return
        with self._lock:
            self._chunks = []
        loop = asyncio.get_running_loop()
        self._stream = await loop.run_in_executor(None, self._open_stream)
        self.logger.info("Recorder opened", sample_rate=self.sample_rate, channels=self.channels)

    def _release(self) -> List[np.ndarray]:
        stream, self._stream = self._stream, None
        if stream is not None:
            stream.stop()
            stream.close()
        with self._lock:
            chunks, self._chunks = self._chunks, []
        return chunks

    def close(self) -> bytes:
        chunks = self._release()
        if not chunks:
            return b""
        samples = np.concatenate(chunks).astype(np.float32)
        if samples.size == 0:
            return b""
        duration_s = samples.size / (self.sample_rate * self.channels)
        self.logger.info("Recorder closed", duration_s=round(duration_s, 2))
        return encode_wav(samples, self.sample_rate, self.channels)

    def abort(self) -> None:
        self._release()
        self.logger.info("Recorder aborted")
