"""Microphone recording for the fallback capture path."""

from .recorder import SoundDeviceRecorder, encode_wav

__all__ = ["SoundDeviceRecorder", "encode_wav"]
