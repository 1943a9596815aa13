"""Inference backends reachable over HTTP."""

from .hosted import HostedBackend
from .local import LocalBackend

__all__ = ["HostedBackend", "LocalBackend"]
