"""CliniLex API layer: interpreter session coordinator and HTTP server."""

from .supervisor import InterpreterSession, NullSpeaker, Speaker

__all__ = ["InterpreterSession", "NullSpeaker", "Speaker"]
