"""CliniLex: clinical interpreter pipeline (speech capture -> correction -> translation)."""

__version__ = "0.1.0"
