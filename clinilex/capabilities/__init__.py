"""Capabilities module: the static language catalog shared by all components."""

from .languages import (
    AUTO,
    DEFAULT_SPEECH_LOCALE,
    LanguageCatalog,
    LanguageDescriptor,
    get_catalog,
)

__all__ = [
    "AUTO",
    "DEFAULT_SPEECH_LOCALE",
    "LanguageCatalog",
    "LanguageDescriptor",
    "get_catalog",
]
