"""Static language catalog: code -> display name and speech locale.

Lookups accept BCP-47 style codes and a few ISO 639-2 aliases, falling back
to the base subtag (``pt-BR`` -> ``pt``). Unknown codes pass through as the
raw code so prompts still name *something* sensible.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

AUTO = "auto"
DEFAULT_SPEECH_LOCALE = "en-US"


@dataclass(frozen=True)
class LanguageDescriptor:
    """Display metadata for one supported language."""

    code: str
    display_name: str  # short UI name, e.g. "Mandarin"
    speech_locale: str  # recognizer / synthesizer locale, e.g. "zh-CN"
    prompt_name: str = ""  # name used in model prompts, e.g. "Mandarin Chinese"

    def __post_init__(self) -> None:
        if not self.prompt_name:
            object.__setattr__(self, "prompt_name", self.display_name)


_LANGUAGES: tuple[LanguageDescriptor, ...] = (
    LanguageDescriptor("en", "English", "en-US"),
    LanguageDescriptor("es", "Spanish", "es-ES"),
    LanguageDescriptor("fr", "French", "fr-FR"),
    LanguageDescriptor("de", "German", "de-DE"),
    LanguageDescriptor("pt", "Portuguese", "pt-PT"),
    LanguageDescriptor("it", "Italian", "it-IT"),
    LanguageDescriptor("ja", "Japanese", "ja-JP"),
    LanguageDescriptor("zh", "Mandarin", "zh-CN", "Mandarin Chinese"),
    LanguageDescriptor("ko", "Korean", "ko-KR"),
    LanguageDescriptor("ru", "Russian", "ru-RU"),
    LanguageDescriptor("ar", "Arabic", "ar-SA"),
    LanguageDescriptor("hi", "Hindi", "hi-IN"),
    LanguageDescriptor("pl", "Polish", "pl-PL"),
    LanguageDescriptor("tr", "Turkish", "tr-TR"),
    LanguageDescriptor("nl", "Dutch", "nl-NL"),
    LanguageDescriptor("vi", "Vietnamese", "vi-VN"),
    LanguageDescriptor("th", "Thai", "th-TH"),
    LanguageDescriptor("id", "Indonesian", "id-ID"),
    LanguageDescriptor("fil", "Filipino", "fil-PH"),
    LanguageDescriptor("sv", "Swedish", "sv-SE"),
)

# ISO 639-2 and legacy aliases
_ALIASES = {
    "eng": "en",
    "spa": "es",
    "fra": "fr",
    "fre": "fr",
    "deu": "de",
    "ger": "de",
    "por": "pt",
    "ita": "it",
    "jpn": "ja",
    "zho": "zh",
    "chi": "zh",
    "cmn": "zh",
    "kor": "ko",
    "rus": "ru",
    "ara": "ar",
    "hin": "hi",
    "pol": "pl",
    "tur": "tr",
    "nld": "nl",
    "dut": "nl",
    "vie": "vi",
    "tha": "th",
    "ind": "id",
    "tl": "fil",
    "tgl": "fil",
    "swe": "sv",
}


class LanguageCatalog:
    """Read-only lookup over the supported languages.

    Examples:
        >>> catalog = LanguageCatalog()
        >>> catalog.display_name("pt-BR")
        'Portuguese'
        >>> catalog.speech_locale("ko")
        'ko-KR'
        >>> catalog.display_name("xx")
        'xx'
    """

    def __init__(self, languages: tuple[LanguageDescriptor, ...] = _LANGUAGES) -> None:
        self._by_code: Dict[str, LanguageDescriptor] = {d.code: d for d in languages}

    def _canonical(self, code: str) -> Optional[str]:
        if not code:
            return None
        raw = code.strip().replace("_", "-")
        lowered = raw.lower()
        if lowered in self._by_code:
            return lowered
        base = lowered.split("-")[0]
        base = _ALIASES.get(base, base)
        return base if base in self._by_code else None

    def get(self, code: str) -> Optional[LanguageDescriptor]:
        canon = self._canonical(code)
        return self._by_code[canon] if canon else None

    def is_supported(self, code: str) -> bool:
        return self.get(code) is not None

    def display_name(self, code: str) -> str:
        """Short UI name, or the raw code when unknown (including ``auto``)."""
        desc = self.get(code)
        return desc.display_name if desc else code

    def prompt_name(self, code: str) -> str:
        """Name used inside model prompts, or the raw code when unknown."""
        desc = self.get(code)
        return desc.prompt_name if desc else code

    def speech_locale(self, code: str) -> str:
        desc = self.get(code)
        return desc.speech_locale if desc else DEFAULT_SPEECH_LOCALE

    def all(self) -> List[LanguageDescriptor]:
        return list(self._by_code.values())


_catalog: Optional[LanguageCatalog] = None


def get_catalog() -> LanguageCatalog:
    """Get the process-wide catalog instance."""
    global _catalog
    if _catalog is None:
        _catalog = LanguageCatalog()
    return _catalog
