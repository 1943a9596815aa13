"""Strip LLM formatting artifacts from free-text model output.

Only boundary wrappers are removed (label prefix, preamble word, one pair of
wrapping quotes); fence markers are removed wherever they occur. Passes
repeat until the text stops changing, so ``clean(clean(s)) == clean(s)``.
"""

from __future__ import annotations

import re
from typing import Optional

# a fence tag is any word glued to the backticks and followed by whitespace
FENCE_RE = re.compile(r"```(?:[A-Za-z0-9_+-]+(?=\s|$))?")

LABEL_RE = re.compile(r"^\[[^\]\n]*\]:?")
PREAMBLE_RE = re.compile(
    r"^(?:here is|this is|output|correction|translation|answer):", re.IGNORECASE
)

QUOTE_PAIRS = {
    '"': '"',
    "'": "'",
    "“": "”",  # curly double quotes
    "«": "»",  # guillemets
}


def strip_fences(text: str) -> str:
    """Remove code-fence markers (with an optional language tag) anywhere."""
    return FENCE_RE.sub("", text)


def _strip_wrapping_quotes(text: str) -> str:
    if len(text) >= 2 and QUOTE_PAIRS.get(text[0]) == text[-1]:
        return text[1:-1]
    return text


def _clean_once(text: str) -> str:
    out = strip_fences(text).strip()
    out = LABEL_RE.sub("", out, count=1).strip()
    out = PREAMBLE_RE.sub("", out, count=1).strip()
    return _strip_wrapping_quotes(out).strip()


def clean(text: Optional[str]) -> str:
    """Return ``text`` without fences, speaker labels, preambles or wrapping quotes."""
    if not text:
        return ""
    previous = None
    out = text
    # every changing pass only removes characters, so this terminates
    while out != previous:
        previous = out
        out = _clean_once(out)
    return out
