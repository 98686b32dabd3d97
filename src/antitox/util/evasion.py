"""Normalization of common filter-evasion tricks in chat text."""

from __future__ import annotations

import re
from typing import Dict

LEET_MAP: Dict[str, str] = {
    "4": "a",
    "@": "a",
    "3": "e",
    "1": "i",
    "!": "i",
    "0": "o",
    "5": "s",
    "$": "s",
    "7": "t",
}

# "k i l l" -> "kill": a space between two single-character tokens
_SPACED_LETTERS = re.compile(r"(?<=\b\S) (?=\S\b)")
# "k.i.l.l" / "k-i-l-l" / "k_i_l_l" / "k*i*l*l" -> "kill"
_INFIX_PUNCTUATION = re.compile(r"(?<=\S)[.\-_*](?=\S)")
_LEET_PATTERN = re.compile("|".join(re.escape(symbol) for symbol in LEET_MAP))

NORMALIZED_MARKER = " [normalized: "
_ANNOTATION = re.compile(r" \[normalized: [^\]]*\]$")


def normalize_evasion(text: str) -> str:
    """Return the de-obfuscated, lowercased form of ``text``."""
    collapsed = _SPACED_LETTERS.sub("", text)
    collapsed = _INFIX_PUNCTUATION.sub("", collapsed)
    return _LEET_PATTERN.sub(lambda match: LEET_MAP[match.group(0)], collapsed.lower())


def annotate_evasion(text: str) -> str:
    """
    Return ``text`` with its normalized form appended when they differ.

    Case-only differences are not annotated. The classifier sees both the
    original and the normalized form, e.g. ``"k.i.l.l y0u [normalized: kill you]"``.
    """
    normalized = normalize_evasion(text)
    if normalized.casefold() == text.casefold():
        return text
    return f"{text}{NORMALIZED_MARKER}{normalized}]"


def strip_annotation(text: str) -> str:
    """Remove a trailing ``[normalized: ...]`` annotation, if any."""
    return _ANNOTATION.sub("", text)
