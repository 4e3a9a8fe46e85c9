"""
Token segmentation for quality scoring.

A segmenter turns normalized text into semantic units (words or
syllables). Scoring only counts the units, so any language-specific
tokenizer can be plugged in:
- whitespace_segmenter: plain whitespace split (useful in tests)
- word_segmenter: language-agnostic split on punctuation and symbols
- wordfreq_segmenter: language-aware tokenization via wordfreq
"""

from __future__ import annotations

import re
from collections.abc import Callable

from wordfreq import tokenize

Segmenter = Callable[[str], list[str]]

# Runs of whitespace, punctuation or symbols separate words
WORD_SPLIT_PATTERN = re.compile(r"[\W_]+", re.UNICODE)


def _has_letter(token: str) -> bool:
    return any(ch.isalpha() for ch in token)


def whitespace_segmenter(text: str) -> list[str]:
    """Split on whitespace only."""
    return text.split()


def word_segmenter(text: str) -> list[str]:
    """Split on whitespace, punctuation and symbols.

    Keeps only pieces containing at least one letter, in any script.
    Vietnamese syllables, Latin words and Cyrillic words all count as
    one unit each.

    Example:
        >>> word_segmenter("Đã thanh toán.")
        ['Đã', 'thanh', 'toán']
    """
    return [piece for piece in WORD_SPLIT_PATTERN.split(text) if piece and _has_letter(piece)]


def wordfreq_segmenter(language: str = "en") -> Segmenter:
    """Build a segmenter backed by wordfreq's tokenizer.

    wordfreq applies language-specific rules (e.g. CJK word
    segmentation), so this is the most accurate counter when the
    document language is known.

    Args:
        language: Language code passed to ``wordfreq.tokenize``.

    Returns:
        Segmenter returning letter-bearing tokens.
    """

    def segment(text: str) -> list[str]:
        return [token for token in tokenize(text, language) if _has_letter(token)]

    return segment
