"""
Text quality scoring.

Decides whether extracted text can be trusted or needs re-extraction.

Example:
    >>> from textguard.quality import score
    >>> score(".................................................").is_valid
    False
    >>> score("Đã thanh toán.").is_valid
    True
"""

from textguard.quality.scorer import (
    QualityScorer,
    TextMetrics,
    ValidationResult,
    normalize_text,
    score,
    shannon_entropy,
)
from textguard.quality.segmentation import (
    Segmenter,
    whitespace_segmenter,
    word_segmenter,
    wordfreq_segmenter,
)

__all__ = [
    # Scoring
    "QualityScorer",
    "score",
    "TextMetrics",
    "ValidationResult",
    "normalize_text",
    "shannon_entropy",
    # Segmentation
    "Segmenter",
    "whitespace_segmenter",
    "word_segmenter",
    "wordfreq_segmenter",
]
