"""
Text quality scoring for extracted page text.

Decides whether text pulled from a PDF text layer (or OCR) is meaningful
enough to use as-is. The rules, in order:
1. Too short after normalization -> rejected outright
2. Token density below minimum -> rejected outright (catches dot leaders,
   underscores and other character noise that passes a length check)
3. Start from full confidence and apply penalties for low character
   entropy (-0.6) and too few tokens (-0.4)

Scoring is pure: no I/O, no shared state, safe to run in parallel.
"""

from __future__ import annotations

import logging
import math
import re
import unicodedata
from collections import Counter
from dataclasses import dataclass
from typing import Any

from textguard.config import ScoringConfig
from textguard.quality.segmentation import Segmenter, word_segmenter

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

ENTROPY_PENALTY = 0.6
SPARSENESS_PENALTY = 0.4

REASON_VALID = "valid"
REASON_TOO_SHORT = "below minimum length"
REASON_LOW_DENSITY = "low token density"
REASON_LOW_ENTROPY = "low entropy"
REASON_LOW_TOKEN_COUNT = "low token count"

WHITESPACE_PATTERN = re.compile(r"\s+")
REPEATED_CHAR_PATTERN = re.compile(r"(.)\1{4,}")

# A single token above this share of all tokens counts as repetitive
MAX_TOKEN_SHARE = 0.3


# =============================================================================
# DATA STRUCTURES
# =============================================================================


@dataclass(frozen=True)
class TextMetrics:
    """Measurements computed once per scoring call.

    Only char_length, token_count, token_density and entropy feed the
    confidence rules. The remaining fields are diagnostics.
    """

    char_length: int
    token_count: int
    token_density: float
    entropy: float
    unique_char_count: int = 0
    average_token_length: float = 0.0
    has_repetitive_pattern: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "charLength": self.char_length,
            "tokenCount": self.token_count,
            "tokenDensity": self.token_density,
            "entropy": self.entropy,
            "uniqueCharCount": self.unique_char_count,
            "averageTokenLength": self.average_token_length,
            "hasRepetitivePattern": self.has_repetitive_pattern,
        }


@dataclass(frozen=True)
class ValidationResult:
    """Verdict on a piece of extracted text."""

    confidence: float
    is_valid: bool
    reason: str
    metrics: TextMetrics

    def to_dict(self) -> dict[str, Any]:
        return {
            "confidence": self.confidence,
            "isValid": self.is_valid,
            "reason": self.reason,
            "metrics": self.metrics.to_dict(),
        }


# =============================================================================
# HELPERS
# =============================================================================


def normalize_text(text: str) -> str:
    """NFC-normalize, collapse whitespace runs and trim."""
    normalized = unicodedata.normalize("NFC", text)
    return WHITESPACE_PATTERN.sub(" ", normalized).strip()


def shannon_entropy(text: str) -> float:
    """Shannon entropy in bits over lower-cased characters."""
    if not text:
        return 0.0
    lowered = text.lower()
    counts = Counter(lowered)
    length = len(lowered)
    entropy = 0.0
    for count in counts.values():
        probability = count / length
        entropy -= probability * math.log2(probability)
    return entropy


def has_repetitive_pattern(text: str, tokens: list[str]) -> bool:
    """Detect runs of one character, repeated prefixes or a dominant token."""
    if REPEATED_CHAR_PATTERN.search(text):
        return True

    for size in range(2, 5):
        prefix = text[:size]
        if len(prefix) == size and prefix * 3 in text:
            return True

    if tokens:
        most_common = Counter(token.lower() for token in tokens).most_common(1)[0][1]
        if most_common / len(tokens) > MAX_TOKEN_SHARE and len(tokens) > 3:
            return True

    return False


# =============================================================================
# SCORER
# =============================================================================


class QualityScorer:
    """Scores extracted text against a fixed set of thresholds.

    Usage:
        scorer = QualityScorer(ScoringConfig())
        result = scorer.score(page_text)
        if not result.is_valid:
            page_text = run_ocr(page)

    Tests can pass ``whitespace_segmenter`` to isolate the scoring rules
    from tokenizer behavior.
    """

    def __init__(
        self,
        config: ScoringConfig | None = None,
        segmenter: Segmenter | None = None,
    ):
        """Initialize the scorer.

        Args:
            config: Scoring thresholds (defaults if None).
            segmenter: Token counter (language-agnostic word split if None).
        """
        self.config = config or ScoringConfig()
        self.segmenter = segmenter or word_segmenter

    def score(self, text: str) -> ValidationResult:
        """Score text quality.

        Args:
            text: Raw extracted text.

        Returns:
            ValidationResult with confidence, verdict, reason and metrics.
        """
        config = self.config
        normalized = normalize_text(text)
        char_length = len(normalized)

        # Rule 1: length gate, nothing else is computed
        if char_length < config.min_absolute_length:
            return ValidationResult(
                confidence=0.0,
                is_valid=False,
                reason=REASON_TOO_SHORT,
                metrics=TextMetrics(
                    char_length=char_length,
                    token_count=0,
                    token_density=0.0,
                    entropy=0.0,
                ),
            )

        tokens = self.segmenter(normalized)
        token_count = len(tokens)
        token_density = token_count / char_length if char_length else 0.0
        entropy = shannon_entropy(normalized)

        metrics = TextMetrics(
            char_length=char_length,
            token_count=token_count,
            token_density=token_density,
            entropy=entropy,
            unique_char_count=len(set(normalized.lower())),
            average_token_length=(
                sum(len(token) for token in tokens) / token_count if token_count else 0.0
            ),
            has_repetitive_pattern=has_repetitive_pattern(normalized, tokens),
        )

        # Rule 2: density dominates every other rule
        if token_density < config.min_token_density:
            return ValidationResult(
                confidence=0.0,
                is_valid=False,
                reason=REASON_LOW_DENSITY,
                metrics=metrics,
            )

        confidence = 1.0
        reason = REASON_VALID

        # Rule 3: repetition
        if entropy < config.min_entropy:
            confidence -= ENTROPY_PENALTY
            reason = REASON_LOW_ENTROPY

        # Rule 4: sparseness
        if token_count < config.min_token_count:
            confidence -= SPARSENESS_PENALTY
            reason = REASON_LOW_TOKEN_COUNT

        confidence = max(0.0, min(1.0, confidence))

        return ValidationResult(
            confidence=confidence,
            is_valid=confidence > config.confidence_threshold,
            reason=reason,
            metrics=metrics,
        )

    __call__ = score


def score(
    text: str,
    config: ScoringConfig | None = None,
    segmenter: Segmenter | None = None,
) -> ValidationResult:
    """Convenience function for one-off scoring.

    Args:
        text: Raw extracted text.
        config: Scoring thresholds.
        segmenter: Optional token counter.

    Returns:
        ValidationResult for the text.
    """
    return QualityScorer(config, segmenter).score(text)
