"""
Unit tests for text quality scoring.
"""

import pytest

from textguard import ScoringConfig
from textguard.quality import (
    QualityScorer,
    normalize_text,
    score,
    shannon_entropy,
    whitespace_segmenter,
    word_segmenter,
    wordfreq_segmenter,
)
from textguard.quality.scorer import (
    REASON_LOW_DENSITY,
    REASON_LOW_ENTROPY,
    REASON_LOW_TOKEN_COUNT,
    REASON_TOO_SHORT,
    REASON_VALID,
    has_repetitive_pattern,
)


class TestNormalization:
    """Test text normalization and entropy helpers."""

    def test_collapses_whitespace(self):
        """Whitespace runs become one space and ends are trimmed."""
        assert normalize_text("  a \n\t b  ") == "a b"

    def test_nfc(self):
        """Decomposed accents are composed."""
        decomposed = "toa\u0301n"
        assert normalize_text(decomposed) == "to\u00e1n"

    def test_entropy_of_single_char_is_zero(self):
        """One repeated character carries no information."""
        assert shannon_entropy("aaaa") == 0.0

    def test_entropy_of_two_equal_chars(self):
        """Two equally likely characters give one bit."""
        assert shannon_entropy("abab") == pytest.approx(1.0)

    def test_entropy_ignores_case(self):
        """Case does not change entropy."""
        assert shannon_entropy("AbAb") == shannon_entropy("abab")

    def test_entropy_of_empty(self):
        """Empty text has zero entropy."""
        assert shannon_entropy("") == 0.0


class TestSegmenters:
    """Test token segmenters."""

    def test_word_segmenter_drops_punctuation(self):
        """Punctuation-only pieces are not tokens."""
        assert word_segmenter("Đã thanh toán.") == ["Đã", "thanh", "toán"]

    def test_word_segmenter_dot_leaders(self):
        """Dot leaders produce no tokens."""
        assert word_segmenter("." * 50) == []

    def test_whitespace_segmenter(self):
        """Whitespace segmenter keeps punctuation attached."""
        assert whitespace_segmenter("a, b.") == ["a,", "b."]

    def test_wordfreq_segmenter(self):
        """wordfreq tokenizer returns letter-bearing tokens."""
        segment = wordfreq_segmenter("en")
        tokens = segment("The report, in full.")
        assert "report" in tokens
        assert all(any(ch.isalpha() for ch in token) for token in tokens)


class TestScoringRules:
    """Test the scoring rules in order."""

    def test_dot_leaders_rejected(self):
        """Fifty dots pass the length gate but fail density."""
        result = score("." * 50)

        assert result.is_valid is False
        assert result.confidence == 0.0
        assert result.reason == REASON_LOW_DENSITY
        assert result.metrics.char_length == 50
        assert result.metrics.token_count == 0

    def test_vietnamese_short_sentence_valid(self):
        """A short accented sentence is accepted."""
        result = score("Đã thanh toán.")

        assert result.is_valid is True
        assert result.confidence == 1.0
        assert result.reason == REASON_VALID
        assert result.metrics.token_count == 3

    def test_normal_english_valid(self):
        """Ordinary prose is accepted with full confidence."""
        result = score("The committee approved the annual budget on Tuesday.")
        assert result.is_valid is True
        assert result.confidence == 1.0

    def test_below_min_length(self):
        """Text shorter than the minimum is rejected without metrics."""
        result = score("abcd efgh")

        assert result.is_valid is False
        assert result.confidence == 0.0
        assert result.reason == REASON_TOO_SHORT
        assert result.metrics.char_length == 9
        assert result.metrics.token_count == 0
        assert result.metrics.entropy == 0.0

    def test_exact_min_length_passes_gate(self):
        """Text exactly at the minimum length is scored, not rejected."""
        result = score("abcd efghi")

        assert result.metrics.char_length == 10
        assert result.reason != REASON_TOO_SHORT

    def test_whitespace_only_is_too_short(self):
        """Whitespace normalizes away to nothing."""
        result = score(" \n\t " * 10)
        assert result.reason == REASON_TOO_SHORT
        assert result.metrics.char_length == 0

    def test_density_dominates(self):
        """A segmenter finding no tokens forces zero confidence on rich text."""
        result = score(
            "Perfectly reasonable prose with plenty of variety.",
            segmenter=lambda text: [],
        )

        assert result.confidence == 0.0
        assert result.reason == REASON_LOW_DENSITY
        assert result.metrics.entropy > ScoringConfig().min_entropy

    def test_entropy_only_penalty(self):
        """Low entropy alone costs 0.6 confidence."""
        result = score("aa aa aa aa aa", segmenter=whitespace_segmenter)

        assert result.metrics.token_count == 5
        assert result.metrics.entropy < 1.5
        assert result.confidence == pytest.approx(0.4)
        assert result.reason == REASON_LOW_ENTROPY
        assert result.is_valid is False

    def test_token_count_only_penalty(self):
        """Too few tokens alone costs 0.4 confidence."""
        result = score("abcdefghij klmno", segmenter=whitespace_segmenter)

        assert result.metrics.token_count == 2
        assert result.confidence == pytest.approx(0.6)
        assert result.reason == REASON_LOW_TOKEN_COUNT
        assert result.is_valid is True

    def test_both_penalties_clamp_to_zero(self):
        """Entropy and sparseness penalties together reach zero."""
        result = score("aaaaaaaaaaaa", segmenter=whitespace_segmenter)

        assert result.confidence == pytest.approx(0.0)
        assert result.reason == REASON_LOW_TOKEN_COUNT
        assert result.is_valid is False

    def test_confidence_equal_to_threshold_is_invalid(self):
        """Validity requires confidence strictly above the threshold."""
        baseline = score("abcdefghij klmno", segmenter=whitespace_segmenter)
        config = ScoringConfig(confidence_threshold=baseline.confidence)

        result = score("abcdefghij klmno", config, segmenter=whitespace_segmenter)
        assert result.confidence == config.confidence_threshold
        assert result.is_valid is False

    def test_custom_thresholds(self):
        """Stricter config rejects text the default accepts."""
        text = "Short but real text here."
        assert score(text).is_valid is True

        strict = ScoringConfig(min_token_count=20)
        result = score(text, strict)
        assert result.reason == REASON_LOW_TOKEN_COUNT
        assert result.confidence == pytest.approx(0.6)

    @pytest.mark.parametrize(
        "text",
        [
            "  The   quick brown\n\nfox  ",
            "." * 50,
            "Đã thanh toán.",
            "toán toán toán",
            "",
        ],
    )
    def test_idempotent_over_normalization(self, text):
        """Scoring normalized text gives the same result."""
        assert score(text) == score(normalize_text(text))

    def test_confidence_always_in_unit_interval(self):
        """Confidence stays within [0, 1] for assorted inputs."""
        for text in ["", "a", "." * 500, "x " * 100, "Real words in a sentence.", "🙂" * 20]:
            result = score(text)
            assert 0.0 <= result.confidence <= 1.0


class TestQualityScorer:
    """Test the scorer object."""

    def test_callable(self):
        """Scorer instances can be used as plain functions."""
        scorer = QualityScorer()
        assert scorer("Đã thanh toán.") == scorer.score("Đã thanh toán.")

    def test_defaults(self):
        """Default config and segmenter are used when omitted."""
        scorer = QualityScorer()
        assert scorer.config == ScoringConfig()
        assert scorer.segmenter is word_segmenter

    def test_diagnostics(self):
        """Diagnostic metrics are filled in for scored text."""
        result = QualityScorer().score("_____ _____ _____ heading")

        assert result.metrics.unique_char_count > 0
        assert result.metrics.average_token_length > 0
        assert result.metrics.has_repetitive_pattern is True

    def test_to_dict(self):
        """Wire shape uses camelCase keys."""
        data = score("Đã thanh toán.").to_dict()

        assert data["isValid"] is True
        assert data["reason"] == "valid"
        assert data["metrics"]["tokenCount"] == 3
        assert "tokenDensity" in data["metrics"]


class TestRepetitivePattern:
    """Test repetitive pattern diagnostics."""

    def test_char_run(self):
        """Five of the same character in a row is repetitive."""
        assert has_repetitive_pattern("aaaaab", ["aaaaab"]) is True

    def test_dominant_token(self):
        """A token making up most of the text is repetitive."""
        tokens = ["page", "page", "page", "page", "one"]
        assert has_repetitive_pattern("page page page page one", tokens) is True

    def test_normal_text(self):
        """Ordinary prose is not repetitive."""
        text = "The committee approved a new budget"
        assert has_repetitive_pattern(text, text.split()) is False
