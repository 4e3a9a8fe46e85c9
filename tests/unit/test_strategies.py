"""
Unit tests for structuring strategies.
"""

import json
from unittest.mock import MagicMock

import pytest

from textguard import (
    CanonicalDocument,
    DocumentType,
    DocumentValidator,
    ExternalCallError,
    HeadingBlock,
    InputError,
    ListBlock,
    ParagraphBlock,
)
from textguard.structuring import (
    HeuristicStrategy,
    RichStrategy,
    SimplifiedStrategy,
    StructuringOptions,
    TrivialStrategy,
    default_strategies,
    detect_language,
)
from textguard.structuring.strategies import heading_level

SERVICE_DOCUMENT = {
    "metadata": {"documentType": "report", "language": "en", "confidenceScore": 0.85},
    "content": [
        {"id": "p-1", "type": "paragraph", "content": [{"type": "text", "text": "Hello"}]}
    ],
}

CONTRACT_TEXT = """1. Introduction

This agreement covers the supply of goods
between the two parties named below.

- Apples
- Pears

1.2 Scope

SECTION OVERVIEW

1) first delivery
2) second delivery"""


@pytest.fixture
def client():
    """Structuring client returning a service document."""
    mock = MagicMock()
    mock.complete_json.return_value = json.dumps(SERVICE_DOCUMENT)
    return mock


class TestStructuringOptions:
    """Test per-request options."""

    def test_defaults(self):
        """Fallback is enabled and no hints are set."""
        options = StructuringOptions()
        assert options.language is None
        assert options.document_type is None
        assert options.enable_fallback is True

    def test_document_type_string_coerced(self):
        """Document type strings become enum members."""
        assert StructuringOptions(document_type="contract").document_type is DocumentType.CONTRACT

    def test_unknown_document_type(self):
        """Unknown document types are input errors."""
        with pytest.raises(InputError, match="documentType"):
            StructuringOptions(document_type="memo")

    def test_language_stripped(self):
        """Language hints are trimmed."""
        assert StructuringOptions(language=" vi ").language == "vi"

    @pytest.mark.parametrize("language", ["", "   ", 5, ["en"]])
    def test_invalid_language(self, language):
        """Blank or non-string language hints are input errors."""
        with pytest.raises(InputError, match="language"):
            StructuringOptions(language=language)


class TestServiceStrategies:
    """Test the rich and simplified tiers."""

    def test_rich_stamps_envelope(self, client):
        """Missing version and timestamps are filled in."""
        candidate = RichStrategy(client).attempt("Hello", StructuringOptions(), timeout=12.0)

        assert candidate["version"] == "1.0"
        assert candidate["createdAt"]
        assert candidate["updatedAt"]
        assert DocumentValidator().check(candidate) == []

    def test_timeout_forwarded(self, client):
        """The per-request timeout reaches the client."""
        RichStrategy(client).attempt("Hello", StructuringOptions(), timeout=12.0)

        _, kwargs = client.complete_json.call_args
        assert kwargs["timeout"] == 12.0

    def test_options_override_metadata(self, client):
        """Caller-supplied language and type win over the service's."""
        options = StructuringOptions(language="vi", document_type="form")
        candidate = SimplifiedStrategy(client).attempt("Hello", options)

        assert candidate["metadata"]["language"] == "vi"
        assert candidate["metadata"]["documentType"] == "form"

    def test_prompts_differ(self, client):
        """Rich asks for every block type; simplified does not."""
        RichStrategy(client).attempt("Body text", StructuringOptions())
        rich_prompt = client.complete_json.call_args[0][0]
        SimplifiedStrategy(client).attempt("Body text", StructuringOptions())
        simple_prompt = client.complete_json.call_args[0][0]

        assert "multipleChoice" in rich_prompt
        assert "multipleChoice" not in simple_prompt
        assert rich_prompt.endswith("Body text")
        assert simple_prompt.endswith("Body text")

    def test_prompt_includes_hints(self, client):
        """Language and type hints are passed to the service."""
        RichStrategy(client).attempt("x", StructuringOptions(language="vi", document_type="report"))
        prompt = client.complete_json.call_args[0][0]

        assert "language is vi" in prompt
        assert "type is report" in prompt

    def test_fenced_json_accepted(self, client):
        """Markdown code fences around the JSON are tolerated."""
        client.complete_json.return_value = "```json\n" + json.dumps(SERVICE_DOCUMENT) + "\n```"
        candidate = RichStrategy(client).attempt("Hello", StructuringOptions())
        assert candidate["content"][0]["id"] == "p-1"

    @pytest.mark.parametrize("response", ["", "   ", "not json", "[1, 2]", '"text"'])
    def test_bad_responses(self, client, response):
        """Empty, non-JSON and non-object responses fail the tier."""
        client.complete_json.return_value = response

        with pytest.raises(ExternalCallError) as exc_info:
            RichStrategy(client).attempt("Hello", StructuringOptions())
        assert exc_info.value.tier == "rich"

    def test_transport_error_wrapped(self, client):
        """Arbitrary client errors become ExternalCallError."""
        client.complete_json.side_effect = ConnectionError("reset by peer")

        with pytest.raises(ExternalCallError, match="reset by peer") as exc_info:
            SimplifiedStrategy(client).attempt("Hello", StructuringOptions())
        assert exc_info.value.tier == "simplified"

    def test_client_error_tagged_with_tier(self, client):
        """ExternalCallError from the client is tagged with the tier."""
        client.complete_json.side_effect = ExternalCallError("empty text")

        with pytest.raises(ExternalCallError) as exc_info:
            RichStrategy(client).attempt("Hello", StructuringOptions())
        assert exc_info.value.tier == "rich"

    def test_external_flag(self, client):
        """Service tiers are marked external, local tiers are not."""
        tiers = default_strategies(client)

        assert [tier.name for tier in tiers] == ["rich", "simplified", "heuristic", "trivial"]
        assert [tier.external for tier in tiers] == [True, True, False, False]


class TestHeuristicStrategy:
    """Test local structuring heuristics."""

    @pytest.fixture
    def document(self):
        return HeuristicStrategy().attempt(CONTRACT_TEXT, StructuringOptions(language="en"))

    def test_block_sequence(self, document):
        """Blank-line chunks map to headings, paragraphs and lists."""
        assert [block.type for block in document.blocks] == [
            "heading",
            "paragraph",
            "list",
            "heading",
            "heading",
            "list",
        ]

    def test_sequential_ids(self, document):
        """Ids follow block position."""
        assert [block.id for block in document.blocks] == ["h-1", "p-2", "l-3", "h-4", "h-5", "l-6"]
        assert [item.id for item in document.blocks[2].items] == ["l-3-1", "l-3-2"]

    def test_heading_levels(self, document):
        """Numbering depth sets the heading level."""
        assert document.blocks[0].level == 1
        assert document.blocks[3].level == 2
        assert document.blocks[4].level == 1

    def test_lists(self, document):
        """Bullets and numbered markers produce the right list types."""
        bulleted, numbered = document.blocks[2], document.blocks[5]

        assert isinstance(bulleted, ListBlock)
        assert bulleted.list_type == "bulleted"
        assert bulleted.items[0].content[0].text == "Apples"
        assert numbered.list_type == "numbered"
        assert numbered.items[1].content[0].text == "second delivery"

    def test_paragraph_lines_joined(self, document):
        """Wrapped lines within a paragraph are joined with spaces."""
        paragraph = document.blocks[1]
        assert isinstance(paragraph, ParagraphBlock)
        assert paragraph.content[0].text == (
            "This agreement covers the supply of goods between the two parties named below."
        )

    def test_metadata(self, document):
        """Heuristic output is marked with low confidence and a title."""
        assert document.metadata.confidence_score == 0.3
        assert document.metadata.language == "en"
        assert document.metadata.document_type is DocumentType.OTHER
        assert document.metadata.title == "1. Introduction"

    def test_output_is_valid(self, document):
        """Heuristic documents pass validation."""
        assert DocumentValidator().check(document) == []

    def test_single_line_text(self):
        """A lone sentence becomes one paragraph."""
        document = HeuristicStrategy().attempt(
            "Just one sentence here.", StructuringOptions(language="en")
        )
        assert len(document.blocks) == 1
        assert isinstance(document.blocks[0], ParagraphBlock)

    def test_document_type_from_options(self):
        """Document type hint is used as-is."""
        document = HeuristicStrategy().attempt(
            "Body.", StructuringOptions(language="en", document_type="contract")
        )
        assert document.metadata.document_type is DocumentType.CONTRACT

    def test_language_detected(self):
        """Without a hint the language is detected."""
        text = (
            "The annual report describes the financial results of the company "
            "and the plans of the board for the coming year."
        )
        document = HeuristicStrategy().attempt(text, StructuringOptions())
        assert document.metadata.language == "en"


class TestHeadingLevel:
    """Test heading detection on single lines."""

    @pytest.mark.parametrize(
        "line,level",
        [
            ("1. Introduction", 1),
            ("2.1 Scope", 2),
            ("3.1.4 Payment terms", 3),
            ("4.1.2.3 Deep section", 3),
            ("Chapter 3", 1),
            ("IV. Results", 1),
            ("GENERAL PROVISIONS", 1),
            ("Điều 5", 1),
        ],
    )
    def test_headings(self, line, level):
        """Numbering, keywords, roman numerals and caps mark headings."""
        assert heading_level(line) == level

    @pytest.mark.parametrize(
        "line",
        [
            "This is an ordinary sentence.",
            "1. Pay the invoice within thirty days.",
            "OK",
            "A" * 100,
            "lowercase words without numbering",
        ],
    )
    def test_not_headings(self, line):
        """Sentences, long lines and plain text are body text."""
        assert heading_level(line) is None


class TestTrivialStrategy:
    """Test the terminal single-paragraph tier."""

    def test_single_paragraph(self):
        """Whole text becomes one low-confidence paragraph."""
        text = "anything at all\n\nincluding blank lines"
        document = TrivialStrategy().attempt(text, StructuringOptions())

        assert isinstance(document, CanonicalDocument)
        assert len(document.blocks) == 1
        assert document.blocks[0].id == "p-fallback"
        assert document.blocks[0].content[0].text == text
        assert document.metadata.confidence_score == 0.1
        assert document.metadata.language == "en"

    def test_language_hint(self):
        """Language hint overrides the default."""
        document = TrivialStrategy(default_language="fr").attempt("x", StructuringOptions())
        assert document.metadata.language == "fr"

        document = TrivialStrategy().attempt("x", StructuringOptions(language="vi"))
        assert document.metadata.language == "vi"

    def test_output_is_valid(self):
        """Trivial output always passes validation."""
        document = TrivialStrategy().attempt("@@@ ### $$$", StructuringOptions())
        assert DocumentValidator().check(document) == []


class TestDetectLanguage:
    """Test language detection fallback."""

    def test_short_text_uses_default(self):
        """Very short text is not worth detecting."""
        assert detect_language("Hi", default="vi") == "vi"

    def test_undetectable_uses_default(self):
        """Text without features falls back to the default."""
        assert detect_language("1234567890 1234567890 1234567890", default="de") == "de"

    def test_heading_block_type(self):
        """HeadingBlock is re-exported for callers inspecting output."""
        assert HeadingBlock.type == "heading"
