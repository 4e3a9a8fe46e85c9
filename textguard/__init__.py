"""
TextGuard: trustworthy text extraction and structuring.

Scores extracted text to decide whether it can be trusted, routes each
PDF page to the cheap text layer or OCR accordingly, and turns raw text
into a validated, structured document through a chain of fallbacks that
always ends in a usable result.

Example:
    >>> import textguard
    >>> textguard.score("Đã thanh toán.").is_valid
    True

    >>> summary = textguard.classify_pdf("scan.pdf")
    >>> summary.method.value
    'hybrid'

    >>> orchestrator = textguard.StructuringOrchestrator.from_env()
    >>> result = orchestrator.structure(summary.text)
    >>> result.tier_used, result.attempt_count
    ('rich', 1)
"""

from textguard.config import (
    RouterConfig,
    ScoringConfig,
    ServiceSettings,
    StructuringConfig,
)
from textguard.exceptions import (
    ConfigurationError,
    ExternalCallError,
    InputError,
    RequestCancelledError,
    StructuringExhaustedError,
    TextGuardError,
    ValidationError,
)
from textguard.extraction import (
    DocumentExtractionSummary,
    DocumentMethod,
    ExtractionMethod,
    PageClassification,
    PageExtractionRouter,
    PdfTextExtractor,
    TesseractExtractor,
    classify_document,
    classify_pdf,
)
from textguard.models import (
    # Blocks
    Block,
    BlockquoteBlock,
    # Document
    CanonicalDocument,
    ChoiceOption,
    ChoiceQuestionBlock,
    CodeBlock,
    DividerBlock,
    DocumentMetadata,
    DocumentType,
    # Provenance
    FallbackAttempt,
    HeadingBlock,
    ImageBlock,
    # Inline
    LineBreak,
    Link,
    ListBlock,
    ListItem,
    ParagraphBlock,
    StructuringResult,
    TableBlock,
    TableCell,
    TableRow,
    TextFormatting,
    TextRun,
)
from textguard.quality import QualityScorer, TextMetrics, ValidationResult, score
from textguard.structuring import (
    DocumentValidator,
    OpenAIStructuringClient,
    StructuringOptions,
    StructuringOrchestrator,
    structure_text,
)

__version__ = "0.1.0"
__all__ = [
    # Quality scoring
    "score",
    "QualityScorer",
    "TextMetrics",
    "ValidationResult",
    # Extraction routing
    "classify_document",
    "classify_pdf",
    "PageExtractionRouter",
    "PageClassification",
    "DocumentExtractionSummary",
    "ExtractionMethod",
    "DocumentMethod",
    "PdfTextExtractor",
    "TesseractExtractor",
    # Structuring
    "StructuringOrchestrator",
    "StructuringOptions",
    "structure_text",
    "DocumentValidator",
    "OpenAIStructuringClient",
    # Configuration
    "ScoringConfig",
    "RouterConfig",
    "StructuringConfig",
    "ServiceSettings",
    # Document model
    "CanonicalDocument",
    "DocumentMetadata",
    "DocumentType",
    "Block",
    "HeadingBlock",
    "ParagraphBlock",
    "ListBlock",
    "ListItem",
    "TableBlock",
    "TableRow",
    "TableCell",
    "ImageBlock",
    "CodeBlock",
    "BlockquoteBlock",
    "ChoiceQuestionBlock",
    "ChoiceOption",
    "DividerBlock",
    "TextRun",
    "TextFormatting",
    "Link",
    "LineBreak",
    # Provenance
    "FallbackAttempt",
    "StructuringResult",
    # Exceptions
    "TextGuardError",
    "InputError",
    "RequestCancelledError",
    "ExternalCallError",
    "ValidationError",
    "ConfigurationError",
    "StructuringExhaustedError",
]
