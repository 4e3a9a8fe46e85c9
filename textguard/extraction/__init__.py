"""
Page extraction routing.

Scores the cheap text layer of every page and re-extracts (OCR) only
the pages that fail, producing a per-page record and a document-level
method tag ("all-direct", "all-reextracted" or "hybrid").
"""

from textguard.extraction.backends import (
    PdfTextExtractor,
    TesseractExtractor,
    classify_pdf,
)
from textguard.extraction.router import (
    DocumentExtractionSummary,
    DocumentMethod,
    ExtractionMethod,
    PageClassification,
    PageExtractionRouter,
    classify_document,
)

__all__ = [
    # Router
    "PageExtractionRouter",
    "classify_document",
    "PageClassification",
    "DocumentExtractionSummary",
    "ExtractionMethod",
    "DocumentMethod",
    # Backends
    "PdfTextExtractor",
    "TesseractExtractor",
    "classify_pdf",
]
