"""
PDF extraction backends for the page router.

- PdfTextExtractor: PyMuPDF text layer (fast, free, often good enough)
- TesseractExtractor: renders the page and runs Tesseract OCR (slow)

Both are callables mapping a 0-based page index to text. Each call opens
its own document handle, since PyMuPDF documents must not be shared
between threads.
"""

from __future__ import annotations

import logging
from pathlib import Path

import fitz  # PyMuPDF
import pytesseract
from PIL import Image

from textguard.config import RouterConfig
from textguard.extraction.router import DocumentExtractionSummary, PageExtractionRouter, Scorer

logger = logging.getLogger(__name__)

DEFAULT_DPI = 300


def _open(path: Path) -> fitz.Document:
    if not path.exists():
        raise FileNotFoundError(f"PDF not found: {path}")
    try:
        return fitz.open(path)
    except Exception as e:
        raise ValueError(f"Failed to open PDF: {e}") from e


class PdfTextExtractor:
    """Extracts the embedded text layer of one page.

    Usage:
        extract = PdfTextExtractor("scan.pdf")
        text = extract(0)
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    @property
    def page_count(self) -> int:
        doc = _open(self.path)
        try:
            return len(doc)
        finally:
            doc.close()

    def __call__(self, page_index: int) -> str:
        doc = _open(self.path)
        try:
            return doc[page_index].get_text("text")
        finally:
            doc.close()


class TesseractExtractor:
    """Re-extracts one page by rendering it and running Tesseract."""

    def __init__(self, path: str | Path, *, dpi: int = DEFAULT_DPI, language: str = "eng"):
        """Initialize the OCR extractor.

        Args:
            path: PDF file.
            dpi: Render resolution.
            language: Tesseract language pack(s), e.g. "eng+vie".
        """
        self.path = Path(path)
        self.dpi = dpi
        self.language = language

    def render_page(self, page_index: int) -> Image.Image:
        """Render a page to a PIL image at the configured DPI."""
        doc = _open(self.path)
        try:
            scale = self.dpi / 72.0
            pix = doc[page_index].get_pixmap(matrix=fitz.Matrix(scale, scale))
            return Image.frombytes("RGB", (pix.width, pix.height), pix.samples)
        finally:
            doc.close()

    def __call__(self, page_index: int) -> str:
        image = self.render_page(page_index)
        text = pytesseract.image_to_string(image, lang=self.language)
        logger.debug("Page %d: OCR produced %d chars", page_index, len(text))
        return text


def classify_pdf(
    path: str | Path,
    scorer: Scorer | None = None,
    config: RouterConfig | None = None,
    *,
    ocr_language: str = "eng",
    dpi: int = DEFAULT_DPI,
) -> DocumentExtractionSummary:
    """Route every page of a PDF between text layer and OCR.

    Args:
        path: PDF file.
        scorer: Text verdict function.
        config: Worker limits and scoring thresholds.
        ocr_language: Tesseract language pack(s).
        dpi: OCR render resolution.

    Returns:
        DocumentExtractionSummary for the PDF.
    """
    fast = PdfTextExtractor(path)
    costly = TesseractExtractor(path, dpi=dpi, language=ocr_language)
    router = PageExtractionRouter(fast, costly, scorer, config)
    return router.classify(range(fast.page_count))
