"""
Per-page extraction routing.

Runs the cheap extraction path on every page, scores the result, and
re-extracts only the pages whose text cannot be trusted:
1. Fast path: PDF text layer (cheap, often fine)
2. Score: QualityScorer verdict on the fast text
3. Costly path: OCR, run at most once per page, accepted unconditionally

Pages are independent, so a single corrupted page never forces OCR of the
whole document, and pages fan out across a bounded thread pool.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

from textguard.config import RouterConfig
from textguard.quality.scorer import QualityScorer, ValidationResult

logger = logging.getLogger(__name__)

PageT = TypeVar("PageT")

Extractor = Callable[[Any], str]
Scorer = Callable[[str], ValidationResult]


class ExtractionMethod(Enum):
    """How the accepted text of a page was produced."""

    DIRECT = "direct"
    REEXTRACTED = "reextracted"


class DocumentMethod(Enum):
    """Document-level summary of page extraction methods."""

    ALL_DIRECT = "all-direct"
    ALL_REEXTRACTED = "all-reextracted"
    HYBRID = "hybrid"


@dataclass(frozen=True)
class PageClassification:
    """Routing decision for a single page."""

    page_index: int
    chosen_method: ExtractionMethod
    validation: ValidationResult  # Verdict on the accepted text
    text: str = ""
    elapsed_ms: float = 0.0
    error: str | None = None  # Set when an extractor raised

    def to_dict(self) -> dict[str, Any]:
        return {
            "pageIndex": self.page_index,
            "chosenMethod": self.chosen_method.value,
            "validation": self.validation.to_dict(),
            "elapsedMs": self.elapsed_ms,
            "error": self.error,
        }


@dataclass(frozen=True)
class DocumentExtractionSummary:
    """Ordered per-page decisions plus the derived document method."""

    pages: tuple[PageClassification, ...] = field(default_factory=tuple)

    @property
    def method(self) -> DocumentMethod:
        methods = {page.chosen_method for page in self.pages}
        if methods == {ExtractionMethod.REEXTRACTED}:
            return DocumentMethod.ALL_REEXTRACTED
        if len(methods) > 1:
            return DocumentMethod.HYBRID
        return DocumentMethod.ALL_DIRECT

    @property
    def direct_pages(self) -> int:
        return sum(1 for page in self.pages if page.chosen_method is ExtractionMethod.DIRECT)

    @property
    def reextracted_pages(self) -> int:
        return sum(
            1 for page in self.pages if page.chosen_method is ExtractionMethod.REEXTRACTED
        )

    @property
    def text(self) -> str:
        """Accepted page texts joined by blank lines."""
        return "\n\n".join(page.text for page in self.pages if page.text.strip())

    def to_dict(self) -> dict[str, Any]:
        return {
            "method": self.method.value,
            "directPages": self.direct_pages,
            "reextractedPages": self.reextracted_pages,
            "pages": [page.to_dict() for page in self.pages],
        }


class PageExtractionRouter(Generic[PageT]):
    """Classifies every page of a document as direct or re-extracted.

    The two extractors are opaque collaborators: anything that maps a
    page reference to text. Page references are passed through untouched,
    so they can be page indexes, page objects or pre-extracted strings.

    Usage:
        router = PageExtractionRouter(pdf_text, tesseract_ocr)
        summary = router.classify(range(page_count))
        print(summary.method.value)  # "hybrid"
    """

    def __init__(
        self,
        fast_extract: Callable[[PageT], str],
        costly_extract: Callable[[PageT], str],
        scorer: Scorer | None = None,
        config: RouterConfig | None = None,
    ):
        """Initialize the router.

        Args:
            fast_extract: Cheap extraction path (e.g. PDF text layer).
            costly_extract: Expensive re-extraction path (e.g. OCR).
            scorer: Text verdict function (QualityScorer from config if None).
            config: Worker limits and scoring thresholds.
        """
        self.config = config or RouterConfig()
        self.fast_extract = fast_extract
        self.costly_extract = costly_extract
        self.scorer = scorer or QualityScorer(self.config.scoring)

    def classify(self, pages: Sequence[PageT]) -> DocumentExtractionSummary:
        """Classify all pages.

        Args:
            pages: Page references in document order.

        Returns:
            DocumentExtractionSummary ordered by page index.
        """
        if not pages:
            return DocumentExtractionSummary()

        start = time.perf_counter()
        results: dict[int, PageClassification] = {}

        workers = min(self.config.max_workers, len(pages))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            future_to_index = {
                executor.submit(self._classify_page, index, page): index
                for index, page in enumerate(pages)
            }
            for future, index in future_to_index.items():
                results[index] = future.result()

        summary = DocumentExtractionSummary(pages=tuple(results[i] for i in sorted(results)))
        logger.info(
            "Classified %d pages in %.0fms: %d direct, %d re-extracted (%s)",
            len(summary.pages),
            (time.perf_counter() - start) * 1000,
            summary.direct_pages,
            summary.reextracted_pages,
            summary.method.value,
        )
        return summary

    def _classify_page(self, index: int, page: PageT) -> PageClassification:
        """Run the fast path, and the costly path only if needed."""
        start = time.perf_counter()

        try:
            fast_text = self.fast_extract(page)
        except Exception as e:
            logger.warning("Page %d: fast extraction failed, re-extracting: %s", index, e)
            fast_text = None

        if fast_text is not None:
            verdict = self.scorer(fast_text)
            if verdict.is_valid:
                logger.debug("Page %d: direct (confidence=%.2f)", index, verdict.confidence)
                return PageClassification(
                    page_index=index,
                    chosen_method=ExtractionMethod.DIRECT,
                    validation=verdict,
                    text=fast_text,
                    elapsed_ms=(time.perf_counter() - start) * 1000,
                )
            logger.debug("Page %d: fast text rejected (%s)", index, verdict.reason)

        error = None
        try:
            costly_text = self.costly_extract(page) or ""
        except Exception as e:
            logger.warning("Page %d: re-extraction failed: %s", index, e)
            costly_text = ""
            error = str(e) or type(e).__name__

        # Accepted as-is; scored only to record its quality
        return PageClassification(
            page_index=index,
            chosen_method=ExtractionMethod.REEXTRACTED,
            validation=self.scorer(costly_text),
            text=costly_text,
            elapsed_ms=(time.perf_counter() - start) * 1000,
            error=error,
        )


def classify_document(
    pages: Sequence[PageT],
    fast_extract: Callable[[PageT], str],
    costly_extract: Callable[[PageT], str],
    scorer: Scorer | None = None,
    config: RouterConfig | None = None,
) -> DocumentExtractionSummary:
    """Convenience function for per-page extraction routing.

    Args:
        pages: Page references in document order.
        fast_extract: Cheap extraction path.
        costly_extract: Expensive re-extraction path.
        scorer: Text verdict function.
        config: Worker limits and scoring thresholds.

    Returns:
        DocumentExtractionSummary for the document.
    """
    router = PageExtractionRouter(fast_extract, costly_extract, scorer, config)
    return router.classify(pages)
