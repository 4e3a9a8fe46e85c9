"""
Structuring strategies.

Each strategy turns raw text into a candidate canonical document with a
different trade-off between fidelity and reliability:
- RichStrategy: external service, full contract (best structure, may fail)
- SimplifiedStrategy: external service, headings/paragraphs/lists only
- HeuristicStrategy: local blank-line and numbering heuristics (never fails)
- TrivialStrategy: whole text as one paragraph (terminal safety net)

The StructuringOrchestrator tries them in that order. Adding a provider
means adding a strategy, not touching the orchestrator.
"""

from __future__ import annotations

import json
import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from langdetect import DetectorFactory, LangDetectException
from langdetect import detect as langdetect_detect

from textguard.exceptions import ExternalCallError, InputError
from textguard.models import (
    FORMAT_VERSION,
    Block,
    CanonicalDocument,
    DocumentMetadata,
    DocumentType,
    HeadingBlock,
    ListBlock,
    ListItem,
    ParagraphBlock,
    plain,
    utc_now_iso,
)
from textguard.structuring.client import StructuringClient
from textguard.structuring.prompts import build_rich_prompt, build_simplified_prompt

logger = logging.getLogger(__name__)

# Make language detection deterministic
DetectorFactory.seed = 0

Candidate = Mapping[str, Any] | CanonicalDocument

HEURISTIC_CONFIDENCE = 0.3
TRIVIAL_CONFIDENCE = 0.1

# Headings rarely wrap
MAX_HEADING_CHARS = 80
MIN_DETECTION_CHARS = 20

BLANK_LINE_PATTERN = re.compile(r"\n\s*\n")
BULLET_PATTERN = re.compile(r"^[-*•◦▪‣]\s+(.+)$")
NUMBERED_ITEM_PATTERN = re.compile(r"^\d{1,3}[.)]\s+(.+)$")
SECTION_NUMBER_PATTERN = re.compile(r"^(\d+(?:\.\d+)*)\.?\s+\S")
KEYWORD_HEADING_PATTERN = re.compile(
    r"^(chapter|section|part|article|appendix|chương|phần|mục|điều)\s+[\dIVXLC]+\b",
    re.IGNORECASE,
)
ROMAN_HEADING_PATTERN = re.compile(r"^[IVXLC]+\.\s+\S")
FENCE_PATTERN = re.compile(r"^```(?:json)?\s*|\s*```$")


@dataclass(frozen=True)
class StructuringOptions:
    """Per-request hints for structuring.

    Example:
        >>> StructuringOptions(language="vi", document_type="contract")
    """

    language: str | None = None
    document_type: DocumentType | None = None
    enable_fallback: bool = True

    def __post_init__(self):
        """Normalize language and coerce document_type into the closed enum."""
        if self.language is not None:
            if not isinstance(self.language, str) or not self.language.strip():
                raise InputError(f"language must be a non-empty string, got {self.language!r}")
            object.__setattr__(self, "language", self.language.strip())

        if isinstance(self.document_type, str):
            try:
                object.__setattr__(self, "document_type", DocumentType(self.document_type))
            except ValueError as e:
                raise InputError(
                    f"documentType must be one of {[t.value for t in DocumentType]}, "
                    f"got {self.document_type!r}"
                ) from e


def detect_language(text: str, default: str = "en") -> str:
    """Detect the dominant language of text using langdetect."""
    if len(text.strip()) < MIN_DETECTION_CHARS:
        return default
    try:
        return langdetect_detect(text)
    except LangDetectException:
        return default


class StructuringStrategy(ABC):
    """Abstract base for structuring tiers."""

    name: str = "base"
    external: bool = False  # True when attempt() leaves the process

    @abstractmethod
    def attempt(
        self,
        raw_text: str,
        options: StructuringOptions,
        *,
        timeout: float | None = None,
    ) -> Candidate:
        """Produce a candidate document.

        Returns an unvalidated wire-shaped mapping or a CanonicalDocument.

        Raises:
            ExternalCallError: If the tier cannot produce a candidate.
        """
        pass


# ═══════════════════════════════════════════════════════════════════════════════
# External tiers
# ═══════════════════════════════════════════════════════════════════════════════


class _ServiceStrategy(StructuringStrategy):
    """Shared request/parse logic for tiers backed by the external service."""

    external = True
    default_timeout = 45.0

    def __init__(self, client: StructuringClient):
        self.client = client

    @abstractmethod
    def build_prompt(self, raw_text: str, options: StructuringOptions) -> str:
        pass

    def attempt(
        self,
        raw_text: str,
        options: StructuringOptions,
        *,
        timeout: float | None = None,
    ) -> Candidate:
        prompt = self.build_prompt(raw_text, options)
        try:
            response = self.client.complete_json(prompt, timeout=timeout or self.default_timeout)
        except ExternalCallError as e:
            e.tier = self.name
            raise
        except Exception as e:
            raise ExternalCallError(f"{type(e).__name__}: {e}", tier=self.name) from e

        candidate = self._parse(response)
        return self._complete_envelope(candidate, options)

    def _parse(self, response: str) -> dict[str, Any]:
        text = FENCE_PATTERN.sub("", response.strip()) if response else ""
        if not text:
            raise ExternalCallError("Empty response from structuring service", tier=self.name)
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as e:
            raise ExternalCallError(
                f"Invalid JSON response from structuring service: {e}", tier=self.name
            ) from e
        if not isinstance(parsed, dict):
            raise ExternalCallError(
                f"Expected a JSON object, got {type(parsed).__name__}", tier=self.name
            )
        return parsed

    def _complete_envelope(
        self, candidate: dict[str, Any], options: StructuringOptions
    ) -> dict[str, Any]:
        """Stamp fields the service may omit and apply caller overrides."""
        now = utc_now_iso()
        candidate.setdefault("version", FORMAT_VERSION)
        candidate.setdefault("createdAt", now)
        candidate.setdefault("updatedAt", now)

        metadata = candidate.get("metadata")
        if isinstance(metadata, dict):
            if options.language:
                metadata["language"] = options.language
            if options.document_type:
                metadata["documentType"] = options.document_type.value
        return candidate


class RichStrategy(_ServiceStrategy):
    """Full extraction contract: all block types, formatting, tables."""

    name = "rich"

    def build_prompt(self, raw_text: str, options: StructuringOptions) -> str:
        return build_rich_prompt(raw_text, options.language, options.document_type)


class SimplifiedStrategy(_ServiceStrategy):
    """Reduced contract for when the full one trips the service up."""

    name = "simplified"

    def build_prompt(self, raw_text: str, options: StructuringOptions) -> str:
        return build_simplified_prompt(raw_text, options.language, options.document_type)


# ═══════════════════════════════════════════════════════════════════════════════
# Local tiers
# ═══════════════════════════════════════════════════════════════════════════════


class HeuristicStrategy(StructuringStrategy):
    """Structure text locally from blank lines and lexical cues.

    - Blank lines separate blocks
    - A block whose every line starts with a bullet (or "1." / "1)") is a list
    - A short single line with section numbering ("2.1 Scope",
      "Chapter 3", "IV. Results") or in ALL CAPS is a heading
    - Everything else is a paragraph
    """

    name = "heuristic"

    def __init__(self, default_language: str = "en"):
        self.default_language = default_language

    def attempt(
        self,
        raw_text: str,
        options: StructuringOptions,
        *,
        timeout: float | None = None,
    ) -> Candidate:
        blocks: list[Block] = []
        for chunk in BLANK_LINE_PATTERN.split(raw_text):
            lines = [line.strip() for line in chunk.splitlines() if line.strip()]
            if lines:
                blocks.append(self._classify_chunk(lines, len(blocks) + 1))

        title = next(
            (
                block.content[0].text
                for block in blocks
                if isinstance(block, HeadingBlock) and block.level == 1
            ),
            None,
        )

        metadata = DocumentMetadata(
            document_type=options.document_type or DocumentType.OTHER,
            language=options.language or detect_language(raw_text, self.default_language),
            confidence_score=HEURISTIC_CONFIDENCE,
            title=title,
        )
        logger.debug("Heuristic tier produced %d blocks", len(blocks))
        return CanonicalDocument(metadata=metadata, blocks=tuple(blocks))

    def _classify_chunk(self, lines: list[str], number: int) -> Block:
        if len(lines) >= 2:
            for pattern, list_type in (
                (BULLET_PATTERN, "bulleted"),
                (NUMBERED_ITEM_PATTERN, "numbered"),
            ):
                matches = [pattern.match(line) for line in lines]
                if all(matches):
                    return ListBlock(
                        id=f"l-{number}",
                        list_type=list_type,
                        items=tuple(
                            ListItem(id=f"l-{number}-{i}", content=plain(m.group(1)))
                            for i, m in enumerate(matches, start=1)
                        ),
                    )

        if len(lines) == 1:
            level = heading_level(lines[0])
            if level:
                return HeadingBlock(id=f"h-{number}", level=level, content=plain(lines[0]))

        return ParagraphBlock(id=f"p-{number}", content=plain(" ".join(lines)))


def heading_level(line: str) -> int | None:
    """Heading level implied by a line, or None if it reads as body text."""
    if len(line) > MAX_HEADING_CHARS or line[-1] in ".,;!?":
        return None

    match = SECTION_NUMBER_PATTERN.match(line)
    if match:
        return min(len(match.group(1).split(".")), 3)

    if KEYWORD_HEADING_PATTERN.match(line) or ROMAN_HEADING_PATTERN.match(line):
        return 1

    letters = [ch for ch in line if ch.isalpha()]
    if len(letters) >= 3 and line.isupper():
        return 1

    return None


class TrivialStrategy(StructuringStrategy):
    """Whole text as a single paragraph. Always succeeds on non-empty text."""

    name = "trivial"

    def __init__(self, default_language: str = "en"):
        self.default_language = default_language

    def attempt(
        self,
        raw_text: str,
        options: StructuringOptions,
        *,
        timeout: float | None = None,
    ) -> Candidate:
        return CanonicalDocument(
            metadata=DocumentMetadata(
                document_type=options.document_type or DocumentType.OTHER,
                language=options.language or self.default_language,
                confidence_score=TRIVIAL_CONFIDENCE,
            ),
            blocks=(ParagraphBlock(id="p-fallback", content=plain(raw_text)),),
        )


def default_strategies(
    client: StructuringClient,
    *,
    default_language: str = "en",
) -> list[StructuringStrategy]:
    """The four tiers in fallback order."""
    return [
        RichStrategy(client),
        SimplifiedStrategy(client),
        HeuristicStrategy(default_language),
        TrivialStrategy(default_language),
    ]
