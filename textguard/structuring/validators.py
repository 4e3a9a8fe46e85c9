"""
Validation rules for candidate canonical documents.

Every candidate produced by a structuring tier passes through the
DocumentValidator before it is accepted. Rules collect ALL violations
rather than stopping at the first, so a caller sees every problem at once.

Paths use a JSONPath-like notation relative to the document root, e.g.
``content[2].rows[0].cells[1].colspan``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from textguard.exceptions import ValidationError
from textguard.models import (
    BLOCK_TYPES,
    BREAK_TYPES,
    DIVIDER_STYLES,
    FORMATTING_FLAGS,
    HEADING_LEVELS,
    LIST_TYPES,
    CanonicalDocument,
    DocumentType,
)

logger = logging.getLogger(__name__)

DOCUMENT_TYPES = frozenset(t.value for t in DocumentType)


@dataclass(frozen=True)
class Violation:
    """A structural problem found in a candidate document."""

    path: str
    message: str
    related: tuple[str, ...] = ()  # Other paths involved (e.g. duplicate ids)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"path": self.path, "message": self.message}
        if self.related:
            data["related"] = list(self.related)
        return data


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_nonempty_str(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


class DocumentRule(ABC):
    """Abstract base for document validation rules."""

    name: str = "base"

    @abstractmethod
    def check(self, candidate: Mapping[str, Any]) -> list[Violation]:
        """Check a candidate document.

        Returns list of violations found (empty if all good).
        """
        pass


class EnvelopeRule(DocumentRule):
    """Top-level fields exist and have the right types."""

    name = "envelope"

    def check(self, candidate: Mapping[str, Any]) -> list[Violation]:
        violations = []

        if not isinstance(candidate.get("metadata"), Mapping):
            violations.append(Violation("metadata", "metadata must be an object"))
        if not isinstance(candidate.get("content"), list):
            violations.append(Violation("content", "content must be a list of blocks"))

        for key in ("version", "createdAt", "updatedAt"):
            if not _is_nonempty_str(candidate.get(key)):
                violations.append(Violation(key, f"{key} must be a non-empty string"))

        return violations


class MetadataRule(DocumentRule):
    """Document type, language and confidence are well-formed."""

    name = "metadata"

    def check(self, candidate: Mapping[str, Any]) -> list[Violation]:
        metadata = candidate.get("metadata")
        if not isinstance(metadata, Mapping):
            return []  # Reported by EnvelopeRule

        violations = []

        doc_type = metadata.get("documentType")
        if not isinstance(doc_type, str) or doc_type not in DOCUMENT_TYPES:
            violations.append(
                Violation(
                    "metadata.documentType",
                    f"documentType {doc_type!r} is not one of {sorted(DOCUMENT_TYPES)}",
                )
            )

        if not _is_nonempty_str(metadata.get("language")):
            violations.append(
                Violation("metadata.language", "language must be a non-empty string")
            )

        confidence = metadata.get("confidenceScore")
        if not _is_number(confidence):
            violations.append(
                Violation("metadata.confidenceScore", "confidenceScore must be a number")
            )
        elif not 0.0 <= confidence <= 1.0:
            violations.append(
                Violation(
                    "metadata.confidenceScore",
                    f"confidenceScore {confidence} is outside [0, 1]",
                )
            )

        for key in ("title", "author", "subject"):
            if key in metadata and metadata[key] is not None and not isinstance(metadata[key], str):
                violations.append(Violation(f"metadata.{key}", f"{key} must be a string"))

        keywords = metadata.get("keywords")
        if keywords is not None and (
            not isinstance(keywords, list) or not all(isinstance(k, str) for k in keywords)
        ):
            violations.append(
                Violation("metadata.keywords", "keywords must be a list of strings")
            )

        return violations


class UniqueIdRule(DocumentRule):
    """Every id in the document is used exactly once.

    Covers blocks, list items, table rows and cells, choice options and
    blocks nested in blockquotes. A duplicated id yields one violation
    naming every path that uses it.
    """

    name = "unique_ids"

    def check(self, candidate: Mapping[str, Any]) -> list[Violation]:
        content = candidate.get("content")
        if not isinstance(content, list):
            return []

        seen: dict[str, list[str]] = {}
        for i, block in enumerate(content):
            self._collect_block(block, f"content[{i}]", seen)

        violations = []
        for element_id, paths in seen.items():
            if len(paths) > 1:
                violations.append(
                    Violation(
                        path=paths[0],
                        message=f"Duplicate id {element_id!r} used at {', '.join(paths)}",
                        related=tuple(paths),
                    )
                )
        return violations

    def _record(self, element: Any, path: str, seen: dict[str, list[str]]) -> None:
        if isinstance(element, Mapping) and isinstance(element.get("id"), str):
            seen.setdefault(element["id"], []).append(path)

    def _collect_block(self, block: Any, path: str, seen: dict[str, list[str]]) -> None:
        if not isinstance(block, Mapping):
            return
        self._record(block, path, seen)

        kind = block.get("type")
        if kind == "list":
            self._collect_items(block.get("items"), f"{path}.items", seen)
        elif kind == "table":
            self._collect_row(block.get("headers"), f"{path}.headers", seen)
            rows = block.get("rows")
            if isinstance(rows, list):
                for r, row in enumerate(rows):
                    self._collect_row(row, f"{path}.rows[{r}]", seen)
        elif kind == "blockquote":
            children = block.get("content")
            if isinstance(children, list):
                for c, child in enumerate(children):
                    self._collect_block(child, f"{path}.content[{c}]", seen)
        elif kind == "multipleChoice":
            options = block.get("options")
            if isinstance(options, list):
                for o, option in enumerate(options):
                    self._record(option, f"{path}.options[{o}]", seen)

    def _collect_items(self, items: Any, path: str, seen: dict[str, list[str]]) -> None:
        if not isinstance(items, list):
            return
        for i, item in enumerate(items):
            item_path = f"{path}[{i}]"
            self._record(item, item_path, seen)
            if isinstance(item, Mapping):
                self._collect_items(item.get("items"), f"{item_path}.items", seen)

    def _collect_row(self, row: Any, path: str, seen: dict[str, list[str]]) -> None:
        if not isinstance(row, Mapping):
            return
        self._record(row, path, seen)
        cells = row.get("cells")
        if isinstance(cells, list):
            for c, cell in enumerate(cells):
                self._record(cell, f"{path}.cells[{c}]", seen)


class BlockShapeRule(DocumentRule):
    """Each block's fields match its declared type tag.

    Containers (lists, tables, blockquotes) are checked recursively.
    """

    name = "block_shape"

    def check(self, candidate: Mapping[str, Any]) -> list[Violation]:
        content = candidate.get("content")
        if not isinstance(content, list):
            return []

        violations: list[Violation] = []
        for i, block in enumerate(content):
            self._check_block(block, f"content[{i}]", violations)
        return violations

    # -- blocks ---------------------------------------------------------------

    def _check_block(self, block: Any, path: str, out: list[Violation]) -> None:
        if not isinstance(block, Mapping):
            out.append(Violation(path, "block must be an object"))
            return

        if not _is_nonempty_str(block.get("id")):
            out.append(Violation(f"{path}.id", "block id must be a non-empty string"))

        kind = block.get("type")
        if not isinstance(kind, str) or kind not in BLOCK_TYPES:
            out.append(Violation(f"{path}.type", f"unknown block type {kind!r}"))
            return

        meta = block.get("metadata")
        if meta is not None:
            if not isinstance(meta, Mapping):
                out.append(Violation(f"{path}.metadata", "block metadata must be an object"))
            elif "confidence" in meta and not _is_number(meta["confidence"]):
                out.append(
                    Violation(f"{path}.metadata.confidence", "confidence must be a number")
                )

        check = getattr(self, f"_check_{kind}")
        check(block, path, out)

    def _check_heading(self, block: Mapping[str, Any], path: str, out: list[Violation]) -> None:
        if block.get("level") not in HEADING_LEVELS or not _is_int(block.get("level")):
            out.append(
                Violation(f"{path}.level", f"heading level must be one of {HEADING_LEVELS}")
            )
        self._check_inline_list(block.get("content"), f"{path}.content", out)

    def _check_paragraph(self, block: Mapping[str, Any], path: str, out: list[Violation]) -> None:
        self._check_inline_list(block.get("content"), f"{path}.content", out)

    def _check_list(self, block: Mapping[str, Any], path: str, out: list[Violation]) -> None:
        if block.get("listType") not in LIST_TYPES:
            out.append(Violation(f"{path}.listType", f"listType must be one of {LIST_TYPES}"))
        self._check_list_items(block.get("items"), f"{path}.items", out)

    def _check_list_items(self, items: Any, path: str, out: list[Violation]) -> None:
        if not isinstance(items, list):
            out.append(Violation(path, "items must be a list"))
            return
        for i, item in enumerate(items):
            item_path = f"{path}[{i}]"
            if not isinstance(item, Mapping):
                out.append(Violation(item_path, "list item must be an object"))
                continue
            if not _is_nonempty_str(item.get("id")):
                out.append(Violation(f"{item_path}.id", "list item id must be a non-empty string"))
            self._check_inline_list(item.get("content"), f"{item_path}.content", out)
            if item.get("items") is not None:
                self._check_list_items(item["items"], f"{item_path}.items", out)

    def _check_table(self, block: Mapping[str, Any], path: str, out: list[Violation]) -> None:
        self._check_row(block.get("headers"), f"{path}.headers", out)
        rows = block.get("rows")
        if not isinstance(rows, list):
            out.append(Violation(f"{path}.rows", "rows must be a list"))
        else:
            for r, row in enumerate(rows):
                self._check_row(row, f"{path}.rows[{r}]", out)
        caption = block.get("caption")
        if caption is not None and not isinstance(caption, str):
            out.append(Violation(f"{path}.caption", "caption must be a string"))

    def _check_row(self, row: Any, path: str, out: list[Violation]) -> None:
        if not isinstance(row, Mapping):
            out.append(Violation(path, "table row must be an object"))
            return
        if not _is_nonempty_str(row.get("id")):
            out.append(Violation(f"{path}.id", "row id must be a non-empty string"))
        cells = row.get("cells")
        if not isinstance(cells, list):
            out.append(Violation(f"{path}.cells", "cells must be a list"))
            return
        for c, cell in enumerate(cells):
            cell_path = f"{path}.cells[{c}]"
            if not isinstance(cell, Mapping):
                out.append(Violation(cell_path, "table cell must be an object"))
                continue
            if not _is_nonempty_str(cell.get("id")):
                out.append(Violation(f"{cell_path}.id", "cell id must be a non-empty string"))
            self._check_inline_list(cell.get("content"), f"{cell_path}.content", out)
            for span in ("colspan", "rowspan"):
                if span in cell and not (_is_int(cell[span]) and cell[span] >= 1):
                    out.append(
                        Violation(f"{cell_path}.{span}", f"{span} must be an integer >= 1")
                    )

    def _check_image(self, block: Mapping[str, Any], path: str, out: list[Violation]) -> None:
        if not _is_nonempty_str(block.get("src")):
            out.append(Violation(f"{path}.src", "image src must be a non-empty string"))
        for key in ("width", "height"):
            value = block.get(key)
            if value is not None and not (_is_int(value) and value > 0):
                out.append(Violation(f"{path}.{key}", f"{key} must be a positive integer"))

    def _check_codeBlock(self, block: Mapping[str, Any], path: str, out: list[Violation]) -> None:
        if not isinstance(block.get("content"), str):
            out.append(Violation(f"{path}.content", "code content must be a string"))

    def _check_blockquote(
        self, block: Mapping[str, Any], path: str, out: list[Violation]
    ) -> None:
        children = block.get("content")
        if not isinstance(children, list):
            out.append(Violation(f"{path}.content", "blockquote content must be a list of blocks"))
            return
        for c, child in enumerate(children):
            self._check_block(child, f"{path}.content[{c}]", out)

    def _check_multipleChoice(
        self, block: Mapping[str, Any], path: str, out: list[Violation]
    ) -> None:
        self._check_inline_list(block.get("question"), f"{path}.question", out)
        options = block.get("options")
        if not isinstance(options, list) or not options:
            out.append(Violation(f"{path}.options", "options must be a non-empty list"))
            return
        for o, option in enumerate(options):
            option_path = f"{path}.options[{o}]"
            if not isinstance(option, Mapping):
                out.append(Violation(option_path, "option must be an object"))
                continue
            if not _is_nonempty_str(option.get("id")):
                out.append(Violation(f"{option_path}.id", "option id must be a non-empty string"))
            self._check_inline_list(option.get("content"), f"{option_path}.content", out)
        answer = block.get("correctAnswer")
        if answer is not None and not (_is_int(answer) and 0 <= answer < len(options)):
            out.append(
                Violation(
                    f"{path}.correctAnswer",
                    f"correctAnswer must index one of {len(options)} options",
                )
            )

    def _check_divider(self, block: Mapping[str, Any], path: str, out: list[Violation]) -> None:
        style = block.get("style")
        if style is not None and style not in DIVIDER_STYLES:
            out.append(Violation(f"{path}.style", f"style must be one of {DIVIDER_STYLES}"))

    # -- inline content -------------------------------------------------------

    def _check_inline_list(self, items: Any, path: str, out: list[Violation]) -> None:
        if not isinstance(items, list):
            out.append(Violation(path, "content must be a list of inline elements"))
            return
        for i, item in enumerate(items):
            self._check_inline(item, f"{path}[{i}]", out)

    def _check_inline(self, item: Any, path: str, out: list[Violation]) -> None:
        if not isinstance(item, Mapping):
            out.append(Violation(path, "inline element must be an object"))
            return

        kind = item.get("type")
        if kind == "text":
            if not isinstance(item.get("text"), str):
                out.append(Violation(f"{path}.text", "text must be a string"))
            formatting = item.get("formatting")
            if formatting is not None:
                if not isinstance(formatting, Mapping):
                    out.append(Violation(f"{path}.formatting", "formatting must be an object"))
                else:
                    for flag, value in formatting.items():
                        if flag not in FORMATTING_FLAGS or not isinstance(value, bool):
                            out.append(
                                Violation(
                                    f"{path}.formatting.{flag}",
                                    f"unknown or non-boolean formatting flag {flag!r}",
                                )
                            )
        elif kind == "link":
            if not isinstance(item.get("text"), str):
                out.append(Violation(f"{path}.text", "link text must be a string"))
            url = item.get("url")
            if not isinstance(url, str) or not url.startswith(("http://", "https://")):
                out.append(Violation(f"{path}.url", f"link url {url!r} is not a valid URL"))
        elif kind == "break":
            if item.get("breakType") not in BREAK_TYPES:
                out.append(
                    Violation(f"{path}.breakType", f"breakType must be one of {BREAK_TYPES}")
                )
        else:
            out.append(Violation(f"{path}.type", f"unknown inline type {kind!r}"))


class DocumentValidator:
    """Runs every rule against a candidate and collects all violations.

    Usage:
        validator = DocumentValidator()
        violations = validator.check(candidate)       # list, possibly empty
        document = validator.validate(candidate)      # or raises ValidationError
    """

    def __init__(self, rules: list[DocumentRule] | None = None):
        """Initialize the validator.

        Args:
            rules: Validation rules (default creates standard set).
        """
        self.rules = rules or [
            EnvelopeRule(),
            MetadataRule(),
            UniqueIdRule(),
            BlockShapeRule(),
        ]

    def check(self, candidate: Mapping[str, Any] | CanonicalDocument) -> list[Violation]:
        """Return every violation in the candidate."""
        if isinstance(candidate, CanonicalDocument):
            candidate = candidate.to_dict()
        if not isinstance(candidate, Mapping):
            return [Violation("$", f"document must be an object, got {type(candidate).__name__}")]

        violations = []
        for rule in self.rules:
            violations.extend(rule.check(candidate))
        return violations

    def validate(self, candidate: Mapping[str, Any] | CanonicalDocument) -> CanonicalDocument:
        """Validate a candidate and build the canonical document.

        Raises:
            ValidationError: With every violation, if any were found.
        """
        violations = self.check(candidate)
        if violations:
            logger.debug("Candidate rejected with %d violation(s)", len(violations))
            raise ValidationError(violations)

        if isinstance(candidate, CanonicalDocument):
            return candidate
        return CanonicalDocument.from_dict(candidate)
