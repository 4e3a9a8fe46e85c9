"""
Data models for TextGuard.

The canonical document is the structured, editor-independent output of
structuring. It is immutable once built: sequences are tuples and every
dataclass is frozen.

Wire shape (``to_dict``/``from_dict``) uses the camelCase keys the
external structuring service speaks:

    {
        "metadata": {"documentType": "report", "language": "en", ...},
        "content": [{"id": "h-1", "type": "heading", "level": 1, ...}],
        "version": "1.0",
        "createdAt": "...",
        "updatedAt": "..."
    }
"""

from __future__ import annotations

import uuid
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar

FORMAT_VERSION = "1.0"


def utc_now_iso() -> str:
    """Current time as an ISO-8601 UTC timestamp."""
    return datetime.now(timezone.utc).isoformat()


def new_block_id() -> str:
    """Random block id, unique for practical purposes."""
    return f"block_{uuid.uuid4().hex[:12]}"


# ═══════════════════════════════════════════════════════════════════════════════
# Enums
# ═══════════════════════════════════════════════════════════════════════════════


class DocumentType(Enum):
    """Closed set of document types."""

    REPORT = "report"
    ARTICLE = "article"
    FORM = "form"
    CONTRACT = "contract"
    OTHER = "other"


HEADING_LEVELS = (1, 2, 3)
LIST_TYPES = ("bulleted", "numbered")
BREAK_TYPES = ("soft", "hard")
DIVIDER_STYLES = ("solid", "dashed", "dotted")
FORMATTING_FLAGS = (
    "bold",
    "italic",
    "underline",
    "strikethrough",
    "code",
    "superscript",
    "subscript",
)


# ═══════════════════════════════════════════════════════════════════════════════
# Inline Content
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class TextFormatting:
    """Inline formatting flags."""

    bold: bool = False
    italic: bool = False
    underline: bool = False
    strikethrough: bool = False
    code: bool = False
    superscript: bool = False
    subscript: bool = False

    def to_dict(self) -> dict[str, bool]:
        return {name: True for name in FORMATTING_FLAGS if getattr(self, name)}


@dataclass(frozen=True)
class TextRun:
    """A run of text, optionally formatted."""

    text: str
    formatting: TextFormatting | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": "text", "text": self.text}
        if self.formatting is not None:
            data["formatting"] = self.formatting.to_dict()
        return data


@dataclass(frozen=True)
class Link:
    """Hyperlinked text."""

    text: str
    url: str
    title: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": "link", "text": self.text, "url": self.url}
        if self.title is not None:
            data["title"] = self.title
        return data


@dataclass(frozen=True)
class LineBreak:
    """Soft or hard line break inside a block."""

    break_type: str = "soft"

    def to_dict(self) -> dict[str, Any]:
        return {"type": "break", "breakType": self.break_type}


InlineContent = TextRun | Link | LineBreak


def inline_from_dict(data: Mapping[str, Any]) -> InlineContent:
    """Build inline content from its wire shape."""
    kind = data.get("type")
    if kind == "link":
        return Link(text=data["text"], url=data["url"], title=data.get("title"))
    if kind == "break":
        return LineBreak(break_type=data["breakType"])
    formatting = data.get("formatting")
    return TextRun(
        text=data["text"],
        formatting=TextFormatting(**formatting) if formatting else None,
    )


def _inline_tuple(items: Any) -> tuple[InlineContent, ...]:
    return tuple(inline_from_dict(item) for item in items or ())


def _inline_list(items: tuple[InlineContent, ...]) -> list[dict[str, Any]]:
    return [item.to_dict() for item in items]


def plain(text: str) -> tuple[InlineContent, ...]:
    """Inline content holding a single unformatted run."""
    return (TextRun(text=text),)


# ═══════════════════════════════════════════════════════════════════════════════
# Blocks
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Block:
    """Base for all block variants. ``type`` is the wire tag."""

    id: str
    confidence: float | None = field(default=None, kw_only=True)
    source_context: str | None = field(default=None, kw_only=True)

    type: ClassVar[str] = "block"

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "type": self.type}
        meta = {}
        if self.confidence is not None:
            meta["confidence"] = self.confidence
        if self.source_context is not None:
            meta["sourceContext"] = self.source_context
        if meta:
            data["metadata"] = meta
        data.update(self._body())
        return data

    def _body(self) -> dict[str, Any]:
        return {}


@dataclass(frozen=True)
class HeadingBlock(Block):
    level: int = 1
    content: tuple[InlineContent, ...] = ()

    type: ClassVar[str] = "heading"

    def _body(self) -> dict[str, Any]:
        return {"level": self.level, "content": _inline_list(self.content)}


@dataclass(frozen=True)
class ParagraphBlock(Block):
    content: tuple[InlineContent, ...] = ()

    type: ClassVar[str] = "paragraph"

    def _body(self) -> dict[str, Any]:
        return {"content": _inline_list(self.content)}


@dataclass(frozen=True)
class ListItem:
    """List entry; ``items`` holds a nested list."""

    id: str
    content: tuple[InlineContent, ...] = ()
    items: tuple[ListItem, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "content": _inline_list(self.content)}
        if self.items:
            data["items"] = [item.to_dict() for item in self.items]
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ListItem:
        return cls(
            id=data["id"],
            content=_inline_tuple(data.get("content")),
            items=tuple(cls.from_dict(item) for item in data.get("items") or ()),
        )


@dataclass(frozen=True)
class ListBlock(Block):
    list_type: str = "bulleted"
    items: tuple[ListItem, ...] = ()

    type: ClassVar[str] = "list"

    def _body(self) -> dict[str, Any]:
        return {"listType": self.list_type, "items": [item.to_dict() for item in self.items]}


@dataclass(frozen=True)
class TableCell:
    id: str
    content: tuple[InlineContent, ...] = ()
    colspan: int = 1
    rowspan: int = 1
    is_header: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "content": _inline_list(self.content),
            "colspan": self.colspan,
            "rowspan": self.rowspan,
            "isHeader": self.is_header,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TableCell:
        return cls(
            id=data["id"],
            content=_inline_tuple(data.get("content")),
            colspan=data.get("colspan", 1),
            rowspan=data.get("rowspan", 1),
            is_header=bool(data.get("isHeader", False)),
        )


@dataclass(frozen=True)
class TableRow:
    id: str
    cells: tuple[TableCell, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "cells": [cell.to_dict() for cell in self.cells]}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TableRow:
        return cls(id=data["id"], cells=tuple(TableCell.from_dict(c) for c in data["cells"]))


@dataclass(frozen=True)
class TableBlock(Block):
    headers: TableRow = field(default_factory=lambda: TableRow(id=new_block_id()))
    rows: tuple[TableRow, ...] = ()
    caption: str | None = None

    type: ClassVar[str] = "table"

    def _body(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "headers": self.headers.to_dict(),
            "rows": [row.to_dict() for row in self.rows],
        }
        if self.caption is not None:
            data["caption"] = self.caption
        return data


@dataclass(frozen=True)
class ImageBlock(Block):
    src: str = ""
    alt: str | None = None
    caption: str | None = None
    width: int | None = None
    height: int | None = None

    type: ClassVar[str] = "image"

    def _body(self) -> dict[str, Any]:
        data: dict[str, Any] = {"src": self.src}
        for key in ("alt", "caption", "width", "height"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data


@dataclass(frozen=True)
class CodeBlock(Block):
    code: str = ""
    language: str | None = None

    type: ClassVar[str] = "codeBlock"

    def _body(self) -> dict[str, Any]:
        data: dict[str, Any] = {"content": self.code}
        if self.language is not None:
            data["language"] = self.language
        return data


@dataclass(frozen=True)
class BlockquoteBlock(Block):
    content: tuple[Block, ...] = ()
    citation: str | None = None

    type: ClassVar[str] = "blockquote"

    def _body(self) -> dict[str, Any]:
        data: dict[str, Any] = {"content": [block.to_dict() for block in self.content]}
        if self.citation is not None:
            data["citation"] = self.citation
        return data


@dataclass(frozen=True)
class ChoiceOption:
    id: str
    content: tuple[InlineContent, ...] = ()
    is_correct: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "content": _inline_list(self.content),
            "isCorrect": self.is_correct,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ChoiceOption:
        return cls(
            id=data["id"],
            content=_inline_tuple(data.get("content")),
            is_correct=bool(data.get("isCorrect", False)),
        )


@dataclass(frozen=True)
class ChoiceQuestionBlock(Block):
    question: tuple[InlineContent, ...] = ()
    options: tuple[ChoiceOption, ...] = ()
    correct_answer: int | None = None

    type: ClassVar[str] = "multipleChoice"

    def _body(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "question": _inline_list(self.question),
            "options": [option.to_dict() for option in self.options],
        }
        if self.correct_answer is not None:
            data["correctAnswer"] = self.correct_answer
        return data


@dataclass(frozen=True)
class DividerBlock(Block):
    style: str = "solid"

    type: ClassVar[str] = "divider"

    def _body(self) -> dict[str, Any]:
        return {"style": self.style}


BLOCK_TYPES: dict[str, type[Block]] = {
    cls.type: cls
    for cls in (
        HeadingBlock,
        ParagraphBlock,
        ListBlock,
        TableBlock,
        ImageBlock,
        CodeBlock,
        BlockquoteBlock,
        ChoiceQuestionBlock,
        DividerBlock,
    )
}


def block_from_dict(data: Mapping[str, Any]) -> Block:
    """Build a block from its wire shape.

    Assumes the shape was already checked by DocumentValidator.
    """
    kind = data["type"]
    meta = data.get("metadata") or {}
    common: dict[str, Any] = {
        "id": data["id"],
        "confidence": meta.get("confidence"),
        "source_context": meta.get("sourceContext"),
    }

    if kind == "heading":
        return HeadingBlock(level=data["level"], content=_inline_tuple(data["content"]), **common)
    if kind == "paragraph":
        return ParagraphBlock(content=_inline_tuple(data["content"]), **common)
    if kind == "list":
        return ListBlock(
            list_type=data["listType"],
            items=tuple(ListItem.from_dict(item) for item in data["items"]),
            **common,
        )
    if kind == "table":
        return TableBlock(
            headers=TableRow.from_dict(data["headers"]),
            rows=tuple(TableRow.from_dict(row) for row in data["rows"]),
            caption=data.get("caption"),
            **common,
        )
    if kind == "image":
        return ImageBlock(
            src=data["src"],
            alt=data.get("alt"),
            caption=data.get("caption"),
            width=data.get("width"),
            height=data.get("height"),
            **common,
        )
    if kind == "codeBlock":
        return CodeBlock(code=data["content"], language=data.get("language"), **common)
    if kind == "blockquote":
        return BlockquoteBlock(
            content=tuple(block_from_dict(child) for child in data["content"]),
            citation=data.get("citation"),
            **common,
        )
    if kind == "multipleChoice":
        return ChoiceQuestionBlock(
            question=_inline_tuple(data["question"]),
            options=tuple(ChoiceOption.from_dict(option) for option in data["options"]),
            correct_answer=data.get("correctAnswer"),
            **common,
        )
    if kind == "divider":
        return DividerBlock(style=data.get("style") or "solid", **common)
    raise ValueError(f"Unknown block type: {kind!r}")


# ═══════════════════════════════════════════════════════════════════════════════
# Document
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class DocumentMetadata:
    """Document-level metadata."""

    document_type: DocumentType = DocumentType.OTHER
    language: str = "en"
    confidence_score: float = 0.5
    title: str | None = None
    author: str | None = None
    subject: str | None = None
    keywords: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "documentType": self.document_type.value,
            "language": self.language,
            "confidenceScore": self.confidence_score,
        }
        for key in ("title", "author", "subject"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        if self.keywords:
            data["keywords"] = list(self.keywords)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DocumentMetadata:
        return cls(
            document_type=DocumentType(data["documentType"]),
            language=data["language"],
            confidence_score=float(data["confidenceScore"]),
            title=data.get("title"),
            author=data.get("author"),
            subject=data.get("subject"),
            keywords=tuple(data.get("keywords") or ()),
        )


@dataclass(frozen=True)
class CanonicalDocument:
    """
    Structured, validated representation of a document.

    Example:
        >>> doc = result.document
        >>> doc.metadata.document_type
        <DocumentType.REPORT: 'report'>
        >>> [block.type for block in doc.blocks]
        ['heading', 'paragraph', 'list']
    """

    metadata: DocumentMetadata
    blocks: tuple[Block, ...] = ()
    version: str = FORMAT_VERSION
    created_at: str = field(default_factory=utc_now_iso)
    updated_at: str = field(default_factory=utc_now_iso)

    def iter_blocks(self) -> Iterator[Block]:
        """Depth-first walk over blocks, including blockquote children."""
        stack = list(reversed(self.blocks))
        while stack:
            block = stack.pop()
            yield block
            if isinstance(block, BlockquoteBlock):
                stack.extend(reversed(block.content))

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to dictionary for JSON serialization.

        Returns:
            Wire representation of the document
        """
        return {
            "metadata": self.metadata.to_dict(),
            "content": [block.to_dict() for block in self.blocks],
            "version": self.version,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CanonicalDocument:
        """Build a document from its wire shape (validate first)."""
        return cls(
            metadata=DocumentMetadata.from_dict(data["metadata"]),
            blocks=tuple(block_from_dict(block) for block in data["content"]),
            version=data["version"],
            created_at=data["createdAt"],
            updated_at=data["updatedAt"],
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Provenance
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class FallbackAttempt:
    """One tier's attempt during a structuring run."""

    tier: str
    succeeded: bool
    reason: str | None = None  # Failure reason
    elapsed_ms: float = 0.0

    @property
    def outcome(self) -> str:
        return "success" if self.succeeded else "failure"

    def to_dict(self) -> dict[str, Any]:
        return {
            "tier": self.tier,
            "outcome": self.outcome,
            "reason": self.reason,
            "elapsedMs": self.elapsed_ms,
        }


@dataclass(frozen=True)
class StructuringResult:
    """Accepted document plus the attempts that led to it."""

    document: CanonicalDocument
    provenance: tuple[FallbackAttempt, ...]

    @property
    def tier_used(self) -> str:
        return self.provenance[-1].tier

    @property
    def attempt_count(self) -> int:
        return len(self.provenance)

    @property
    def elapsed_ms(self) -> float:
        return sum(attempt.elapsed_ms for attempt in self.provenance)

    def to_dict(self) -> dict[str, Any]:
        return {
            "canonical": self.document.to_dict(),
            "provenance": [attempt.to_dict() for attempt in self.provenance],
            "tierUsed": self.tier_used,
            "attemptCount": self.attempt_count,
            "elapsedMs": self.elapsed_ms,
        }
