"""Extraction contracts sent to the external structuring service."""

from __future__ import annotations

from textguard.models import DocumentType

_DOCUMENT_TYPES = ", ".join(t.value for t in DocumentType)

_ENVELOPE = f"""Return a JSON object with these keys:
- "metadata": {{"documentType": one of [{_DOCUMENT_TYPES}], "language": BCP-47 tag,
  "confidenceScore": number in [0, 1], optional "title", "author", "subject", "keywords"}}
- "content": ordered list of blocks, every block with a unique string "id" and a "type"
- "version": "1.0"
"""

_INLINE = """Inline content is a list of elements:
- {"type": "text", "text": ..., optional "formatting": {"bold", "italic", "underline",
  "strikethrough", "code", "superscript", "subscript": booleans}}
- {"type": "link", "text": ..., "url": ...}
- {"type": "break", "breakType": "soft" | "hard"}
"""

_RICH_BLOCKS = """Block types:
- heading: "level" 1-3, "content" inline list
- paragraph: "content" inline list
- list: "listType" "bulleted" | "numbered", "items": [{"id", "content", optional nested "items"}]
- table: "headers": {"id", "cells"}, "rows": [{"id", "cells"}], optional "caption";
  cells are {"id", "content", "colspan" >= 1, "rowspan" >= 1, "isHeader"}
- image: "src", optional "alt", "caption"
- codeBlock: "content" string, optional "language"
- blockquote: "content" list of blocks, optional "citation"
- multipleChoice: "question" inline list, "options": [{"id", "content", "isCorrect"}],
  optional "correctAnswer" index
- divider: optional "style" "solid" | "dashed" | "dotted"
"""

_SIMPLE_BLOCKS = """Use only these block types:
- heading: "level" 1-3, "content": [{"type": "text", "text": ...}]
- paragraph: "content": [{"type": "text", "text": ...}]
- list: "listType" "bulleted" | "numbered", "items": [{"id", "content"}]
"""


def _hints(language: str | None, document_type: DocumentType | None) -> str:
    hints = []
    if language:
        hints.append(f"The document language is {language}.")
    if document_type:
        hints.append(f"The document type is {document_type.value}.")
    return "\n".join(hints)


def build_rich_prompt(
    raw_text: str,
    language: str | None = None,
    document_type: DocumentType | None = None,
) -> str:
    """Full contract: every block type, inline formatting, tables, metadata."""
    return "\n".join(
        part
        for part in (
            "Convert the text below into a structured document.",
            "Preserve every word; do not summarize or invent content.",
            _ENVELOPE,
            _RICH_BLOCKS,
            _INLINE,
            _hints(language, document_type),
            "TEXT:",
            raw_text,
        )
        if part
    )


def build_simplified_prompt(
    raw_text: str,
    language: str | None = None,
    document_type: DocumentType | None = None,
) -> str:
    """Reduced contract: paragraphs, headings and lists only."""
    return "\n".join(
        part
        for part in (
            "Split the text below into headings, paragraphs and lists.",
            _ENVELOPE,
            _SIMPLE_BLOCKS,
            _hints(language, document_type),
            "TEXT:",
            raw_text,
        )
        if part
    )
