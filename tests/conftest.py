"""
Pytest configuration and fixtures for TextGuard tests.
"""

from pathlib import Path

import pytest


@pytest.fixture(scope="session")
def scoring_config():
    """Return the default ScoringConfig."""
    from textguard import ScoringConfig

    return ScoringConfig()


@pytest.fixture
def sample_pdf(tmp_path) -> Path:
    """Two-page PDF: page 0 has a text layer, page 1 is blank."""
    import fitz

    path = tmp_path / "sample.pdf"
    doc = fitz.open()
    page = doc.new_page()
    page.insert_text(
        (72, 72),
        "The quarterly report covers revenue, costs and staffing changes.",
    )
    doc.new_page()
    doc.save(path)
    doc.close()
    return path


@pytest.fixture
def valid_document_dict() -> dict:
    """A wire-shaped document that passes every validation rule."""
    return {
        "metadata": {
            "documentType": "report",
            "language": "en",
            "confidenceScore": 0.9,
            "title": "Quarterly Report",
        },
        "content": [
            {
                "id": "h-1",
                "type": "heading",
                "level": 1,
                "content": [{"type": "text", "text": "Quarterly Report"}],
            },
            {
                "id": "p-1",
                "type": "paragraph",
                "content": [
                    {"type": "text", "text": "Revenue grew ", "formatting": {"bold": True}},
                    {"type": "link", "text": "details", "url": "https://example.com/q3"},
                    {"type": "break", "breakType": "soft"},
                ],
            },
            {
                "id": "l-1",
                "type": "list",
                "listType": "bulleted",
                "items": [
                    {"id": "l-1-1", "content": [{"type": "text", "text": "Sales"}]},
                    {
                        "id": "l-1-2",
                        "content": [{"type": "text", "text": "Costs"}],
                        "items": [
                            {"id": "l-1-2-1", "content": [{"type": "text", "text": "Rent"}]}
                        ],
                    },
                ],
            },
            {
                "id": "t-1",
                "type": "table",
                "headers": {
                    "id": "t-1-h",
                    "cells": [
                        {
                            "id": "t-1-h-1",
                            "content": [{"type": "text", "text": "Quarter"}],
                            "colspan": 1,
                            "rowspan": 1,
                            "isHeader": True,
                        }
                    ],
                },
                "rows": [
                    {
                        "id": "t-1-r-1",
                        "cells": [
                            {
                                "id": "t-1-r-1-1",
                                "content": [{"type": "text", "text": "Q3"}],
                                "colspan": 1,
                                "rowspan": 1,
                                "isHeader": False,
                            }
                        ],
                    }
                ],
                "caption": "Revenue by quarter",
            },
            {"id": "c-1", "type": "codeBlock", "content": "print('hi')", "language": "python"},
            {
                "id": "q-1",
                "type": "blockquote",
                "content": [
                    {
                        "id": "q-1-p",
                        "type": "paragraph",
                        "content": [{"type": "text", "text": "Quoted"}],
                    }
                ],
                "citation": "CEO",
            },
            {
                "id": "m-1",
                "type": "multipleChoice",
                "question": [{"type": "text", "text": "Best quarter?"}],
                "options": [
                    {"id": "m-1-a", "content": [{"type": "text", "text": "Q2"}], "isCorrect": False},
                    {"id": "m-1-b", "content": [{"type": "text", "text": "Q3"}], "isCorrect": True},
                ],
                "correctAnswer": 1,
            },
            {"id": "i-1", "type": "image", "src": "chart.png", "alt": "Chart"},
            {"id": "d-1", "type": "divider", "style": "dashed"},
        ],
        "version": "1.0",
        "createdAt": "2026-01-01T00:00:00Z",
        "updatedAt": "2026-01-01T00:00:00Z",
    }
