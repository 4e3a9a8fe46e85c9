#!/usr/bin/env python3
"""
Basic TextGuard Usage Example

This example demonstrates the core workflow:
1. Score a piece of extracted text
2. Route PDF pages between the text layer and OCR
3. Structure the recovered text into a canonical document
4. Inspect the fallback provenance
"""

import json
import logging
import threading

from textguard import (
    ConfigurationError,
    RouterConfig,
    ScoringConfig,
    StructuringOptions,
    StructuringOrchestrator,
    TextGuardError,
    classify_pdf,
    score,
)


def main():
    logging.basicConfig(level=logging.INFO, format="%(name)s %(levelname)s %(message)s")

    # ─────────────────────────────────────────────────────────────────────────
    # 1. Text Quality Scoring
    # ─────────────────────────────────────────────────────────────────────────

    for sample in ["." * 50, "Đã thanh toán.", "aa aa aa aa aa"]:
        result = score(sample)
        print(f"{sample[:20]!r:24} valid={result.is_valid} "
              f"confidence={result.confidence:.1f} reason={result.reason}")

    # ─────────────────────────────────────────────────────────────────────────
    # 2. Per-Page Extraction Routing
    # ─────────────────────────────────────────────────────────────────────────

    config = RouterConfig(
        max_workers=4,
        scoring=ScoringConfig(min_token_count=5),  # Stricter for dense reports
    )
    summary = classify_pdf("path/to/document.pdf", config=config, ocr_language="eng+vie")

    print(f"Method: {summary.method.value}")
    print(f"  Direct pages: {summary.direct_pages}")
    print(f"  Re-extracted pages: {summary.reextracted_pages}")
    for page in summary.pages:
        if page.error:
            print(f"  Page {page.page_index} failed OCR: {page.error}")

    # ─────────────────────────────────────────────────────────────────────────
    # 3. Structuring
    # ─────────────────────────────────────────────────────────────────────────

    try:
        orchestrator = StructuringOrchestrator.from_env()
    except ConfigurationError as e:
        print(f"Set TEXTGUARD_API_KEY to enable service tiers: {e}")
        return

    options = StructuringOptions(language="en", document_type="report")
    cancel = threading.Event()  # Set from another thread to abandon the request

    try:
        result = orchestrator.structure(summary.text, options, cancel_event=cancel)
    except TextGuardError as e:
        print(json.dumps(e.to_dict(), indent=2))
        return

    # ─────────────────────────────────────────────────────────────────────────
    # 4. Provenance
    # ─────────────────────────────────────────────────────────────────────────

    print(f"Structured by tier {result.tier_used} after {result.attempt_count} attempt(s)")
    for attempt in result.provenance:
        print(f"  {attempt.tier}: {attempt.outcome} ({attempt.elapsed_ms:.0f}ms) {attempt.reason or ''}")

    for block in result.document.blocks[:5]:
        print(f"  [{block.type}] {block.id}")

    with open("document.json", "w", encoding="utf-8") as f:
        json.dump(result.to_dict(), f, ensure_ascii=False, indent=2)


if __name__ == "__main__":
    main()
