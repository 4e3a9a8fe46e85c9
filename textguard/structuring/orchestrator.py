"""
Tiered structuring with validation and provenance.

Turns raw text into a validated CanonicalDocument by trying each
strategy in order:
1. Sanitize and bound-check the input (InputError before any tier)
2. Run the tier; external tiers run on a worker thread with a deadline
3. Validate the candidate against the document contract
4. Record a FallbackAttempt; on failure advance to the next tier

The orchestrator holds no per-request state, so one instance can
structure independent documents concurrently.
"""

from __future__ import annotations

import logging
import re
import threading
import time
from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor, wait

from textguard.config import ServiceSettings, StructuringConfig
from textguard.exceptions import (
    ConfigurationError,
    ExternalCallError,
    InputError,
    RequestCancelledError,
    StructuringExhaustedError,
    TextGuardError,
)
from textguard.models import FallbackAttempt, StructuringResult
from textguard.structuring.client import OpenAIStructuringClient, StructuringClient
from textguard.structuring.strategies import (
    Candidate,
    StructuringOptions,
    StructuringStrategy,
    default_strategies,
)
from textguard.structuring.validators import DocumentValidator

logger = logging.getLogger(__name__)

# Control characters except tab, newline and carriage return
CONTROL_CHARS_PATTERN = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
BOM_PATTERN = re.compile("[\ufeff\ufffe\uffff]")


def sanitize_text(raw_text: str) -> str:
    """Strip control characters and byte-order marks, then trim.

    Raises:
        InputError: If raw_text is not a string.
    """
    if not isinstance(raw_text, str):
        raise InputError(f"Raw text must be a string, got {type(raw_text).__name__}")
    text = CONTROL_CHARS_PATTERN.sub("", raw_text)
    text = BOM_PATTERN.sub("", text)
    return text.strip()


class StructuringOrchestrator:
    """
    Structure raw text through a fallback chain of strategies.

    Example:
        >>> orchestrator = StructuringOrchestrator.from_env()
        >>> result = orchestrator.structure(text, StructuringOptions(language="en"))
        >>> result.tier_used
        'rich'
        >>> [a.outcome for a in result.provenance]
        ['success']
    """

    def __init__(
        self,
        strategies: Sequence[StructuringStrategy],
        validator: DocumentValidator | None = None,
        config: StructuringConfig | None = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            strategies: Tiers in fallback order
            validator: Document validator (default: standard rule set)
            config: Timeouts and input limits
        """
        if not strategies:
            raise ConfigurationError("At least one structuring strategy is required")
        self.strategies = list(strategies)
        self.validator = validator or DocumentValidator()
        self.config = config or StructuringConfig()

    @classmethod
    def from_settings(
        cls,
        settings: ServiceSettings,
        config: StructuringConfig | None = None,
        client: StructuringClient | None = None,
    ) -> StructuringOrchestrator:
        """Build the default rich/simplified/heuristic/trivial chain."""
        config = config or StructuringConfig()
        client = client or OpenAIStructuringClient(settings)
        return cls(
            default_strategies(client, default_language=config.default_language),
            config=config,
        )

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        config: StructuringConfig | None = None,
    ) -> StructuringOrchestrator:
        """
        Build the default chain from ``TEXTGUARD_*`` environment variables.

        Raises:
            ConfigurationError: If credentials are missing or malformed.
        """
        return cls.from_settings(ServiceSettings.from_env(environ), config=config)

    def structure(
        self,
        raw_text: str,
        options: StructuringOptions | None = None,
        cancel_event: threading.Event | None = None,
    ) -> StructuringResult:
        """
        Structure raw text into a validated document.

        Args:
            raw_text: Text to structure
            options: Language/document type hints and fallback switch
            cancel_event: Set by the caller to abandon the request

        Returns:
            StructuringResult with the document and every attempt made

        Raises:
            InputError: If the text is empty, oversized or not a string
            RequestCancelledError: If cancel_event was set
            ExternalCallError / ValidationError: The first tier's failure,
                when fallback is disabled
            StructuringExhaustedError: If every tier failed
        """
        options = options or StructuringOptions()
        text = sanitize_text(raw_text)
        if not text:
            raise InputError("Raw text cannot be empty")
        if len(text) > self.config.max_input_chars:
            raise InputError(
                f"Raw text too long: {len(text)} characters "
                f"(maximum {self.config.max_input_chars})"
            )

        strategies = self.strategies if options.enable_fallback else self.strategies[:1]
        provenance: list[FallbackAttempt] = []

        for strategy in strategies:
            start = time.perf_counter()
            try:
                self._check_cancelled(cancel_event)
                candidate = self._attempt(strategy, text, options, cancel_event)
                document = self.validator.validate(candidate)
            except RequestCancelledError as e:
                e.provenance = list(provenance)
                logger.info("Structuring cancelled before tier %s", strategy.name)
                raise
            except Exception as e:
                elapsed_ms = (time.perf_counter() - start) * 1000
                reason = e.message if isinstance(e, TextGuardError) else f"{type(e).__name__}: {e}"
                provenance.append(FallbackAttempt(strategy.name, False, reason, elapsed_ms))
                logger.warning("Structuring tier %s failed: %s", strategy.name, reason)
                if not options.enable_fallback:
                    if isinstance(e, TextGuardError):
                        e.provenance = list(provenance)
                    raise
                continue

            elapsed_ms = (time.perf_counter() - start) * 1000
            provenance.append(FallbackAttempt(strategy.name, True, None, elapsed_ms))
            if len(provenance) > 1:
                logger.info(
                    "Structured with tier %s after %d failed tier(s)",
                    strategy.name,
                    len(provenance) - 1,
                )
            return StructuringResult(document=document, provenance=tuple(provenance))

        error = StructuringExhaustedError(
            f"All {len(provenance)} structuring tier(s) failed: "
            + "; ".join(f"{a.tier}: {a.reason}" for a in provenance)
        )
        error.provenance = provenance
        raise error

    def _attempt(
        self,
        strategy: StructuringStrategy,
        text: str,
        options: StructuringOptions,
        cancel_event: threading.Event | None,
    ) -> Candidate:
        """
        Run one tier, bounding external tiers by the tier deadline.

        External calls run on a single-use worker thread. On timeout or
        cancellation the result is abandoned, but a call already in flight
        cannot be interrupted from here: the worker keeps its HTTP request
        open until the service answers or the client's own request timeout
        (the same ``tier_timeout_seconds``, passed through ``attempt``)
        expires, after which the thread exits and its connection is released.
        """
        if not strategy.external:
            return strategy.attempt(text, options)

        timeout = self.config.tier_timeout_seconds
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"textguard-{strategy.name}")
        try:
            future = executor.submit(strategy.attempt, text, options, timeout=timeout)
            deadline = time.monotonic() + timeout
            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    future.cancel()
                    raise ExternalCallError(f"timed out after {timeout:g}s", tier=strategy.name)

                done, _ = wait([future], timeout=min(self.config.poll_interval_seconds, remaining))
                if done:
                    return future.result()

                if cancel_event is not None and cancel_event.is_set():
                    future.cancel()
                    raise RequestCancelledError("Structuring request was cancelled")
        finally:
            # A timed-out call is abandoned; its thread finishes on its own
            executor.shutdown(wait=False, cancel_futures=True)

    @staticmethod
    def _check_cancelled(cancel_event: threading.Event | None) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise RequestCancelledError("Structuring request was cancelled")


def structure_text(
    raw_text: str,
    options: StructuringOptions | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    config: StructuringConfig | None = None,
) -> StructuringResult:
    """
    Convenience function for one-off structuring with env credentials.

    Example:
        >>> result = structure_text("1. Scope\\n\\nThis agreement covers...")
        >>> result.document.blocks[0].type
        'heading'
    """
    return StructuringOrchestrator.from_env(environ, config).structure(raw_text, options)
