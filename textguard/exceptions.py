"""
Exception classes for TextGuard.

All TextGuard exceptions inherit from TextGuardError, making it easy
to catch all library errors. Each error carries a ``kind`` discriminator
so callers can report failures as structured records.

Example:
    >>> try:
    ...     result = orchestrator.structure("")
    ... except textguard.InputError as e:
    ...     print(e.to_dict())
    {'kind': 'input', 'message': 'Raw text cannot be empty'}
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from textguard.models import FallbackAttempt
    from textguard.structuring.validators import Violation


class TextGuardError(Exception):
    """
    Base exception for all TextGuard errors.

    Catch this to handle any TextGuard-specific error.
    """

    kind: str = "error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.provenance: list[FallbackAttempt] = []

    def to_dict(self) -> dict[str, Any]:
        """Structured representation for boundary reporting."""
        return {"kind": self.kind, "message": self.message}


class InputError(TextGuardError):
    """
    Raised for empty, oversized or malformed raw text.

    Terminal: no structuring tier is attempted.
    """

    kind = "input"


class RequestCancelledError(InputError):
    """Raised when the caller cancels an in-flight structuring request."""

    kind = "cancelled"


class ExternalCallError(TextGuardError):
    """
    Raised when the external structuring service fails.

    Covers network failures, timeouts and non-conforming responses.
    Recovered locally by advancing to the next tier; only surfaced
    when fallback is disabled.
    """

    kind = "external_call"

    def __init__(self, message: str = "", *, tier: str | None = None) -> None:
        super().__init__(message)
        self.tier = tier


class ValidationError(TextGuardError):
    """
    Raised when a candidate document fails structural validation.

    Carries every violation found, not just the first.
    """

    kind = "validation"

    def __init__(self, violations: list[Violation], message: str | None = None) -> None:
        self.violations = list(violations)
        if message is None:
            message = f"Document failed validation with {len(self.violations)} violation(s)"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["violations"] = [v.to_dict() for v in self.violations]
        return data


class ConfigurationError(TextGuardError):
    """
    Raised for invalid or missing configuration.

    Raised at construction time, never per request.

    Example:
        >>> ServiceSettings.from_env({})
        ConfigurationError: Missing required environment variables: TEXTGUARD_API_KEY
    """

    kind = "configuration"


class StructuringExhaustedError(TextGuardError):
    """
    Raised when every configured structuring tier failed.

    Unreachable with the default tiers on non-empty input, since the
    trivial tier always produces a valid document.
    """

    kind = "exhausted"
