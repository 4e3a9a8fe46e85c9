"""
Configuration for TextGuard scoring, extraction routing and structuring.

All configuration objects are immutable. Construct them once at startup
and pass them explicitly into the scorer, router and orchestrator.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from textguard.exceptions import ConfigurationError

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-4o-mini"


@dataclass(frozen=True)
class ScoringConfig:
    """
    Thresholds for text quality scoring.

    Defaults follow the values tuned for PDF text layers: ten characters
    minimum, one token per twenty characters, 1.5 bits of entropy and
    three tokens.

    Example:
        >>> config = ScoringConfig(min_token_count=5)
        >>> result = textguard.score("Some extracted text", config)
    """

    min_absolute_length: int = 10
    min_token_density: float = 0.05
    min_entropy: float = 1.5
    min_token_count: int = 3
    confidence_threshold: float = 0.5

    def __post_init__(self):
        """Validate configuration."""
        if self.min_absolute_length < 0:
            raise ConfigurationError(
                f"min_absolute_length must be >= 0, got {self.min_absolute_length}"
            )
        if self.min_token_density < 0.0:
            raise ConfigurationError(
                f"min_token_density must be >= 0.0, got {self.min_token_density}"
            )
        if self.min_entropy < 0.0:
            raise ConfigurationError(f"min_entropy must be >= 0.0, got {self.min_entropy}")
        if self.min_token_count < 0:
            raise ConfigurationError(f"min_token_count must be >= 0, got {self.min_token_count}")
        if self.confidence_threshold < 0.0 or self.confidence_threshold > 1.0:
            raise ConfigurationError(
                f"confidence_threshold must be between 0.0 and 1.0, "
                f"got {self.confidence_threshold}"
            )


@dataclass(frozen=True)
class RouterConfig:
    """Configuration for per-page extraction routing."""

    # Pages classified concurrently
    max_workers: int = 5
    scoring: ScoringConfig = field(default_factory=ScoringConfig)

    def __post_init__(self):
        """Validate configuration."""
        if self.max_workers < 1:
            raise ConfigurationError(f"max_workers must be >= 1, got {self.max_workers}")


@dataclass(frozen=True)
class StructuringConfig:
    """
    Configuration for the structuring orchestrator.

    Example:
        >>> config = StructuringConfig(tier_timeout_seconds=20.0)
        >>> orchestrator = StructuringOrchestrator.from_env(config=config)
    """

    tier_timeout_seconds: float = 45.0
    max_input_chars: int = 100_000
    default_language: str = "en"
    # How often a waiting tier checks for cancellation
    poll_interval_seconds: float = 0.05

    def __post_init__(self):
        """Validate configuration."""
        if self.tier_timeout_seconds <= 0:
            raise ConfigurationError(
                f"tier_timeout_seconds must be > 0, got {self.tier_timeout_seconds}"
            )
        if self.max_input_chars < 1:
            raise ConfigurationError(f"max_input_chars must be >= 1, got {self.max_input_chars}")
        if not self.default_language:
            raise ConfigurationError("default_language cannot be empty")
        if self.poll_interval_seconds <= 0:
            raise ConfigurationError(
                f"poll_interval_seconds must be > 0, got {self.poll_interval_seconds}"
            )


@dataclass(frozen=True)
class ServiceSettings:
    """Validated credentials for the external structuring service."""

    api_key: str
    model: str = DEFAULT_MODEL
    base_url: str = DEFAULT_BASE_URL

    def __post_init__(self):
        """Validate configuration."""
        if not self.api_key:
            raise ConfigurationError("api_key cannot be empty")
        if not self.model:
            raise ConfigurationError("model cannot be empty")
        if not (self.base_url.startswith("http://") or self.base_url.startswith("https://")):
            raise ConfigurationError("base_url must start with http:// or https://")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ServiceSettings:
        """Load settings from ``TEXTGUARD_*`` environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``.

        Raises:
            ConfigurationError: If the API key is missing or the base URL is malformed.
        """
        source: Mapping[str, str] = os.environ if environ is None else environ

        api_key = source.get("TEXTGUARD_API_KEY", "").strip()
        model = source.get("TEXTGUARD_MODEL", DEFAULT_MODEL).strip()
        base_url = source.get("TEXTGUARD_BASE_URL", DEFAULT_BASE_URL).strip()

        missing = []
        if not api_key:
            missing.append("TEXTGUARD_API_KEY")
        if not model:
            missing.append("TEXTGUARD_MODEL")
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}"
            )

        if not (base_url.startswith("http://") or base_url.startswith("https://")):
            raise ConfigurationError("TEXTGUARD_BASE_URL must start with http:// or https://")

        return cls(api_key=api_key, model=model, base_url=base_url.rstrip("/"))
