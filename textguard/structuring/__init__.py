"""
Document structuring.

Converts raw text into a validated canonical document through a chain of
strategies (rich service call, simplified service call, local heuristics,
single paragraph), recording which tier produced the result.
"""

from textguard.structuring.client import OpenAIStructuringClient, StructuringClient
from textguard.structuring.orchestrator import (
    StructuringOrchestrator,
    sanitize_text,
    structure_text,
)
from textguard.structuring.strategies import (
    HeuristicStrategy,
    RichStrategy,
    SimplifiedStrategy,
    StructuringOptions,
    StructuringStrategy,
    TrivialStrategy,
    default_strategies,
    detect_language,
)
from textguard.structuring.validators import (
    BlockShapeRule,
    DocumentRule,
    DocumentValidator,
    EnvelopeRule,
    MetadataRule,
    UniqueIdRule,
    Violation,
)

__all__ = [
    # Orchestration
    "StructuringOrchestrator",
    "structure_text",
    "sanitize_text",
    # Strategies
    "StructuringOptions",
    "StructuringStrategy",
    "RichStrategy",
    "SimplifiedStrategy",
    "HeuristicStrategy",
    "TrivialStrategy",
    "default_strategies",
    "detect_language",
    # Service client
    "StructuringClient",
    "OpenAIStructuringClient",
    # Validation
    "DocumentValidator",
    "DocumentRule",
    "EnvelopeRule",
    "MetadataRule",
    "UniqueIdRule",
    "BlockShapeRule",
    "Violation",
]
