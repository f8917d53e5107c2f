"""Error taxonomy for the planning engine.

Only ``ValidationError`` ever escapes a planning call. ``ProviderError`` is
raised by decomposition providers and absorbed by the decomposer, which
substitutes the deterministic fallback.
"""
from __future__ import annotations


class PlannerError(Exception):
    """Base class for planning engine errors."""


class ValidationError(PlannerError, ValueError):
    """Caller-supplied input violates a precondition of the planning call."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field


class ProviderError(PlannerError):
    """The external decomposition provider failed or returned unusable content."""
