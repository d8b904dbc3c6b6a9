"""Custom exceptions for age-bulk."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from age_bulk.shape import Violation


class AgeBulkError(Exception):
    """Base exception for all age-bulk errors."""


class MetadataValidationError(AgeBulkError):
    """Raised when a type's graph tags break a shape rule, or a tagged value is unusable.

    Carries the offending type and every violated rule so callers can report
    all problems at once instead of fixing them one by one.
    """

    def __init__(self, model_class: type, violations: Sequence["Violation"]):
        self.model_class = model_class
        self.violations = tuple(violations)
        name = getattr(model_class, "__qualname__", repr(model_class))
        details = "; ".join(f"[{v.rule}] {v.message}" for v in self.violations)
        super().__init__(f"Invalid graph metadata on {name}: {details}")

    @property
    def rules(self) -> list[str]:
        return [v.rule for v in self.violations]


class GenerationCapabilityError(AgeBulkError):
    """Raised when a strong randomness source is unavailable for id or sample generation."""


class TransportError(AgeBulkError):
    """Raised when the bulk-write transport fails in a way a batch cannot recover from."""


class InvalidEntityIdError(AgeBulkError, ValueError):
    """Raised when an entity id is not of the form GROUP_CATEGORY."""


class GraphNotFoundError(AgeBulkError):
    """Raised when a graph does not exist."""


class SampleGenerationError(AgeBulkError, ValueError):
    """Raised when synthetic data cannot be generated from the given inputs."""
