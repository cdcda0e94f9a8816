"""
Domain exceptions raised by services before any write is made.
"""

from typing import Any


class DomainError(ValueError):
    """Base class; the API maps each subclass to an HTTP status."""

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details


class NotFoundError(DomainError):
    """Referenced order, document, contact, product or account is missing."""

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} not found", entity=entity, id=entity_id)
        self.entity = entity
        self.entity_id = entity_id


class InvalidStateError(DomainError):
    """Document status forbids the requested operation."""


class ConcurrentUpdateError(InvalidStateError):
    """The row changed between read and write; the caller may retry on fresh data."""

    def __init__(self, entity: str, number: str):
        super().__init__(f"{entity} {number} was changed by another request", entity=entity, number=number)


class InvalidInputError(DomainError):
    def __init__(self, message: str, field: str | None = None, **details: Any):
        if field is not None:
            details["field"] = field
        super().__init__(message, **details)
        self.field = field


class CalculationInconsistencyError(DomainError):
    def __init__(self, validation):
        super().__init__(
            "; ".join(validation.errors) or "Tax calculation inconsistent",
            errors=list(validation.errors),
            warnings=list(validation.warnings),
        )
        self.validation = validation


class DependencyFailureError(DomainError):
    """A product or tax lookup failed while enriching a line."""

    def __init__(self, entity: str, entity_id: Any, reason: str = "lookup failed", line_index: int | None = None):
        super().__init__(
            f"{entity} {entity_id}: {reason}",
            entity=entity,
            id=entity_id,
            line=line_index,
        )
        self.entity = entity
        self.entity_id = entity_id
        self.reason = reason
        self.line_index = line_index
