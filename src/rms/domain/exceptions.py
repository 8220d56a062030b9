"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.

Only ``StorageError`` is eligible for an automatic retry by callers; every
other kind is an expected outcome the caller branches on.
"""

from __future__ import annotations


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class InvalidInputError(ValidationError):
    """Malformed input to a value object (empty name, negative quantity...)."""


class InconsistentAmountsError(ValidationError):
    """``total == deposit + remaining`` does not hold, or an amount is negative."""


class InvalidStatusError(ValidationError):
    """A status token could not be parsed."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class InvalidTransitionError(DomainException):
    """The reservation state machine does not allow the requested change."""


class InsufficientStockError(DomainException):
    """Current stock cannot cover one or more reservation lines.

    ``shortages`` lists ``(item_name, requested, available)`` for every
    line that came up short, so callers can prompt for restocking.
    """

    def __init__(
        self,
        message: str = "insufficient stock for one or more items",
        shortages: list[tuple[str, int, int]] | None = None,
    ) -> None:
        super().__init__(message)
        self.shortages = list(shortages or [])


class StorageError(DomainException):
    """The underlying store failed; all partial effects were rolled back."""
