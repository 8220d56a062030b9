"""Value Objects shared across the domain.

Value Objects are immutable and compared by value, not identity.
They encapsulate validation so invalid values can never exist.
"""

from __future__ import annotations

from dataclasses import dataclass

from rms.domain.exceptions import InconsistentAmountsError, ValidationError


@dataclass(frozen=True)
class PaymentBreakdown:
    """Monetary state of a reservation, in minor currency units.

    Integers only, so there is no rounding to worry about.  The invariant
    ``total == deposit + remaining`` holds for every instance; a
    reservation changes its amounts by swapping in a new breakdown.
    """

    total: int
    deposit: int
    remaining: int
    currency: str = "XOF"

    def __post_init__(self) -> None:
        for name in ("total", "deposit", "remaining"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise InconsistentAmountsError(
                    f"{name.capitalize()} must be an integer amount, "
                    f"got {type(value).__name__}"
                )
            if value < 0:
                raise InconsistentAmountsError(
                    f"{name.capitalize()} cannot be negative, got {value}"
                )
        if self.total != self.deposit + self.remaining:
            raise InconsistentAmountsError(
                f"Total {self.total} must equal deposit {self.deposit} "
                f"+ remaining {self.remaining}"
            )

    def replace(
        self,
        total: int | None = None,
        deposit: int | None = None,
        remaining: int | None = None,
    ) -> PaymentBreakdown:
        """Return a new breakdown with some amounts changed."""
        return PaymentBreakdown(
            total=self.total if total is None else total,
            deposit=self.deposit if deposit is None else deposit,
            remaining=self.remaining if remaining is None else remaining,
            currency=self.currency,
        )

    def apply_payment(self, amount: int) -> PaymentBreakdown:
        """Move *amount* from remaining to deposit."""
        if amount <= 0:
            raise InconsistentAmountsError("Payment amount must be positive")
        if amount > self.remaining:
            raise InconsistentAmountsError(
                f"Payment {amount} exceeds remaining balance {self.remaining}"
            )
        return self.replace(
            deposit=self.deposit + amount,
            remaining=self.remaining - amount,
        )

    @property
    def is_settled(self) -> bool:
        return self.remaining == 0

    def __str__(self) -> str:
        return (
            f"total {self.total:,} {self.currency} "
            f"(deposit {self.deposit:,}, remaining {self.remaining:,})"
        )


@dataclass(frozen=True)
class Quantity:
    """A positive integer quantity.

    Enforces the invariant that you cannot reserve zero or negative items.
    """

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValidationError(
                f"Quantity must be an integer, got {type(self.value).__name__}"
            )
        if self.value <= 0:
            raise ValidationError("Quantity must be positive")

    def __str__(self) -> str:
        return str(self.value)
