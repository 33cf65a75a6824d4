"""Value Objects shared across the domain.

Value Objects are immutable and compared by value, not identity.
They encapsulate validation so invalid values can never exist.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from grocer.domain.exceptions import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0")
DEFAULT_CURRENCY = "AED"


def round_money(value: Decimal) -> Decimal:
    """Round to 2 decimals, halves away from zero."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_decimal(value: str | float | int | Decimal, field: str = "value") -> Decimal:
    """Coerce user input to Decimal.

    Floats go through ``str`` so ``0.1`` stays ``0.1`` instead of the binary
    approximation.
    """
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {field}: {value!r}")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError(f"Invalid {field}: {value!r}") from exc
    if not result.is_finite():
        raise ValidationError(f"Invalid {field}: {value!r}")
    return result


@dataclass(frozen=True)
class Money:
    """Monetary amount with currency.

    Uses Decimal to avoid floating-point rounding errors that would be
    unacceptable in financial calculations.
    """

    amount: Decimal
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            raise ValidationError(
                f"Money amount must be a Decimal, got {type(self.amount).__name__}"
            )
        if self.amount < ZERO:
            raise ValidationError(
                f"Money amount cannot be negative, got {self.amount}"
            )

    # --- Display --------------------------------------------------------------

    def __str__(self) -> str:
        return f"{self.currency} {round_money(self.amount):,.2f}"

    # --- Factory --------------------------------------------------------------

    @staticmethod
    def of(amount: str | float | int | Decimal, currency: str = DEFAULT_CURRENCY) -> Money:
        """Convenient factory that coerces to Decimal safely."""
        return Money(to_decimal(amount, "money amount"), currency)


@dataclass(frozen=True)
class Quantity:
    """A positive quantity expressed in a unit (``0.5 kg``, ``3 pcs``).

    Enforces the invariant that you cannot order zero or negative amounts.
    """

    value: Decimal
    unit: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, Decimal):
            raise ValidationError(
                f"Quantity must be a Decimal, got {type(self.value).__name__}"
            )
        if self.value <= ZERO:
            raise ValidationError("Quantity must be positive")
        if not self.unit or not self.unit.strip():
            raise ValidationError("Quantity unit is required")

    def __str__(self) -> str:
        return f"{self.value.normalize():f} {self.unit}"

    @staticmethod
    def of(value: str | float | int | Decimal, unit: str) -> Quantity:
        return Quantity(to_decimal(value, "quantity"), unit.strip())
