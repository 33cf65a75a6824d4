"""Discount records attached to a product.

A product can accumulate many discount records over time. At most one is
expected to be active; the others are kept (deactivated, never deleted)
as history.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum

from grocer.domain.exceptions import ValidationError
from grocer.domain.model.value_objects import ZERO


class DiscountType(Enum):
    NONE = "none"
    PERCENTAGE = "percentage"
    FIXED = "fixed"

    @staticmethod
    def parse(raw: str | DiscountType | None) -> DiscountType:
        if isinstance(raw, DiscountType):
            return raw
        if raw is None:
            return DiscountType.NONE
        try:
            return DiscountType(str(raw).strip().lower())
        except ValueError as exc:
            raise ValidationError(f"Unknown discount type: {raw!r}") from exc


class DiscountStatus(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


@dataclass
class Discount:
    """A discount record.

    The optional ``start_date``/``end_date`` window is inclusive on both
    days; a missing bound leaves that side open.
    """

    id: int | None
    product_id: int
    discount_type: DiscountType
    discount_value: Decimal | None
    start_date: date | None = None
    end_date: date | None = None
    status: DiscountStatus = DiscountStatus.ACTIVE
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def is_active(self, today: date) -> bool:
        """True if the record applies on ``today`` (a store-local date)."""
        if self.status != DiscountStatus.ACTIVE:
            return False
        if self.discount_type == DiscountType.NONE:
            return False
        if self.start_date is not None and today < self.start_date:
            return False
        if self.end_date is not None and today > self.end_date:
            return False
        return True

    def deactivate(self) -> None:
        self.status = DiscountStatus.INACTIVE


@dataclass(frozen=True)
class DiscountProposal:
    """A requested discount, validated but not yet stored."""

    discount_type: DiscountType
    discount_value: Decimal | None = None
    start_date: date | None = None
    end_date: date | None = None

    def __post_init__(self) -> None:
        if self.discount_type == DiscountType.NONE:
            return
        if self.discount_value is None:
            raise ValidationError(
                f"Discount value is required for a {self.discount_type.value} discount"
            )
        if self.discount_value <= ZERO:
            raise ValidationError("Discount value must be greater than zero")
        if (
            self.start_date is not None
            and self.end_date is not None
            and self.end_date < self.start_date
        ):
            raise ValidationError("Discount end date is before its start date")

    @property
    def removes_discount(self) -> bool:
        return self.discount_type == DiscountType.NONE

    def matches(self, discount: Discount | None) -> bool:
        """True if ``discount`` already stores exactly this proposal."""
        if discount is None:
            return self.removes_discount
        return (
            discount.discount_type == self.discount_type
            and discount.discount_value == self.discount_value
            and discount.start_date == self.start_date
            and discount.end_date == self.end_date
        )
