"""Data Transfer Objects — plain containers that cross layer boundaries.

DTOs carry data between the CLI/API and application layers without
exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from grocer.domain.exceptions import ValidationError
from grocer.domain.model.discount import DiscountProposal, DiscountType
from grocer.domain.model.value_objects import ZERO, round_money, to_decimal

# --- Bulk price update: input -------------------------------------------------

_DISCOUNT_KEYS = ("discount_type", "discount_value", "discount_start_date", "discount_end_date")


@dataclass(frozen=True)
class PriceUpdateRequest:
    """One entry of a bulk update batch, numbers already parsed.

    The discount part stays raw: bad discount input must not fail the
    item, so it is parsed separately by ``discount_proposal()``.
    """

    product_id: int
    regular_price: Decimal | None = None
    stock_quantity: Decimal | None = None
    discount_fields: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def from_payload(payload: dict[str, Any]) -> PriceUpdateRequest:
        raw_id = payload.get("product_id")
        if raw_id is None or raw_id == "":
            raise ValidationError("Product ID is required")
        try:
            product_id = int(raw_id)
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Invalid product ID: {raw_id!r}") from exc

        return PriceUpdateRequest(
            product_id=product_id,
            regular_price=_non_negative(payload.get("regular_price"), "regular price"),
            stock_quantity=_non_negative(payload.get("stock_quantity"), "stock quantity"),
            discount_fields={k: payload[k] for k in _DISCOUNT_KEYS if k in payload},
        )

    @property
    def has_discount_input(self) -> bool:
        return self.discount_fields.get("discount_type") not in (None, "")

    def discount_proposal(self) -> DiscountProposal:
        """Parse the discount fields. Raises ValidationError if they are unusable."""
        fields = self.discount_fields
        discount_type = DiscountType.parse(fields.get("discount_type"))
        if discount_type == DiscountType.NONE:
            return DiscountProposal(DiscountType.NONE)

        raw_value = fields.get("discount_value")
        value = None if raw_value in (None, "") else to_decimal(raw_value, "discount value")
        return DiscountProposal(
            discount_type=discount_type,
            discount_value=value,
            start_date=_parse_date(fields.get("discount_start_date"), "discount start date"),
            end_date=_parse_date(fields.get("discount_end_date"), "discount end date"),
        )


def _non_negative(raw: Any, label: str) -> Decimal | None:
    if raw is None or raw == "":
        return None
    value = to_decimal(raw, label)
    if value < ZERO:
        raise ValidationError(f"{label.capitalize()} cannot be negative")
    return round_money(value)


def _parse_date(raw: Any, label: str) -> date | None:
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    try:
        return date.fromisoformat(str(raw).strip()[:10])
    except ValueError as exc:
        raise ValidationError(f"Invalid {label}: {raw!r}") from exc


# --- Bulk price update: output ------------------------------------------------


@dataclass(frozen=True)
class ItemChanges:
    price: bool = False
    stock: bool = False
    discount: bool = False

    @property
    def any(self) -> bool:
        return self.price or self.stock or self.discount


@dataclass(frozen=True)
class ItemResult:
    product_id: int
    product_name: str
    updated: bool
    changes: ItemChanges


@dataclass(frozen=True)
class ItemError:
    product_id: Any
    index: int
    error: str


@dataclass(frozen=True)
class BulkUpdateResult:
    """``success`` is about the batch; individual items may still be in ``errors``."""

    success: bool
    updated: int
    errors: list[ItemError] = field(default_factory=list)
    results: list[ItemResult] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        if self.error is None:
            del data["error"]
        return data


# --- Price history ------------------------------------------------------------


@dataclass(frozen=True)
class PriceUpdateDTO:
    id: int
    product_id: int
    product_name: str | None
    old_regular_price: str | None
    new_regular_price: str | None
    old_discount_type: str
    new_discount_type: str
    old_discount_value: str | None
    new_discount_value: str | None
    old_stock_quantity: str | None
    new_stock_quantity: str | None
    old_selling_price: str | None
    new_selling_price: str
    price_change_percentage: str | None
    updated_by: int | None
    created_at: str


# --- Catalog / storefront -----------------------------------------------------


@dataclass(frozen=True)
class ProductPriceDTO:
    """A product row on the price-update screen."""

    id: int
    name: str
    regular_price: str
    selling_price: str
    has_discount: bool
    discount_type: str
    discount_value: str | None
    discount_percentage: str
    stock_quantity: str
    stock_unit: str


@dataclass(frozen=True)
class CartItemSpec:
    """Input: what the customer asked for (product id, quantity, unit)."""

    product_id: int
    quantity: str
    unit: str | None = None


@dataclass(frozen=True)
class CartLineDTO:
    product_id: int
    product_name: str
    quantity: str
    unit: str
    regular_price: str
    effective_price: str
    has_discount: bool
    discount_percentage: str
    regular_subtotal: str
    discount_amount: str
    subtotal: str


@dataclass(frozen=True)
class CartQuoteDTO:
    lines: list[CartLineDTO]
    subtotal: str
    discount: str
    total: str
