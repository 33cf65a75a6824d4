"""PriceUpdate — the append-only price audit record.

Every bulk update that materially changes a product writes exactly one
PriceUpdate holding the before/after values of the tracked fields. Once
written a record is never changed; it is the only source of historical
price truth.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from grocer.domain.model.discount import DiscountType
from grocer.domain.model.value_objects import ZERO, round_money


@dataclass(frozen=True)
class PriceSnapshot:
    """The tracked fields of a product at one instant.

    ``discount_type`` is NONE and ``discount_value`` is None when no
    discount was active. ``selling_price`` is computed, not stored on the
    product.
    """

    regular_price: Decimal
    stock_quantity: Decimal
    discount_type: DiscountType
    discount_value: Decimal | None
    selling_price: Decimal

    def price_differs(self, other: PriceSnapshot) -> bool:
        return self.regular_price != other.regular_price

    def stock_differs(self, other: PriceSnapshot) -> bool:
        return self.stock_quantity != other.stock_quantity

    def discount_differs(self, other: PriceSnapshot) -> bool:
        if self.discount_type != other.discount_type:
            return True
        if self.discount_type == DiscountType.NONE:
            return False
        return self.discount_value != other.discount_value


@dataclass(frozen=True)
class PriceUpdate:
    id: int | None
    product_id: int
    old_regular_price: Decimal | None
    new_regular_price: Decimal | None
    old_discount_type: DiscountType
    new_discount_type: DiscountType
    old_discount_value: Decimal | None
    new_discount_value: Decimal | None
    old_stock_quantity: Decimal | None
    new_stock_quantity: Decimal | None
    old_selling_price: Decimal | None
    new_selling_price: Decimal
    updated_by: int | None
    created_at: datetime

    @staticmethod
    def from_snapshots(
        product_id: int,
        old: PriceSnapshot,
        new: PriceSnapshot,
        new_selling_price: Decimal,
        updated_by: int | None,
        created_at: datetime,
    ) -> PriceUpdate:
        return PriceUpdate(
            id=None,
            product_id=product_id,
            old_regular_price=old.regular_price,
            new_regular_price=new.regular_price,
            old_discount_type=old.discount_type,
            new_discount_type=new.discount_type,
            old_discount_value=old.discount_value,
            new_discount_value=new.discount_value,
            old_stock_quantity=old.stock_quantity,
            new_stock_quantity=new.stock_quantity,
            old_selling_price=round_money(old.selling_price),
            new_selling_price=round_money(new_selling_price),
            updated_by=updated_by,
            created_at=created_at,
        )

    @property
    def price_change_percentage(self) -> Decimal | None:
        """Relative change of the selling price, in percent.

        None when there is no meaningful base to compare against.
        """
        if not self.old_regular_price or self.old_selling_price is None:
            return None
        if self.old_selling_price == ZERO:
            return None
        change = self.new_selling_price - self.old_selling_price
        return round_money(change / self.old_selling_price * 100)
