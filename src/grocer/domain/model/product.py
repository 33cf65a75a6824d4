"""Product aggregate.

Products are owned by the catalog. The pricing core only mutates their
regular price and stock quantity; it never creates or deletes them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from grocer.domain.exceptions import ValidationError
from grocer.domain.model.discount import Discount
from grocer.domain.model.value_objects import ZERO, Money


class ProductStatus(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


@dataclass
class Product:
    """A product in the catalog.

    ``discounts`` holds every discount record of the product, active or
    not. Which one applies right now is decided by the DiscountResolver,
    never by the product itself.
    """

    id: int | None
    name: str
    regular_price: Money
    stock_quantity: Decimal
    stock_unit: str
    status: ProductStatus = ProductStatus.ACTIVE
    discounts: list[Discount] = field(default_factory=list)
    updated_by: int | None = None

    @property
    def is_active(self) -> bool:
        return self.status == ProductStatus.ACTIVE

    def update_price(self, new_price: Money) -> None:
        """Change the regular price.

        Existing orders and audit rows are unaffected; they hold their
        own snapshots.
        """
        if new_price.currency != self.regular_price.currency:
            raise ValidationError(
                f"Cannot price {self.name} in {new_price.currency}, "
                f"catalog currency is {self.regular_price.currency}"
            )
        self.regular_price = new_price

    def update_stock(self, quantity: Decimal) -> None:
        if quantity < ZERO:
            raise ValidationError("Stock quantity cannot be negative")
        self.stock_quantity = quantity
