"""Domain service: selling prices, line prices and cart totals.

All operations are pure reads. Monetary figures are rounded to 2
decimals only where they are reported, never in the middle of a chain
of arithmetic. One exception: the regular subtotal of a converted line
is derived from the already-rounded line subtotal and the already-rounded
effective price.

Unit conversion failures never escape: the quantity is treated as
already being in the product's stock unit and a warning is logged.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

import structlog

from grocer.domain.exceptions import UnitConversionError
from grocer.domain.model.discount import Discount, DiscountType
from grocer.domain.model.product import Product
from grocer.domain.model.value_objects import ZERO, round_money
from grocer.domain.service.discount_resolver import DiscountResolver
from grocer.domain.service.unit_converter import UnitConverter

logger = structlog.get_logger(__name__)

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class CartItem:
    product: Product
    quantity: Decimal
    unit: str | None = None


@dataclass(frozen=True)
class CartTotal:
    """``discount`` is informational; it is already inside ``subtotal``."""

    subtotal: Decimal
    discount: Decimal
    total: Decimal


@dataclass(frozen=True)
class PriceBreakdown:
    regular_price: Decimal
    effective_price: Decimal
    quantity: Decimal
    unit: str
    has_discount: bool
    discount_percentage: Decimal
    discount_amount: Decimal  # saved on this line
    regular_subtotal: Decimal
    subtotal: Decimal


class PriceEngine:

    def __init__(self, resolver: DiscountResolver, converter: UnitConverter) -> None:
        self._resolver = resolver
        self._converter = converter

    # --- Per-unit prices ------------------------------------------------------

    def effective_price(self, product: Product) -> Decimal:
        discount = self._resolver.active_discount(product)
        return self._selling_price(product.regular_price.amount, discount)

    def discount_amount(self, product: Product) -> Decimal:
        discount = self._resolver.active_discount(product)
        return round_money(self._raw_discount(product.regular_price.amount, discount))

    def discount_percentage(self, product: Product) -> Decimal:
        discount = self._resolver.active_discount(product)
        if discount is None:
            return round_money(ZERO)
        if discount.discount_type == DiscountType.PERCENTAGE:
            return round_money(discount.discount_value or ZERO)

        regular = product.regular_price.amount
        if regular == ZERO:
            return round_money(ZERO)
        amount = round_money(self._raw_discount(regular, discount))
        return round_money(amount / regular * HUNDRED)

    def selling_price_for(
        self,
        regular_price: Decimal,
        discount_type: DiscountType,
        discount_value: Decimal | None,
    ) -> Decimal:
        """Selling price for explicit values, e.g. an audit snapshot."""
        if discount_type == DiscountType.NONE or not discount_value:
            return round_money(regular_price)
        discount = Discount(
            id=None,
            product_id=0,
            discount_type=discount_type,
            discount_value=discount_value,
        )
        return self._selling_price(regular_price, discount)

    # --- Quantities -----------------------------------------------------------

    def quantity_in_stock_unit(
        self, product: Product, quantity: Decimal, unit: str | None = None
    ) -> Decimal:
        """Express ``quantity`` of ``unit`` in the product's stock unit.

        Falls back to ``quantity`` unchanged when the units cannot be
        converted.
        """
        converted, _ = self._to_stock_unit(product, quantity, unit)
        return converted

    def price_for_quantity(
        self, product: Product, quantity: Decimal, unit: str | None = None
    ) -> Decimal:
        """Price of ``quantity`` (in ``unit``) at the effective price.

        Example: 1 kg costs 100, so 500 g costs 50.
        """
        price = self.effective_price(product)
        return round_money(price * self.quantity_in_stock_unit(product, quantity, unit))

    def cart_total(self, items: list[CartItem]) -> CartTotal:
        subtotal = ZERO
        discount = ZERO

        for item in items:
            product = item.product
            unit = item.unit or product.stock_unit
            effective = self.effective_price(product)
            per_unit_saving = product.regular_price.amount - effective
            converted = self.quantity_in_stock_unit(product, item.quantity, unit)

            subtotal += round_money(effective * converted)
            discount += round_money(per_unit_saving * converted)

        subtotal = round_money(subtotal)
        return CartTotal(
            subtotal=subtotal,
            discount=round_money(discount),
            total=subtotal,
        )

    def price_breakdown(
        self, product: Product, quantity: Decimal, unit: str | None = None
    ) -> PriceBreakdown:
        unit = unit or product.stock_unit
        regular = product.regular_price.amount
        discount = self._resolver.active_discount(product)
        effective = self._selling_price(regular, discount)
        in_stock_unit, converted = self._to_stock_unit(product, quantity, unit)
        subtotal = round_money(effective * in_stock_unit)

        if converted and effective > ZERO:
            regular_subtotal = subtotal / effective * regular
        else:
            regular_subtotal = regular * in_stock_unit

        has_discount = discount is not None
        return PriceBreakdown(
            regular_price=round_money(regular),
            effective_price=effective,
            quantity=quantity,
            unit=unit,
            has_discount=has_discount,
            discount_percentage=(
                self.discount_percentage(product) if has_discount else round_money(ZERO)
            ),
            discount_amount=round_money(regular_subtotal - subtotal),
            regular_subtotal=round_money(regular_subtotal),
            subtotal=subtotal,
        )

    # --- Internal helpers -----------------------------------------------------

    def _to_stock_unit(
        self, product: Product, quantity: Decimal, unit: str | None
    ) -> tuple[Decimal, bool]:
        """``(quantity in stock unit, whether a conversion was applied)``."""
        if unit is None or self._converter.same_unit(unit, product.stock_unit):
            return quantity, False
        try:
            factor = self._converter.factor(product.stock_unit, unit)
        except UnitConversionError as exc:
            logger.warning(
                "unit_conversion_failed",
                product_id=product.id,
                product=product.name,
                quantity=str(quantity),
                unit=unit,
                stock_unit=product.stock_unit,
                error=str(exc),
            )
            return quantity, False
        return quantity / factor, True

    @staticmethod
    def _raw_discount(regular: Decimal, discount: Discount | None) -> Decimal:
        """Unrounded discount per stock unit, kept within ``[0, regular]``."""
        if discount is None or discount.discount_type == DiscountType.NONE:
            return ZERO
        value = discount.discount_value or ZERO
        if discount.discount_type == DiscountType.PERCENTAGE:
            amount = regular * value / HUNDRED
        else:
            amount = value
        return min(max(amount, ZERO), regular)

    def _selling_price(self, regular: Decimal, discount: Discount | None) -> Decimal:
        return round_money(max(ZERO, regular - self._raw_discount(regular, discount)))
