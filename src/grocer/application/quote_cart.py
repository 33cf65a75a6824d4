"""Application service: Quote Cart use case.

Resolves what the customer asked for on the order form into priced lines
and totals. Prices are read at quote time; nothing is persisted.
"""

from __future__ import annotations

from grocer.application.dto import CartItemSpec, CartLineDTO, CartQuoteDTO
from grocer.domain.exceptions import EntityNotFoundError, ValidationError
from grocer.domain.model.value_objects import Quantity
from grocer.domain.repository.unit_of_work import UnitOfWork
from grocer.domain.service.price_engine import CartItem, PriceEngine

MAX_CART_LINES = 50


class QuoteCartHandler:

    def __init__(self, uow: UnitOfWork, engine: PriceEngine) -> None:
        self._uow = uow
        self._engine = engine

    def handle(self, item_specs: list[CartItemSpec]) -> CartQuoteDTO:
        if not item_specs:
            raise ValidationError("Cart must contain at least one item")
        if len(item_specs) > MAX_CART_LINES:
            raise ValidationError(f"Maximum {MAX_CART_LINES} items per cart")

        items: list[CartItem] = []
        with self._uow as uow:
            for spec in item_specs:
                product = uow.products.get_by_id(spec.product_id)
                if product is None:
                    raise EntityNotFoundError(f"Product not found: {spec.product_id}")
                if not product.is_active:
                    raise ValidationError(f"Product '{product.name}' is not available")

                quantity = Quantity.of(spec.quantity, spec.unit or product.stock_unit)
                items.append(CartItem(product, quantity.value, quantity.unit))

        lines = [self._to_line(item) for item in items]
        total = self._engine.cart_total(items)
        return CartQuoteDTO(
            lines=lines,
            subtotal=f"{total.subtotal:.2f}",
            discount=f"{total.discount:.2f}",
            total=f"{total.total:.2f}",
        )

    # --- Mapping --------------------------------------------------------------

    def _to_line(self, item: CartItem) -> CartLineDTO:
        breakdown = self._engine.price_breakdown(item.product, item.quantity, item.unit)
        return CartLineDTO(
            product_id=item.product.id,  # type: ignore[arg-type]
            product_name=item.product.name,
            quantity=f"{breakdown.quantity.normalize():f}",
            unit=breakdown.unit,
            regular_price=f"{breakdown.regular_price:.2f}",
            effective_price=f"{breakdown.effective_price:.2f}",
            has_discount=breakdown.has_discount,
            discount_percentage=f"{breakdown.discount_percentage:.2f}",
            regular_subtotal=f"{breakdown.regular_subtotal:.2f}",
            discount_amount=f"{breakdown.discount_amount:.2f}",
            subtotal=f"{breakdown.subtotal:.2f}",
        )
