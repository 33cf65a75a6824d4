"""Application service: Products for Price Update (query)."""

from __future__ import annotations

from grocer.application.dto import ProductPriceDTO
from grocer.domain.model.discount import DiscountType
from grocer.domain.repository.unit_of_work import UnitOfWork
from grocer.domain.service.discount_resolver import DiscountResolver
from grocer.domain.service.price_engine import PriceEngine


class ListProductsHandler:

    def __init__(
        self,
        uow: UnitOfWork,
        engine: PriceEngine,
        resolver: DiscountResolver,
    ) -> None:
        self._uow = uow
        self._engine = engine
        self._resolver = resolver

    def handle(self, search: str | None = None) -> list[ProductPriceDTO]:
        """Active products, sorted by name, as shown on the price-update screen."""
        with self._uow as uow:
            products = uow.products.list_active(search.strip() if search else None)

        lines: list[ProductPriceDTO] = []
        for product in products:
            discount = self._resolver.active_discount(product)
            lines.append(
                ProductPriceDTO(
                    id=product.id,  # type: ignore[arg-type]
                    name=product.name,
                    regular_price=f"{product.regular_price.amount:.2f}",
                    selling_price=f"{self._engine.effective_price(product):.2f}",
                    has_discount=discount is not None,
                    discount_type=(
                        discount.discount_type.value if discount else DiscountType.NONE.value
                    ),
                    discount_value=(
                        f"{discount.discount_value:.2f}"
                        if discount and discount.discount_value is not None
                        else None
                    ),
                    discount_percentage=f"{self._engine.discount_percentage(product):.2f}",
                    stock_quantity=f"{product.stock_quantity:.2f}",
                    stock_unit=product.stock_unit,
                )
            )
        return lines
