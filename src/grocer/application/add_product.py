"""Application service: Add Product use case."""

from __future__ import annotations

from grocer.domain.exceptions import ValidationError
from grocer.domain.model.product import Product
from grocer.domain.model.value_objects import ZERO, Money, to_decimal
from grocer.domain.repository.unit_of_work import UnitOfWork
from grocer.domain.service.unit_converter import UnitConverter


class AddProductHandler:

    def __init__(self, uow: UnitOfWork, converter: UnitConverter) -> None:
        self._uow = uow
        self._converter = converter

    def handle(self, name: str, price: str, stock_quantity: str, stock_unit: str) -> Product:
        """Add a new product to the catalog."""
        if not name or not name.strip():
            raise ValidationError("Product name is required")
        if not self._converter.is_known(stock_unit):
            raise ValidationError(f"Unknown stock unit '{stock_unit}'")

        stock = to_decimal(stock_quantity, "stock quantity")
        if stock < ZERO:
            raise ValidationError("Stock quantity cannot be negative")

        with self._uow as uow:
            existing = uow.products.get_by_name(name.strip())
            if existing is not None:
                raise ValidationError(f"Product '{name.strip()}' already exists")

            product = Product(
                id=None,
                name=name.strip(),
                regular_price=Money.of(price),
                stock_quantity=stock,
                stock_unit=self._converter.normalize(stock_unit),
            )
            product = uow.products.save(product)
            uow.commit()
        return product
