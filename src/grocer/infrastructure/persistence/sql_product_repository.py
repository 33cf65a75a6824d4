"""SQLAlchemy-backed implementation of ProductRepository."""

from __future__ import annotations

from dataclasses import replace

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from grocer.domain.exceptions import EntityNotFoundError
from grocer.domain.model.discount import Discount
from grocer.domain.model.product import Product, ProductStatus
from grocer.domain.model.value_objects import Money
from grocer.domain.repository.product_repository import ProductRepository
from grocer.infrastructure.persistence.database import translate_operational_errors
from grocer.infrastructure.persistence.orm import ProductRow
from grocer.infrastructure.persistence.sql_discount_repository import SqlDiscountRepository


class SqlProductRepository(ProductRepository):

    def __init__(self, session: Session, discounts: SqlDiscountRepository) -> None:
        self._session = session
        self._discounts = discounts

    # --- ProductRepository interface ------------------------------------------

    def get_by_id(self, product_id: int) -> Product | None:
        return self._fetch_one(self._by_id(product_id), "Loading product")

    def get_by_id_for_update(self, product_id: int) -> Product | None:
        # SELECT ... FOR UPDATE: blocks while another transaction holds the row.
        return self._fetch_one(
            self._by_id(product_id).with_for_update(), "Locking product"
        )

    def get_by_name(self, name: str) -> Product | None:
        stmt = select(ProductRow).where(func.lower(ProductRow.name) == name.strip().lower())
        return self._fetch_one(stmt, "Loading product")

    def list_active(self, search: str | None = None) -> list[Product]:
        stmt = select(ProductRow).where(ProductRow.status == ProductStatus.ACTIVE.value)
        if search:
            stmt = stmt.where(func.lower(ProductRow.name).contains(search.lower()))
        stmt = stmt.order_by(ProductRow.name)

        with translate_operational_errors("Listing products"):
            rows = list(self._session.execute(stmt).scalars())
        discounts = self._discounts.list_for_products([row.id for row in rows])
        return [self._to_domain(row, discounts.get(row.id, [])) for row in rows]

    def save(self, product: Product) -> Product:
        with translate_operational_errors("Saving product"):
            if product.id is None:
                row = ProductRow()
                self._session.add(row)
            else:
                row = self._session.get(ProductRow, product.id)
                if row is None:
                    raise EntityNotFoundError(f"Product with ID '{product.id}' not found")
            self._to_row(product, row)
            self._session.flush()
        return replace(product, id=row.id)

    # --- Serialization helpers ------------------------------------------------

    @staticmethod
    def _by_id(product_id: int) -> Select:
        return (
            select(ProductRow)
            .where(ProductRow.id == product_id)
            .execution_options(populate_existing=True)
        )

    def _fetch_one(self, stmt: Select, action: str) -> Product | None:
        with translate_operational_errors(action):
            row = self._session.execute(stmt).scalar_one_or_none()
        if row is None:
            return None
        return self._to_domain(row, self._discounts.list_for_product(row.id))

    @staticmethod
    def _to_domain(row: ProductRow, discounts: list[Discount]) -> Product:
        return Product(
            id=row.id,
            name=row.name,
            regular_price=Money(row.regular_price, row.currency),
            stock_quantity=row.stock_quantity,
            stock_unit=row.stock_unit,
            status=ProductStatus(row.status),
            discounts=discounts,
            updated_by=row.updated_by,
        )

    @staticmethod
    def _to_row(product: Product, row: ProductRow) -> None:
        row.name = product.name
        row.regular_price = product.regular_price.amount
        row.currency = product.regular_price.currency
        row.stock_quantity = product.stock_quantity
        row.stock_unit = product.stock_unit
        row.status = product.status.value
        row.updated_by = product.updated_by
