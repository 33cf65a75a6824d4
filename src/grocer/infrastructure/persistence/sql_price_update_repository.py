"""SQLAlchemy-backed implementation of PriceUpdateRepository."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from grocer.domain.model.discount import DiscountType
from grocer.domain.model.price_update import PriceUpdate
from grocer.domain.repository.price_update_repository import PriceUpdateRepository
from grocer.infrastructure.persistence.database import translate_operational_errors
from grocer.infrastructure.persistence.orm import PriceUpdateRow

_NEWEST_FIRST = (PriceUpdateRow.created_at.desc(), PriceUpdateRow.id.desc())


class SqlPriceUpdateRepository(PriceUpdateRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    # --- PriceUpdateRepository interface --------------------------------------

    def insert(self, record: PriceUpdate) -> PriceUpdate:
        row = self._to_row(record)
        with translate_operational_errors("Recording price update"):
            self._session.add(row)
            self._session.flush()
        return replace(record, id=row.id)

    def query_by_product(self, product_id: int, limit: int) -> list[PriceUpdate]:
        stmt = (
            select(PriceUpdateRow)
            .where(PriceUpdateRow.product_id == product_id)
            .order_by(*_NEWEST_FIRST)
            .limit(limit)
        )
        return self._fetch(stmt)

    def query_by_date_range(self, start: datetime, end: datetime) -> list[PriceUpdate]:
        stmt = (
            select(PriceUpdateRow)
            .where(PriceUpdateRow.created_at.between(start, end))
            .order_by(*_NEWEST_FIRST)
        )
        return self._fetch(stmt)

    def query_recent(self, limit: int) -> list[PriceUpdate]:
        stmt = select(PriceUpdateRow).order_by(*_NEWEST_FIRST).limit(limit)
        return self._fetch(stmt)

    def count_since(self, since: datetime) -> int:
        stmt = select(func.count(PriceUpdateRow.id)).where(PriceUpdateRow.created_at >= since)
        with translate_operational_errors("Counting price updates"):
            return self._session.execute(stmt).scalar_one()

    # --- Serialization --------------------------------------------------------

    def _fetch(self, stmt) -> list[PriceUpdate]:
        with translate_operational_errors("Loading price updates"):
            return [self._to_domain(row) for row in self._session.execute(stmt).scalars()]

    @staticmethod
    def _to_row(record: PriceUpdate) -> PriceUpdateRow:
        return PriceUpdateRow(
            product_id=record.product_id,
            old_regular_price=record.old_regular_price,
            new_regular_price=record.new_regular_price,
            old_discount_type=record.old_discount_type.value,
            new_discount_type=record.new_discount_type.value,
            old_discount_value=record.old_discount_value,
            new_discount_value=record.new_discount_value,
            old_stock_quantity=record.old_stock_quantity,
            new_stock_quantity=record.new_stock_quantity,
            old_selling_price=record.old_selling_price,
            new_selling_price=record.new_selling_price,
            updated_by=record.updated_by,
            created_at=record.created_at,
        )

    @staticmethod
    def _to_domain(row: PriceUpdateRow) -> PriceUpdate:
        return PriceUpdate(
            id=row.id,
            product_id=row.product_id,
            old_regular_price=row.old_regular_price,
            new_regular_price=row.new_regular_price,
            old_discount_type=DiscountType(row.old_discount_type),
            new_discount_type=DiscountType(row.new_discount_type),
            old_discount_value=row.old_discount_value,
            new_discount_value=row.new_discount_value,
            old_stock_quantity=row.old_stock_quantity,
            new_stock_quantity=row.new_stock_quantity,
            old_selling_price=row.old_selling_price,
            new_selling_price=row.new_selling_price,
            updated_by=row.updated_by,
            created_at=row.created_at,
        )
