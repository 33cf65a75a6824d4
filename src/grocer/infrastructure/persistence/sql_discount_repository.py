"""SQLAlchemy-backed implementation of DiscountRepository."""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import or_, select, update
from sqlalchemy.orm import Session

from grocer.domain.model.discount import (
    Discount,
    DiscountProposal,
    DiscountStatus,
    DiscountType,
)
from grocer.domain.repository.discount_repository import DiscountRepository
from grocer.infrastructure.persistence.database import translate_operational_errors
from grocer.infrastructure.persistence.orm import DiscountRow


class SqlDiscountRepository(DiscountRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    # --- DiscountRepository interface -----------------------------------------

    def list_for_product(self, product_id: int) -> list[Discount]:
        return self.list_for_products([product_id]).get(product_id, [])

    def active_for(self, product_id: int, today: date) -> Discount | None:
        stmt = (
            select(DiscountRow)
            .where(
                DiscountRow.product_id == product_id,
                DiscountRow.status == DiscountStatus.ACTIVE.value,
                DiscountRow.discount_type != DiscountType.NONE.value,
                or_(DiscountRow.start_date.is_(None), DiscountRow.start_date <= today),
                or_(DiscountRow.end_date.is_(None), DiscountRow.end_date >= today),
            )
            .order_by(DiscountRow.created_at.desc(), DiscountRow.id.desc())
            .limit(1)
        )
        with translate_operational_errors("Loading active discount"):
            row = self._session.execute(stmt).scalar_one_or_none()
        return None if row is None else to_domain(row)

    def upsert_active(
        self, product_id: int, proposal: DiscountProposal, created_at: datetime
    ) -> Discount:
        with translate_operational_errors("Saving discount"):
            self.deactivate(product_id)
            row = DiscountRow(
                product_id=product_id,
                discount_type=proposal.discount_type.value,
                discount_value=proposal.discount_value,
                start_date=proposal.start_date,
                end_date=proposal.end_date,
                status=DiscountStatus.ACTIVE.value,
                created_at=created_at,
            )
            self._session.add(row)
            self._session.flush()
        return to_domain(row)

    def deactivate(self, product_id: int) -> int:
        stmt = (
            update(DiscountRow)
            .where(
                DiscountRow.product_id == product_id,
                DiscountRow.status == DiscountStatus.ACTIVE.value,
            )
            .values(status=DiscountStatus.INACTIVE.value)
        )
        with translate_operational_errors("Deactivating discounts"):
            return self._session.execute(stmt).rowcount

    # --- Bulk loading (used by the product repository) ------------------------

    def list_for_products(self, product_ids: list[int]) -> dict[int, list[Discount]]:
        if not product_ids:
            return {}
        stmt = (
            select(DiscountRow)
            .where(DiscountRow.product_id.in_(product_ids))
            .order_by(DiscountRow.created_at.desc(), DiscountRow.id.desc())
            .execution_options(populate_existing=True)
        )
        grouped: dict[int, list[Discount]] = {}
        with translate_operational_errors("Loading discounts"):
            for row in self._session.execute(stmt).scalars():
                grouped.setdefault(row.product_id, []).append(to_domain(row))
        return grouped


def to_domain(row: DiscountRow) -> Discount:
    return Discount(
        id=row.id,
        product_id=row.product_id,
        discount_type=DiscountType(row.discount_type),
        discount_value=row.discount_value,
        start_date=row.start_date,
        end_date=row.end_date,
        status=DiscountStatus(row.status),
        created_at=row.created_at,
    )
