"""Application service: Price History queries (read-only)."""

from __future__ import annotations

from datetime import date, datetime, time, tzinfo
from decimal import Decimal

from grocer.application.dto import PriceUpdateDTO
from grocer.domain.exceptions import ValidationError
from grocer.domain.model.price_update import PriceUpdate
from grocer.domain.repository.unit_of_work import UnitOfWork
from grocer.domain.service.discount_resolver import Clock, utc_now
from grocer.domain.service.price_audit_ledger import PriceAuditLedger

MAX_LIMIT = 100


class ShowPriceHistoryHandler:

    def __init__(self, uow: UnitOfWork, tz: tzinfo, clock: Clock = utc_now) -> None:
        self._uow = uow
        self._tz = tz
        self._clock = clock

    def for_product(self, product_id: int, limit: int = 50) -> list[PriceUpdateDTO]:
        """Audit rows of one product, newest first."""
        _check_limit(limit)
        with self._uow as uow:
            return self._to_dtos(uow, self._ledger(uow).history(product_id, limit))

    def between(self, start: date, end: date) -> list[PriceUpdateDTO]:
        """Audit rows created from ``start`` to ``end`` inclusive, newest first."""
        with self._uow as uow:
            return self._to_dtos(uow, self._ledger(uow).by_date_range(start, end))

    def recent(self, limit: int = 20) -> list[PriceUpdateDTO]:
        _check_limit(limit)
        with self._uow as uow:
            return self._to_dtos(uow, self._ledger(uow).recent(limit))

    def count_since(self, day: date | None = None) -> int:
        """Number of audit rows since ``day`` 00:00 store time, today by default."""
        if day is None:
            day = self._clock().astimezone(self._tz).date()
        since = datetime.combine(day, time.min, tzinfo=self._tz)
        with self._uow as uow:
            return self._ledger(uow).count_since(since)

    # --- Mapping --------------------------------------------------------------

    def _ledger(self, uow: UnitOfWork) -> PriceAuditLedger:
        return PriceAuditLedger(uow.price_updates, clock=self._clock, tz=self._tz)

    def _to_dtos(self, uow: UnitOfWork, records: list[PriceUpdate]) -> list[PriceUpdateDTO]:
        names: dict[int, str | None] = {}
        for record in records:
            if record.product_id not in names:
                product = uow.products.get_by_id(record.product_id)
                names[record.product_id] = product.name if product else None
        return [self._to_dto(record, names[record.product_id]) for record in records]

    def _to_dto(self, record: PriceUpdate, product_name: str | None) -> PriceUpdateDTO:
        change = record.price_change_percentage
        return PriceUpdateDTO(
            id=record.id,  # type: ignore[arg-type]
            product_id=record.product_id,
            product_name=product_name,
            old_regular_price=_fmt(record.old_regular_price),
            new_regular_price=_fmt(record.new_regular_price),
            old_discount_type=record.old_discount_type.value,
            new_discount_type=record.new_discount_type.value,
            old_discount_value=_fmt(record.old_discount_value),
            new_discount_value=_fmt(record.new_discount_value),
            old_stock_quantity=_fmt(record.old_stock_quantity),
            new_stock_quantity=_fmt(record.new_stock_quantity),
            old_selling_price=_fmt(record.old_selling_price),
            new_selling_price=f"{record.new_selling_price:.2f}",
            price_change_percentage=None if change is None else f"{change:.2f}",
            updated_by=record.updated_by,
            created_at=record.created_at.astimezone(self._tz).strftime("%Y-%m-%d %H:%M:%S"),
        )


def _fmt(value: Decimal | None) -> str | None:
    return None if value is None else f"{value:.2f}"


def _check_limit(limit: int) -> None:
    if not 1 <= limit <= MAX_LIMIT:
        raise ValidationError(f"Limit must be between 1 and {MAX_LIMIT}")
