"""Domain service: the price audit ledger.

Writes and reads the append-only PriceUpdate history. ``record`` must be
called inside the same transaction as the product/discount mutation it
describes; the ledger itself never opens or commits transactions.
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone, tzinfo
from decimal import Decimal

import structlog

from grocer.domain.exceptions import ValidationError
from grocer.domain.model.price_update import PriceSnapshot, PriceUpdate
from grocer.domain.model.product import Product
from grocer.domain.repository.price_update_repository import PriceUpdateRepository
from grocer.domain.service.discount_resolver import Clock, utc_now

logger = structlog.get_logger(__name__)


class PriceAuditLedger:

    def __init__(
        self,
        repository: PriceUpdateRepository,
        clock: Clock = utc_now,
        tz: tzinfo = timezone.utc,
    ) -> None:
        self._repository = repository
        self._clock = clock
        self._tz = tz

    def record(
        self,
        product: Product,
        old: PriceSnapshot,
        new: PriceSnapshot,
        new_selling_price: Decimal,
        updated_by: int | None,
    ) -> PriceUpdate:
        """Append one audit row for ``product``."""
        if product.id is None:
            raise ValidationError("Cannot audit a product that has not been saved")

        record = PriceUpdate.from_snapshots(
            product_id=product.id,
            old=old,
            new=new,
            new_selling_price=new_selling_price,
            updated_by=updated_by,
            created_at=self._clock(),
        )
        saved = self._repository.insert(record)
        logger.info(
            "price_update_recorded",
            price_update_id=saved.id,
            product_id=saved.product_id,
            old_regular_price=str(saved.old_regular_price),
            new_regular_price=str(saved.new_regular_price),
            new_selling_price=str(saved.new_selling_price),
            updated_by=updated_by,
        )
        return saved

    def history(self, product_id: int, limit: int = 50) -> list[PriceUpdate]:
        return self._repository.query_by_product(product_id, _positive(limit))

    def by_date_range(self, start: date, end: date) -> list[PriceUpdate]:
        """Records from ``start`` 00:00:00 to ``end`` 23:59:59 store-local time."""
        if end < start:
            raise ValidationError("End date must not be before start date")
        lower = datetime.combine(start, time.min, tzinfo=self._tz)
        upper = datetime.combine(end, time.max, tzinfo=self._tz)
        return self._repository.query_by_date_range(lower, upper)

    def recent(self, limit: int = 20) -> list[PriceUpdate]:
        return self._repository.query_recent(_positive(limit))

    def count_since(self, since: datetime) -> int:
        return self._repository.count_since(since)


def _positive(limit: int) -> int:
    if limit <= 0:
        raise ValidationError("Limit must be positive")
    return limit
