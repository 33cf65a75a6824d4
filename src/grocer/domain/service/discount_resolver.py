"""Domain service: pick the discount that applies to a product right now."""

from __future__ import annotations

from collections.abc import Callable
from datetime import date, datetime, timezone, tzinfo

from grocer.domain.model.discount import Discount
from grocer.domain.model.product import Product

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DiscountResolver:
    """Resolves the single active discount of a product.

    Discount windows are calendar dates, so "now" is converted to the
    store's local date before comparing. When several records qualify the
    most recently created one wins (ties broken by the higher id).
    """

    def __init__(self, clock: Clock = utc_now, tz: tzinfo = timezone.utc) -> None:
        self._clock = clock
        self._tz = tz

    def now(self) -> datetime:
        return self._clock()

    def today(self) -> date:
        return self._clock().astimezone(self._tz).date()

    def active_discount(self, product: Product) -> Discount | None:
        today = self.today()
        candidates = [d for d in product.discounts if d.is_active(today)]
        if not candidates:
            return None
        return max(candidates, key=lambda d: (d.created_at, d.id or 0))
