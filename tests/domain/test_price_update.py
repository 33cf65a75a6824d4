"""Unit tests for price snapshots and the PriceUpdate audit record."""

from dataclasses import FrozenInstanceError
from decimal import Decimal

import pytest

from grocer.domain.model.discount import DiscountType
from grocer.domain.model.price_update import PriceSnapshot, PriceUpdate
from tests.fakes import T0


def _snapshot(
    price: str = "100",
    stock: str = "10",
    discount_type: DiscountType = DiscountType.NONE,
    discount_value: str | None = None,
    selling: str = "100",
) -> PriceSnapshot:
    return PriceSnapshot(
        regular_price=Decimal(price),
        stock_quantity=Decimal(stock),
        discount_type=discount_type,
        discount_value=None if discount_value is None else Decimal(discount_value),
        selling_price=Decimal(selling),
    )


class TestSnapshotDiffs:

    def test_numeric_comparison(self):
        assert not _snapshot(price="10.0").price_differs(_snapshot(price="10"))
        assert _snapshot(stock="5").stock_differs(_snapshot(stock="5.5"))

    def test_none_to_none_is_unchanged(self):
        assert not _snapshot().discount_differs(_snapshot())

    def test_type_change(self):
        old = _snapshot()
        new = _snapshot(discount_type=DiscountType.PERCENTAGE, discount_value="10")
        assert old.discount_differs(new)

    def test_value_change_same_type(self):
        old = _snapshot(discount_type=DiscountType.FIXED, discount_value="5")
        new = _snapshot(discount_type=DiscountType.FIXED, discount_value="5.00")
        assert not old.discount_differs(new)
        assert old.discount_differs(
            _snapshot(discount_type=DiscountType.FIXED, discount_value="6")
        )


class TestPriceUpdate:

    def _record(self, old_selling: str = "100", new_selling: str = "120", old_price="100"):
        old = _snapshot(price=old_price, selling=old_selling)
        new = _snapshot(price="120", selling=new_selling)
        return PriceUpdate.from_snapshots(
            product_id=1,
            old=old,
            new=new,
            new_selling_price=Decimal(new_selling),
            updated_by=7,
            created_at=T0,
        )

    def test_from_snapshots(self):
        record = self._record()
        assert record.id is None
        assert record.old_regular_price == Decimal("100")
        assert record.new_regular_price == Decimal("120")
        assert record.old_discount_type == DiscountType.NONE
        assert record.new_selling_price == Decimal("120.00")
        assert record.old_selling_price == Decimal("100.00")
        assert record.updated_by == 7
        assert record.created_at == T0

    def test_is_immutable(self):
        record = self._record()
        with pytest.raises(FrozenInstanceError):
            record.new_selling_price = Decimal("1")

    def test_price_change_percentage(self):
        assert self._record().price_change_percentage == Decimal("20.00")
        assert self._record(new_selling="90").price_change_percentage == Decimal("-10.00")

    def test_price_change_percentage_without_base(self):
        assert self._record(old_selling="0").price_change_percentage is None
        assert self._record(old_price="0").price_change_percentage is None
