"""BulkUpdatePrices end to end on SQLite: locks, savepoints and the audit trail."""

from datetime import date
from decimal import Decimal

import pytest

from grocer.application.bulk_update_prices import BulkUpdatePricesHandler
from grocer.domain.exceptions import ConcurrencyError
from grocer.domain.model.discount import DiscountProposal, DiscountStatus, DiscountType
from grocer.domain.service.discount_resolver import DiscountResolver
from grocer.domain.service.price_engine import PriceEngine
from grocer.domain.service.unit_converter import UnitConverter
from grocer.infrastructure.persistence.sql_product_repository import SqlProductRepository
from tests.fakes import T0, fixed_clock, make_product


@pytest.fixture
def handler(uow) -> BulkUpdatePricesHandler:
    with uow:
        uow.products.save(make_product(None, "Apples", price="100"))
        uow.products.save(make_product(None, "Bananas", price="80"))
        uow.commit()
    resolver = DiscountResolver(clock=fixed_clock())
    return BulkUpdatePricesHandler(uow, PriceEngine(resolver, UnitConverter()), resolver)


class TestBulkUpdateOnSqlite:

    def test_mixed_batch(self, handler, uow):
        result = handler.handle(
            [
                {"product_id": 1, "regular_price": 120},
                {"product_id": 2, "discount_type": "percentage", "discount_value": 10},
                {"product_id": 999, "regular_price": 10},
            ],
            user_id=5,
        )

        assert result.success
        assert result.updated == 2
        assert [(e.product_id, e.index, e.error) for e in result.errors] == [
            (999, 2, "Product not found")
        ]

        with uow:
            apples = uow.products.get_by_id(1)
            (bananas_row,) = uow.price_updates.query_by_product(2, 10)
            (apples_row,) = uow.price_updates.query_by_product(1, 10)

        assert apples.regular_price.amount == Decimal("120")
        assert apples.updated_by == 5
        assert apples_row.old_regular_price == Decimal("100")
        assert apples_row.new_regular_price == Decimal("120")
        assert bananas_row.old_discount_type == DiscountType.NONE
        assert bananas_row.new_discount_type == DiscountType.PERCENTAGE
        assert bananas_row.new_selling_price == Decimal("72.00")
        assert bananas_row.created_at == T0

    def test_repeating_a_batch_is_a_no_op(self, handler, uow):
        batch = [{"product_id": 2, "discount_type": "fixed", "discount_value": "8.50"}]
        handler.handle(batch, user_id=5)
        second = handler.handle(batch, user_id=5)

        assert second.results[0].updated is False
        with uow:
            assert uow.price_updates.count_since(T0) == 1
            assert len(uow.discounts.list_for_product(2)) == 1

    def test_repeating_a_sub_cent_batch_is_a_no_op(self, handler, uow):
        batch = [{"product_id": 1, "regular_price": "10.005", "stock_quantity": "1.255"}]
        handler.handle(batch, user_id=5)
        second = handler.handle(batch, user_id=5)

        assert second.results[0].updated is False
        with uow:
            apples = uow.products.get_by_id(1)
            assert uow.price_updates.count_since(T0) == 1

        assert apples.regular_price.amount == Decimal("10.01")
        assert apples.stock_quantity == Decimal("1.26")

    def test_none_deactivates_scheduled_discount(self, handler, uow):
        with uow:
            uow.discounts.upsert_active(
                1,
                DiscountProposal(DiscountType.PERCENTAGE, Decimal("10"), date(2025, 4, 1)),
                T0,
            )
            uow.commit()

        result = handler.handle([{"product_id": 1, "discount_type": "none"}], user_id=5)

        assert result.results[0].updated is False
        with uow:
            (discount,) = uow.discounts.list_for_product(1)
            assert discount.status == DiscountStatus.INACTIVE
            assert uow.price_updates.count_since(T0) == 0

    def test_lock_failure_rolls_back_the_batch(self, handler, uow, monkeypatch):
        original = SqlProductRepository.get_by_id_for_update

        def lock(self, product_id):
            if product_id == 2:
                raise ConcurrencyError("Locking product failed: lock timeout")
            return original(self, product_id)

        monkeypatch.setattr(SqlProductRepository, "get_by_id_for_update", lock)
        result = handler.handle(
            [{"product_id": 1, "regular_price": 130}, {"product_id": 2, "regular_price": 1}],
            user_id=5,
        )

        assert result.success is False
        assert result.updated == 1
        with uow:
            assert uow.products.get_by_id(1).regular_price.amount == Decimal("100")
            assert uow.price_updates.query_recent(10) == []
