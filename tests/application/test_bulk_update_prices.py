"""Integration tests for the BulkUpdatePrices use case.

Uses the in-memory fake unit of work — no database.
"""

from datetime import date
from decimal import Decimal

import pytest
from structlog.testing import capture_logs

from grocer.application.bulk_update_prices import BulkUpdatePricesHandler
from grocer.application.dto import ItemChanges, ItemError
from grocer.domain.model.discount import DiscountStatus, DiscountType
from tests.fakes import T0, make_discount, make_product

USER = 42


@pytest.fixture
def handler(uow, engine, resolver) -> BulkUpdatePricesHandler:
    return BulkUpdatePricesHandler(uow, engine, resolver)


@pytest.fixture
def store(uow):
    """Apples 100/kg without discount, Bananas 80/kg with 10% off."""
    uow.add_product(make_product(1, "Apples", price="100", stock="50"))
    uow.add_product(
        make_product(2, "Bananas", price="80", stock="20", discounts=[make_discount(product_id=2)])
    )
    return uow


def _active_discounts(uow, product_id):
    return [
        d
        for d in uow.stored_product(product_id).discounts
        if d.status == DiscountStatus.ACTIVE
    ]


# ── Batch level ──────────────────────────────────────────────────────────────


class TestBatch:

    def test_empty_batch_opens_no_transaction(self, handler, uow):
        result = handler.handle([], user_id=USER)
        assert result.to_dict() == {"success": True, "updated": 0, "errors": [], "results": []}
        assert uow.commits == 0

    def test_items_processed_in_request_order(self, handler, store):
        handler.handle(
            [{"product_id": 2, "stock_quantity": 1}, {"product_id": 1, "stock_quantity": 1}],
            user_id=USER,
        )
        assert store.products.locked == [2, 1]

    def test_commits_once(self, handler, store):
        handler.handle([{"product_id": 1, "regular_price": 1}], user_id=USER)
        assert store.commits == 1

    def test_mixed_batch(self, uow, handler):
        uow.add_product(make_product(1, "Apples", price="100"))
        uow.add_product(make_product(2, "Bananas", price="80"))

        result = handler.handle(
            [
                {"product_id": 1, "regular_price": 120},
                {"product_id": 2, "discount_type": "percentage", "discount_value": 10},
                {"product_id": 999, "regular_price": 10},
            ],
            user_id=USER,
        )

        assert result.success
        assert result.updated == 2
        assert result.errors == [ItemError(product_id=999, index=2, error="Product not found")]

        apples, bananas = uow.audit_rows
        assert apples.product_id == 1
        assert apples.old_regular_price == Decimal("100")
        assert apples.new_regular_price == Decimal("120")
        assert bananas.product_id == 2
        assert bananas.old_discount_type == DiscountType.NONE
        assert bananas.new_discount_type == DiscountType.PERCENTAGE
        assert bananas.new_selling_price == Decimal("72.00")
        assert bananas.old_selling_price == Decimal("80.00")

    def test_result_as_dict(self, handler, store):
        result = handler.handle([{"product_id": 1, "regular_price": 110}], user_id=USER)
        assert result.to_dict()["results"] == [
            {
                "product_id": 1,
                "product_name": "Apples",
                "updated": True,
                "changes": {"price": True, "stock": False, "discount": False},
            }
        ]


# ── Field changes ────────────────────────────────────────────────────────────


class TestFieldChanges:

    def test_price_change(self, handler, store):
        result = handler.handle([{"product_id": 1, "regular_price": "120.50"}], user_id=USER)

        assert result.results[0].changes == ItemChanges(price=True)
        product = store.stored_product(1)
        assert product.regular_price.amount == Decimal("120.50")
        assert product.updated_by == USER

    def test_stock_change(self, handler, store):
        handler.handle([{"product_id": 1, "stock_quantity": "45.5"}], user_id=USER)

        (row,) = store.audit_rows
        assert row.old_stock_quantity == Decimal("50")
        assert row.new_stock_quantity == Decimal("45.5")
        assert row.updated_by == USER
        assert row.created_at == T0

    def test_numeric_comparison(self, handler, store):
        result = handler.handle(
            [{"product_id": 1, "regular_price": "100.0", "stock_quantity": 50}], user_id=USER
        )
        assert result.results[0].updated is False
        assert store.audit_rows == []

    def test_identical_values_are_a_no_op(self, handler, store):
        result = handler.handle(
            [
                {
                    "product_id": 2,
                    "regular_price": 80,
                    "stock_quantity": "20.00",
                    "discount_type": "percentage",
                    "discount_value": "10",
                }
            ],
            user_id=USER,
        )

        assert result.updated == 1
        assert result.results[0].updated is False
        assert result.results[0].changes == ItemChanges()
        assert store.audit_rows == []
        assert len(store.stored_product(2).discounts) == 1

    def test_sub_cent_values_stored_at_two_decimals(self, handler, store):
        batch = [{"product_id": 1, "regular_price": "10.005", "stock_quantity": "1.255"}]

        first = handler.handle(batch, user_id=USER)
        second = handler.handle(batch, user_id=USER)

        assert first.results[0].changes == ItemChanges(price=True, stock=True)
        assert second.results[0].updated is False
        assert len(store.audit_rows) == 1
        apples = store.stored_product(1)
        assert apples.regular_price.amount == Decimal("10.01")
        assert apples.stock_quantity == Decimal("1.26")

    def test_string_product_id(self, handler, store):
        result = handler.handle([{"product_id": "1", "regular_price": 99}], user_id=USER)
        assert result.results[0].product_id == 1


# ── Discounts ────────────────────────────────────────────────────────────────


class TestDiscountChanges:

    def test_add_discount(self, handler, store):
        result = handler.handle(
            [{"product_id": 1, "discount_type": "fixed", "discount_value": "15"}], user_id=USER
        )

        assert result.results[0].changes == ItemChanges(discount=True)
        (active,) = _active_discounts(store, 1)
        assert active.discount_type == DiscountType.FIXED
        assert active.discount_value == Decimal("15")
        (row,) = store.audit_rows
        assert row.new_discount_value == Decimal("15")
        assert row.new_selling_price == Decimal("85.00")

    def test_replace_discount_deactivates_old_record(self, handler, store):
        handler.handle(
            [{"product_id": 2, "discount_type": "percentage", "discount_value": "25"}],
            user_id=USER,
        )

        discounts = store.stored_product(2).discounts
        assert len(discounts) == 2
        (active,) = _active_discounts(store, 2)
        assert active.discount_value == Decimal("25")
        (row,) = store.audit_rows
        assert row.old_discount_value == Decimal("10")
        assert row.new_discount_value == Decimal("25")
        assert row.old_selling_price == Decimal("72.00")
        assert row.new_selling_price == Decimal("60.00")

    def test_remove_discount(self, handler, store):
        result = handler.handle([{"product_id": 2, "discount_type": "none"}], user_id=USER)

        assert result.results[0].changes.discount
        assert _active_discounts(store, 2) == []
        (row,) = store.audit_rows
        assert row.old_discount_type == DiscountType.PERCENTAGE
        assert row.new_discount_type == DiscountType.NONE
        assert row.new_discount_value is None
        assert row.new_selling_price == Decimal("80.00")

    def test_none_without_active_discount_is_a_no_op(self, handler, store):
        result = handler.handle([{"product_id": 1, "discount_type": "none"}], user_id=USER)

        assert result.results[0].updated is False
        assert store.audit_rows == []

    def test_none_deactivates_scheduled_discount(self, handler, uow):
        scheduled = make_discount(start=date(2025, 4, 1))
        uow.add_product(make_product(1, "Apples", price="100", discounts=[scheduled]))

        result = handler.handle([{"product_id": 1, "discount_type": "none"}], user_id=USER)

        assert result.results[0].updated is False
        assert _active_discounts(uow, 1) == []
        assert uow.audit_rows == []

    def test_window_only_edit_is_not_a_change(self, handler, store):
        result = handler.handle(
            [
                {
                    "product_id": 2,
                    "discount_type": "percentage",
                    "discount_value": 10,
                    "discount_end_date": "2025-12-31",
                }
            ],
            user_id=USER,
        )

        assert result.results[0].updated is False
        assert store.audit_rows == []
        (active,) = _active_discounts(store, 2)
        assert active.end_date == date(2025, 12, 31)

    def test_window_edit_that_ends_the_discount_is_a_change(self, handler, store):
        result = handler.handle(
            [
                {
                    "product_id": 2,
                    "discount_type": "percentage",
                    "discount_value": 10,
                    "discount_start_date": "2025-04-01",
                }
            ],
            user_id=USER,
        )

        assert result.results[0].changes.discount
        (row,) = store.audit_rows
        assert row.new_discount_type == DiscountType.NONE
        assert row.new_selling_price == Decimal("80.00")

    @pytest.mark.parametrize(
        "discount",
        [
            {"discount_type": "percentage"},
            {"discount_type": "fixed", "discount_value": "0"},
            {"discount_type": "fixed", "discount_value": "-3"},
            {"discount_type": "fixed", "discount_value": "lots"},
            {"discount_type": "bogus", "discount_value": "5"},
            {"discount_type": "fixed", "discount_value": "5", "discount_start_date": "soon"},
        ],
    )
    def test_invalid_discount_input_is_ignored(self, handler, store, discount):
        with capture_logs() as logs:
            result = handler.handle(
                [{"product_id": 1, "regular_price": 110, **discount}], user_id=USER
            )

        assert result.errors == []
        assert result.results[0].changes == ItemChanges(price=True)
        assert _active_discounts(store, 1) == []
        assert any(e["event"] == "discount_input_ignored" for e in logs)


# ── Per-item failures ────────────────────────────────────────────────────────


class TestItemFailures:

    def test_missing_product_id(self, handler, store):
        result = handler.handle([{"regular_price": 10}], user_id=USER)
        assert result.errors == [ItemError(product_id=None, index=0, error="Product ID is required")]

    def test_negative_price(self, handler, store):
        result = handler.handle([{"product_id": 1, "regular_price": -5}], user_id=USER)
        assert result.errors[0].error == "Regular price cannot be negative"

    def test_failed_item_does_not_stop_the_batch(self, handler, store):
        result = handler.handle(
            [
                {"product_id": 1, "regular_price": 101},
                {"product_id": 404, "regular_price": 1},
                {"product_id": 2, "regular_price": 81},
            ],
            user_id=USER,
        )

        assert result.success
        assert result.updated == 2
        assert [e.index for e in result.errors] == [1]
        assert store.stored_product(1).regular_price.amount == Decimal("101")
        assert store.stored_product(2).regular_price.amount == Decimal("81")

    def test_partial_writes_of_a_failed_item_are_undone(self, handler, store, monkeypatch):
        def broken_save(product):
            raise RuntimeError("disk full")

        monkeypatch.setattr(store.products, "save", broken_save)
        result = handler.handle(
            [
                {
                    "product_id": 1,
                    "regular_price": 120,
                    "discount_type": "fixed",
                    "discount_value": 5,
                },
                {"product_id": 2, "discount_type": "none"},
            ],
            user_id=USER,
        )

        assert result.success
        assert result.errors == [
            ItemError(product_id=1, index=0, error="Failed to update product: disk full")
        ]
        assert store.stored_product(1).discounts == []
        assert [r.product_id for r in store.audit_rows] == [2]

    def test_errors_are_logged(self, handler, store):
        with capture_logs() as logs:
            handler.handle([{"product_id": 999}], user_id=USER)
        (entry,) = [e for e in logs if e["event"] == "bulk_price_update_item_rejected"]
        assert entry["product_id"] == 999
        assert entry["index"] == 0


# ── Infrastructure failures ──────────────────────────────────────────────────


class TestBatchAbort:

    def test_lock_failure_rolls_back_everything(self, handler, store):
        store.lock_failures.add(2)

        result = handler.handle(
            [
                {"product_id": 1, "regular_price": 120},
                {"product_id": 2, "regular_price": 90},
            ],
            user_id=USER,
        )

        assert result.success is False
        assert result.error == "Bulk price update failed"
        assert result.updated == 1
        assert store.commits == 0
        assert store.stored_product(1).regular_price.amount == Decimal("100")
        assert store.audit_rows == []

    def test_abort_is_logged(self, handler, store):
        store.lock_failures.add(1)
        with capture_logs() as logs:
            handler.handle([{"product_id": 1, "regular_price": 1}], user_id=USER)
        (entry,) = [e for e in logs if e["event"] == "bulk_price_update_aborted"]
        assert entry["updated"] == 0
        assert entry["user_id"] == USER


# ── Audit trail ──────────────────────────────────────────────────────────────


class TestAuditTrail:

    def test_one_row_per_changed_product_per_batch(self, handler, store):
        handler.handle(
            [
                {
                    "product_id": 1,
                    "regular_price": 110,
                    "stock_quantity": 10,
                    "discount_type": "percentage",
                    "discount_value": 5,
                }
            ],
            user_id=USER,
        )
        assert len(store.audit_rows) == 1

    def test_earlier_rows_are_untouched(self, handler, store):
        handler.handle([{"product_id": 1, "regular_price": 110}], user_id=USER)
        (first,) = store.audit_rows

        handler.handle([{"product_id": 1, "regular_price": 120}], user_id=USER)

        older, newer = store.audit_rows
        assert older == first
        assert newer.old_regular_price == Decimal("110")
        assert newer.new_regular_price == Decimal("120")
