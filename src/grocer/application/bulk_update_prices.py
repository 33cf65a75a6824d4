"""Application service: Bulk Price Update use case.

Applies a batch of per-product price/stock/discount changes inside one
transaction. Every item goes through the same steps:

  1. lock the product row (concurrent batches touching the same product
     serialize here)
  2. snapshot the tracked values
  3. work out which fields really change (numeric comparison)
  4. write the discount change, then the product change
  5. re-read the product and, if anything changed, append one audit row

Items are isolated from each other: each runs in its own savepoint, and
a business error (bad input, unknown product) or an unexpected error
only turns that item into an entry of ``errors``. The rest of the batch
still commits. Storage failures (lock timeout, lost connection) are
different: they abort and roll back the whole batch.
"""

from __future__ import annotations

from typing import Any

import structlog

from grocer.application.dto import (
    BulkUpdateResult,
    ItemChanges,
    ItemError,
    ItemResult,
    PriceUpdateRequest,
)
from grocer.domain.exceptions import (
    DomainException,
    EntityNotFoundError,
    InfrastructureError,
    ValidationError,
)
from grocer.domain.model.discount import DiscountProposal, DiscountStatus, DiscountType
from grocer.domain.model.price_update import PriceSnapshot
from grocer.domain.model.product import Product
from grocer.domain.model.value_objects import Money
from grocer.domain.repository.unit_of_work import UnitOfWork
from grocer.domain.service.discount_resolver import DiscountResolver
from grocer.domain.service.price_audit_ledger import PriceAuditLedger
from grocer.domain.service.price_engine import PriceEngine

logger = structlog.get_logger(__name__)

BATCH_FAILED_MESSAGE = "Bulk price update failed"


class BulkUpdatePricesHandler:

    def __init__(
        self,
        uow: UnitOfWork,
        engine: PriceEngine,
        resolver: DiscountResolver,
    ) -> None:
        self._uow = uow
        self._engine = engine
        self._resolver = resolver

    def handle(self, updates: list[dict[str, Any]], user_id: int) -> BulkUpdateResult:
        if not updates:
            return BulkUpdateResult(success=True, updated=0)

        results: list[ItemResult] = []
        errors: list[ItemError] = []
        log = logger.bind(user_id=user_id, batch_size=len(updates))

        try:
            with self._uow as uow:
                ledger = PriceAuditLedger(uow.price_updates, clock=self._resolver.now)
                for index, payload in enumerate(updates):
                    item_result = self._process_item(uow, ledger, index, payload, user_id, errors)
                    if item_result is not None:
                        results.append(item_result)
                uow.commit()
        except Exception:
            # Anything reaching here broke the transaction itself.
            log.exception("bulk_price_update_aborted", updated=len(results))
            return BulkUpdateResult(
                success=False,
                updated=len(results),
                errors=errors,
                error=BATCH_FAILED_MESSAGE,
            )

        log.info(
            "bulk_price_update_completed",
            updated=len(results),
            changed=sum(1 for r in results if r.updated),
            failed=len(errors),
        )
        return BulkUpdateResult(success=True, updated=len(results), errors=errors, results=results)

    # --- Per-item processing --------------------------------------------------

    def _process_item(
        self,
        uow: UnitOfWork,
        ledger: PriceAuditLedger,
        index: int,
        payload: dict[str, Any],
        user_id: int,
        errors: list[ItemError],
    ) -> ItemResult | None:
        product_id = payload.get("product_id") if isinstance(payload, dict) else None
        try:
            with uow.savepoint():
                request = PriceUpdateRequest.from_payload(payload)
                return self._apply(uow, ledger, request, user_id)
        except InfrastructureError:
            raise
        except DomainException as exc:
            message = str(exc)
            logger.warning(
                "bulk_price_update_item_rejected",
                product_id=product_id,
                index=index,
                error=message,
            )
        except Exception as exc:
            message = f"Failed to update product: {exc}"
            logger.warning(
                "bulk_price_update_item_failed",
                product_id=product_id,
                index=index,
                error=str(exc),
                exc_info=True,
            )
        errors.append(ItemError(product_id=product_id, index=index, error=message))
        return None

    def _apply(
        self,
        uow: UnitOfWork,
        ledger: PriceAuditLedger,
        request: PriceUpdateRequest,
        user_id: int,
    ) -> ItemResult:
        product = uow.products.get_by_id_for_update(request.product_id)
        if product is None:
            raise EntityNotFoundError("Product not found")

        old = self._snapshot(product)
        write_price = (
            request.regular_price is not None
            and request.regular_price != old.regular_price
        )
        write_stock = (
            request.stock_quantity is not None
            and request.stock_quantity != old.stock_quantity
        )

        proposal = self._discount_proposal(request)
        if proposal is not None:
            self._apply_discount(uow, product, proposal)

        if write_price or write_stock:
            if write_price:
                product.update_price(Money(request.regular_price, product.regular_price.currency))
            if write_stock:
                product.update_stock(request.stock_quantity)
            product.updated_by = user_id
            uow.products.save(product)

        refreshed = uow.products.get_by_id(product.id)
        if refreshed is None:
            raise EntityNotFoundError("Product not found")

        # Flags come from what was stored, not from what was requested.
        new = self._snapshot(refreshed)
        changes = ItemChanges(
            price=old.price_differs(new),
            stock=old.stock_differs(new),
            discount=old.discount_differs(new),
        )
        if changes.any:
            ledger.record(refreshed, old, new, new.selling_price, user_id)

        return ItemResult(
            product_id=refreshed.id,
            product_name=refreshed.name,
            updated=changes.any,
            changes=changes,
        )

    # --- Helpers --------------------------------------------------------------

    def _snapshot(self, product: Product) -> PriceSnapshot:
        discount = self._resolver.active_discount(product)
        return PriceSnapshot(
            regular_price=product.regular_price.amount,
            stock_quantity=product.stock_quantity,
            discount_type=discount.discount_type if discount else DiscountType.NONE,
            discount_value=discount.discount_value if discount else None,
            selling_price=self._engine.effective_price(product),
        )

    def _discount_proposal(self, request: PriceUpdateRequest) -> DiscountProposal | None:
        """Parsed discount input, or None when there is nothing usable."""
        if not request.has_discount_input:
            return None
        try:
            return request.discount_proposal()
        except ValidationError as exc:
            logger.warning(
                "discount_input_ignored",
                product_id=request.product_id,
                error=str(exc),
            )
            return None

    def _apply_discount(
        self, uow: UnitOfWork, product: Product, proposal: DiscountProposal
    ) -> None:
        if proposal.removes_discount:
            # Scheduled records count too, not only the one in effect today.
            if any(d.status == DiscountStatus.ACTIVE for d in product.discounts):
                uow.discounts.deactivate(product.id)
            return
        current = self._resolver.active_discount(product)
        if not proposal.matches(current):
            uow.discounts.upsert_active(product.id, proposal, self._resolver.now())
