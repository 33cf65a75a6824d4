"""Transaction boundary shared by the repositories of one request.

Usage::

    with uow:
        product = uow.products.get_by_id_for_update(1)
        ...
        uow.commit()

Leaving the block without ``commit()`` rolls everything back.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager

from grocer.domain.repository.discount_repository import DiscountRepository
from grocer.domain.repository.price_update_repository import PriceUpdateRepository
from grocer.domain.repository.product_repository import ProductRepository


class UnitOfWork(ABC):

    products: ProductRepository
    discounts: DiscountRepository
    price_updates: PriceUpdateRepository

    def __enter__(self) -> UnitOfWork:
        return self

    def __exit__(self, *args) -> None:
        self.rollback()

    @abstractmethod
    def commit(self) -> None:
        """Make every change since the block was entered permanent."""

    @abstractmethod
    def rollback(self) -> None:
        """Discard uncommitted changes. A no-op after ``commit()``."""

    @abstractmethod
    def savepoint(self) -> AbstractContextManager:
        """Nested transaction: undone on exception, kept otherwise.

        The exception still propagates to the caller.
        """
