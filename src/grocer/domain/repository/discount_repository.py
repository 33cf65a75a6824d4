"""Abstract repository for product discount records."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime

from grocer.domain.model.discount import Discount, DiscountProposal


class DiscountRepository(ABC):

    @abstractmethod
    def list_for_product(self, product_id: int) -> list[Discount]:
        """Return every discount record of a product, newest first."""

    @abstractmethod
    def active_for(self, product_id: int, today: date) -> Discount | None:
        """Return the discount in effect on ``today``, or None."""

    @abstractmethod
    def upsert_active(
        self, product_id: int, proposal: DiscountProposal, created_at: datetime
    ) -> Discount:
        """Deactivate the product's active records and store ``proposal`` as active."""

    @abstractmethod
    def deactivate(self, product_id: int) -> int:
        """Deactivate every active record of a product; return how many."""
