"""Abstract repository for the append-only PriceUpdate audit trail.

There is no update or delete operation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from grocer.domain.model.price_update import PriceUpdate


class PriceUpdateRepository(ABC):

    @abstractmethod
    def insert(self, record: PriceUpdate) -> PriceUpdate:
        """Append a record and return it with its assigned id."""

    @abstractmethod
    def query_by_product(self, product_id: int, limit: int) -> list[PriceUpdate]:
        """Newest first, at most ``limit`` records."""

    @abstractmethod
    def query_by_date_range(self, start: datetime, end: datetime) -> list[PriceUpdate]:
        """Records created within ``[start, end]``, newest first."""

    @abstractmethod
    def query_recent(self, limit: int) -> list[PriceUpdate]:
        """Newest first across all products, at most ``limit`` records."""

    @abstractmethod
    def count_since(self, since: datetime) -> int:
        """Number of records created at or after ``since``."""
