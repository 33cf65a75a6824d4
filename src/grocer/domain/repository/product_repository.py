"""Abstract repository for Product aggregate.

Defined in the domain layer so the domain never depends on
infrastructure. Concrete implementations (SQL, in-memory)
live in the infrastructure layer and in the tests.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from grocer.domain.model.product import Product


class ProductRepository(ABC):

    @abstractmethod
    def get_by_id(self, product_id: int) -> Product | None:
        """Return a product with all its discount records, or None."""

    @abstractmethod
    def get_by_id_for_update(self, product_id: int) -> Product | None:
        """Like ``get_by_id`` but holds a row lock until the transaction ends.

        A concurrent caller asking for the same product blocks here until
        the lock holder commits or rolls back.
        """

    @abstractmethod
    def get_by_name(self, name: str) -> Product | None:
        """Return a product by name (case-insensitive), or None."""

    @abstractmethod
    def list_active(self, search: str | None = None) -> list[Product]:
        """Return active products sorted by name, optionally filtered by name."""

    @abstractmethod
    def save(self, product: Product) -> Product:
        """Persist a new or updated product (price, stock, status fields)."""
