"""SQLAlchemy Session-backed UnitOfWork.

Each ``with`` block opens a fresh Session; leaving the block rolls back
whatever was not committed and closes the Session.
"""

from __future__ import annotations

from contextlib import AbstractContextManager

from sqlalchemy import text
from sqlalchemy.orm import Session, sessionmaker

from grocer.domain.repository.unit_of_work import UnitOfWork
from grocer.infrastructure.persistence.database import translate_operational_errors
from grocer.infrastructure.persistence.sql_discount_repository import SqlDiscountRepository
from grocer.infrastructure.persistence.sql_price_update_repository import (
    SqlPriceUpdateRepository,
)
from grocer.infrastructure.persistence.sql_product_repository import SqlProductRepository


class SqlUnitOfWork(UnitOfWork):

    def __init__(self, session_factory: sessionmaker[Session], lock_timeout_ms: int = 0) -> None:
        self._session_factory = session_factory
        self._lock_timeout_ms = lock_timeout_ms
        self._session: Session | None = None

    def __enter__(self) -> SqlUnitOfWork:
        self._session = self._session_factory()
        self.discounts = SqlDiscountRepository(self._session)
        self.products = SqlProductRepository(self._session, self.discounts)
        self.price_updates = SqlPriceUpdateRepository(self._session)

        if self._lock_timeout_ms and self._session.get_bind().dialect.name == "postgresql":
            # SET LOCAL lasts until the end of the current transaction.
            self._session.execute(text(f"SET LOCAL lock_timeout = {int(self._lock_timeout_ms)}"))
        return self

    def __exit__(self, *args) -> None:
        try:
            super().__exit__(*args)
        finally:
            self._active_session().close()
            self._session = None

    def commit(self) -> None:
        with translate_operational_errors("Commit"):
            self._active_session().commit()

    def rollback(self) -> None:
        self._active_session().rollback()

    def savepoint(self) -> AbstractContextManager:
        return self._active_session().begin_nested()

    def _active_session(self) -> Session:
        if self._session is None:
            raise RuntimeError("Unit of work used outside of a 'with' block")
        return self._session
