"""Engine and session factory construction."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import Engine, create_engine, event, make_url
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from grocer.domain.exceptions import ConcurrencyError
from grocer.infrastructure.persistence.orm import Base


def make_engine(database_url: str, echo: bool = False) -> Engine:
    if database_url.startswith("sqlite"):
        return _make_sqlite_engine(database_url, echo)
    return create_engine(database_url, echo=echo, pool_pre_ping=True)


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(engine, expire_on_commit=False)


def create_schema(engine: Engine) -> None:
    Base.metadata.create_all(engine)


def _make_sqlite_engine(database_url: str, echo: bool) -> Engine:
    database = make_url(database_url).database
    in_memory = database in (None, "", ":memory:")
    if in_memory:
        kwargs = {"poolclass": StaticPool}
    else:
        kwargs = {}
        Path(database).parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(
        database_url,
        echo=echo,
        connect_args={"check_same_thread": False},
        **kwargs,
    )

    # pysqlite manages transactions on its own and breaks SAVEPOINT;
    # hand transaction control back to SQLAlchemy.
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record) -> None:
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(connection) -> None:
        connection.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


@contextmanager
def translate_operational_errors(action: str) -> Iterator[None]:
    """Re-raise lock timeouts, deadlocks and lost connections as ConcurrencyError."""
    try:
        yield
    except OperationalError as exc:
        raise ConcurrencyError(f"{action} failed: {exc.orig}") from exc
