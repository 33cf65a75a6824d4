import pytest

from grocer.infrastructure.persistence.database import (
    create_schema,
    make_engine,
    make_session_factory,
)
from grocer.infrastructure.persistence.sql_unit_of_work import SqlUnitOfWork


@pytest.fixture
def engine():
    engine = make_engine("sqlite://")
    create_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def uow(session_factory) -> SqlUnitOfWork:
    return SqlUnitOfWork(session_factory)
