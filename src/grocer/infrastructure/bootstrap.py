"""Composition root — wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from functools import lru_cache

from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

from grocer.domain.service.discount_resolver import DiscountResolver
from grocer.domain.service.price_engine import PriceEngine
from grocer.domain.service.unit_converter import UnitConverter
from grocer.infrastructure.config import Settings
from grocer.infrastructure.persistence.database import (
    create_schema,
    make_engine,
    make_session_factory,
)
from grocer.infrastructure.persistence.sql_unit_of_work import SqlUnitOfWork


@lru_cache
def get_settings() -> Settings:
    return Settings()


@lru_cache
def _engine() -> Engine:
    return make_engine(get_settings().database_url)


@lru_cache
def _session_factory() -> sessionmaker[Session]:
    return make_session_factory(_engine())


def init_database() -> None:
    create_schema(_engine())


def unit_of_work() -> SqlUnitOfWork:
    return SqlUnitOfWork(_session_factory(), lock_timeout_ms=get_settings().lock_timeout_ms)


def unit_converter() -> UnitConverter:
    return UnitConverter()


def discount_resolver() -> DiscountResolver:
    return DiscountResolver(tz=get_settings().tz)


def price_engine() -> PriceEngine:
    return PriceEngine(discount_resolver(), unit_converter())


def reset() -> None:
    """Forget cached settings and engine (tests switch databases per case)."""
    if _engine.cache_info().currsize:
        _engine().dispose()
    _session_factory.cache_clear()
    _engine.cache_clear()
    get_settings.cache_clear()
