import pytest

from grocer.domain.service.discount_resolver import DiscountResolver
from grocer.domain.service.price_engine import PriceEngine
from grocer.domain.service.unit_converter import UnitConverter
from tests.fakes import FakeUnitOfWork, fixed_clock


@pytest.fixture
def uow() -> FakeUnitOfWork:
    return FakeUnitOfWork()


@pytest.fixture
def resolver() -> DiscountResolver:
    return DiscountResolver(clock=fixed_clock())


@pytest.fixture
def engine(resolver) -> PriceEngine:
    return PriceEngine(resolver, UnitConverter())
