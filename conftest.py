import pytest
from datetime import date, timedelta
from decimal import Decimal
from httpx import AsyncClient, ASGITransport

from stay_pricing.core.cache import MemoryCache
from stay_pricing.main import create_app
from stay_pricing.schemas.availability import AvailabilityDay
from stay_pricing.schemas.fees import FeeSchedule, TaxRates
from stay_pricing.services.availability import StaticAvailabilitySource
from stay_pricing.services.fees import FeeScheduleSource
from stay_pricing.services.pricing import PricingEngine
from stay_pricing.services.promotions import StaticPromotionValidator


PROPERTY_ID = "sea-breeze"
CHECK_IN = date(2025, 6, 7)


def make_calendar(start, nights, rate=200, available=True, minimum_stay=1):
    """Consecutive availability days, one extra past the last night"""
    return [
        AvailabilityDay(
            date=start + timedelta(days=i),
            is_available=available,
            rate=Decimal(str(rate)) if rate is not None else None,
            minimum_stay=minimum_stay,
        )
        for i in range(nights + 1)
    ]


@pytest.fixture
def check_in():
    return CHECK_IN


@pytest.fixture
def calendar():
    return make_calendar(CHECK_IN, 30)


@pytest.fixture
def fee_schedule():
    return FeeSchedule(
        cleaning_fee=Decimal("350"),
        pet_fee_per_week=Decimal("250"),
        damage_waiver=Decimal("99"),
        pool_heat_per_week=Decimal("500"),
        travel_insurance=Decimal("120"),
    )


@pytest.fixture
def tax_rates():
    return TaxRates(accommodation_rate=Decimal("0.0875"), fee_rate=Decimal("0.0675"))


@pytest.fixture
def promotions():
    return StaticPromotionValidator({"WELCOME10": "10%", "SAVE50": "50", "HUGE": "750"})


@pytest.fixture
def availability(calendar):
    return StaticAvailabilitySource({PROPERTY_ID: calendar})


@pytest.fixture
def engine_factory(fee_schedule, tax_rates, promotions):
    def _engine(availability=None, schedule=None, promos=None, overrides=None):
        return PricingEngine(
            availability=availability or StaticAvailabilitySource({PROPERTY_ID: make_calendar(CHECK_IN, 30)}),
            fee_schedules=FeeScheduleSource(schedule or fee_schedule, overrides),
            promotions=promos or promotions,
            tax_rates=tax_rates,
        )
    return _engine


@pytest.fixture
def engine(engine_factory, availability):
    return engine_factory(availability=availability)


@pytest.fixture
def memory_cache():
    return MemoryCache()


@pytest.fixture
async def test_client(engine, memory_cache):
    app = create_app(engine=engine, cache=memory_cache)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "pricing: marks tests related to pricing"
    )
    config.addinivalue_line(
        "markers", "cache: marks tests related to caching"
    )
