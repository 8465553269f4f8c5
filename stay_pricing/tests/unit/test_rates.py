import pytest
from datetime import date, timedelta
from decimal import Decimal

from conftest import make_calendar
from stay_pricing.core.errors import (
    IncompleteAvailability,
    InvalidAmount,
    InvalidDateRange,
    MinimumStayNotMet,
)
from stay_pricing.schemas.availability import AvailabilityDay
from stay_pricing.services.rates import aggregate_rates

START = date(2025, 6, 7)


def day(offset, rate=200, available=True, minimum_stay=1):
    return AvailabilityDay(
        date=START + timedelta(days=offset),
        is_available=available,
        rate=None if rate is None else Decimal(str(rate)),
        minimum_stay=minimum_stay,
    )


class TestRateAggregation:

    def test_seven_night_total(self):
        summary = aggregate_rates(make_calendar(START, 7), START, START + timedelta(days=7))

        assert summary.nights == 7
        assert summary.accommodation_total == Decimal("1400")
        assert summary.base_rate == Decimal("200")
        assert [nr.date for nr in summary.nightly_rates] == [START + timedelta(days=i) for i in range(7)]

    def test_mixed_rates_average(self):
        days = [day(0, 100), day(1, 100), day(2, 101)]
        summary = aggregate_rates(days, START, START + timedelta(days=3))

        # 301 / 3 = 100.33
        assert summary.accommodation_total == Decimal("301")
        assert summary.base_rate == Decimal("100")

    def test_base_rate_half_rounds_up(self):
        days = [day(0, 100), day(1, 101)]
        summary = aggregate_rates(days, START, START + timedelta(days=2))

        assert summary.base_rate == Decimal("101")

    def test_fractional_rates_kept_exact(self):
        days = [day(0, "199.99"), day(1, "200.01")]
        summary = aggregate_rates(days, START, START + timedelta(days=2))

        assert summary.accommodation_total == Decimal("400.00")
        assert summary.base_rate == Decimal("200")

    def test_days_outside_window_ignored(self):
        days = [day(-1, 999), day(0, 150), day(1, 999, available=False)]
        summary = aggregate_rates(days, START, START + timedelta(days=1))

        assert summary.accommodation_total == Decimal("150")

    def test_unordered_input(self):
        days = [day(2, 300), day(0, 100), day(1, 200)]
        summary = aggregate_rates(days, START, START + timedelta(days=3))

        assert [nr.rate for nr in summary.nightly_rates] == [Decimal("100"), Decimal("200"), Decimal("300")]


class TestRateAggregationFailures:

    def test_zero_nights(self):
        with pytest.raises(InvalidDateRange):
            aggregate_rates(make_calendar(START, 3), START, START)

    def test_checkout_before_checkin(self):
        with pytest.raises(InvalidDateRange):
            aggregate_rates(make_calendar(START, 3), START, START - timedelta(days=2))

    def test_one_unavailable_day(self):
        days = [day(0), day(1), day(2, available=False), day(3)]
        with pytest.raises(IncompleteAvailability) as exc_info:
            aggregate_rates(days, START, START + timedelta(days=4))

        assert exc_info.value.day == START + timedelta(days=2)

    def test_missing_day(self):
        days = [day(0), day(2)]
        with pytest.raises(IncompleteAvailability) as exc_info:
            aggregate_rates(days, START, START + timedelta(days=3))

        assert exc_info.value.day == START + timedelta(days=1)

    def test_available_day_without_rate(self):
        days = [day(0), day(1, rate=None)]
        with pytest.raises(IncompleteAvailability):
            aggregate_rates(days, START, START + timedelta(days=2))

    def test_negative_rate(self):
        days = [day(0), day(1, rate=-50)]
        with pytest.raises(InvalidAmount):
            aggregate_rates(days, START, START + timedelta(days=2))

    def test_nan_rate(self):
        nan_day = AvailabilityDay(date=START + timedelta(days=1), is_available=True, rate=Decimal("NaN"))
        with pytest.raises(InvalidAmount):
            aggregate_rates([day(0), nan_day], START, START + timedelta(days=2))

    def test_minimum_stay_enforced(self):
        days = make_calendar(START, 5, minimum_stay=3)
        with pytest.raises(MinimumStayNotMet) as exc_info:
            aggregate_rates(days, START, START + timedelta(days=2))

        assert exc_info.value.minimum_stay == 3
        assert isinstance(exc_info.value, IncompleteAvailability)

    def test_minimum_stay_met(self):
        days = make_calendar(START, 5, minimum_stay=3)
        summary = aggregate_rates(days, START, START + timedelta(days=3))

        assert summary.nights == 3
