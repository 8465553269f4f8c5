from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, List

from pydantic import BaseModel

from stay_pricing.core.errors import IncompleteAvailability, InvalidDateRange, MinimumStayNotMet
from stay_pricing.schemas.availability import AvailabilityDay
from stay_pricing.schemas.quote import NightlyRate
from stay_pricing.utils.money import round_money, to_money


class RateSummary(BaseModel):
    nights: int
    accommodation_total: Decimal
    base_rate: Decimal
    nightly_rates: List[NightlyRate]


def stay_nights(check_in: date, check_out: date) -> List[date]:
    nights = (check_out - check_in).days
    if nights <= 0:
        raise InvalidDateRange(check_in, check_out)
    return [check_in + timedelta(days=i) for i in range(nights)]


def aggregate_rates(days: Iterable[AvailabilityDay], check_in: date, check_out: date) -> RateSummary:
    """Sum nightly rates over [check_in, check_out).

    Every night must be present, available and priced. Days the source returns
    outside the window are ignored.
    """
    nights = stay_nights(check_in, check_out)
    by_date = {day.date: day for day in days}

    nightly_rates = []
    for night in nights:
        day = by_date.get(night)
        if day is None:
            raise IncompleteAvailability(f"No availability data for {night}", day=night)
        if not day.is_available:
            raise IncompleteAvailability(f"Property is not available on {night}", day=night)
        if day.rate is None:
            raise IncompleteAvailability(f"No rate published for {night}", day=night)
        nightly_rates.append(NightlyRate(date=night, rate=to_money(day.rate, f"rate for {night}")))

    first = by_date[check_in]
    if len(nights) < first.minimum_stay:
        raise MinimumStayNotMet(check_in, first.minimum_stay, len(nights))

    total = sum((nr.rate for nr in nightly_rates), Decimal("0"))
    return RateSummary(
        nights=len(nights),
        accommodation_total=total,
        base_rate=round_money(total / len(nights)),
        nightly_rates=nightly_rates,
    )
