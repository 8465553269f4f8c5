import math
from typing import Dict, List, Optional

from stay_pricing.core.config import Settings
from stay_pricing.core.enums import FeeKind
from stay_pricing.schemas.fees import FeeLine, FeeSchedule, FeeSelections
from stay_pricing.utils.money import to_money


def resolve_fees(
    nights: int,
    pets: int,
    schedule: FeeSchedule,
    selections: Optional[FeeSelections] = None,
) -> List[FeeLine]:
    """Fee lines for a stay in display order, zero amounts dropped.

    Convenience fees depend on the payment method and are added at checkout,
    never here.
    """
    selections = selections or FeeSelections()
    weeks = math.ceil(nights / 7)

    candidates = [
        (FeeKind.CLEANING, to_money(schedule.cleaning_fee, "cleaning_fee"), True),
    ]
    if pets > 0:
        per_week = to_money(schedule.pet_fee_per_week, "pet_fee_per_week")
        candidates.append((FeeKind.PET, pets * weeks * per_week, True))
    candidates.append((FeeKind.DAMAGE_WAIVER, to_money(schedule.damage_waiver, "damage_waiver"), True))
    if selections.pool_heat:
        per_week = to_money(schedule.pool_heat_per_week, "pool_heat_per_week")
        candidates.append((FeeKind.POOL_HEAT, weeks * per_week, True))
    if selections.travel_insurance:
        candidates.append(
            (FeeKind.TRAVEL_INSURANCE, to_money(schedule.travel_insurance, "travel_insurance"), False)
        )

    return [
        FeeLine(kind=kind, amount=amount, taxable=taxable)
        for kind, amount, taxable in candidates
        if amount > 0
    ]


class FeeScheduleSource:
    """Per-property fee configuration with global fallbacks.

    Overrides are validated when the source is built, so a misspelled fee
    name fails at startup instead of quoting the default.
    """

    def __init__(self, defaults: FeeSchedule, overrides: Optional[Dict[str, dict]] = None):
        self.defaults = defaults
        base = defaults.model_dump()
        self.schedules: Dict[str, FeeSchedule] = {}
        for property_id, override in (overrides or {}).items():
            values = {k: v for k, v in (override or {}).items() if v is not None}
            self.schedules[property_id] = FeeSchedule.model_validate({**base, **values})

    @classmethod
    def from_settings(cls, settings: Settings, overrides: Optional[Dict[str, dict]] = None) -> "FeeScheduleSource":
        defaults = FeeSchedule(
            cleaning_fee=settings.DEFAULT_CLEANING_FEE,
            pet_fee_per_week=settings.DEFAULT_PET_FEE_PER_WEEK,
            damage_waiver=settings.DEFAULT_DAMAGE_WAIVER,
            pool_heat_per_week=settings.DEFAULT_POOL_HEAT_PER_WEEK,
            travel_insurance=settings.DEFAULT_TRAVEL_INSURANCE,
        )
        return cls(defaults, overrides)

    async def get_fee_schedule(self, property_id: str) -> FeeSchedule:
        return self.schedules.get(property_id, self.defaults)
