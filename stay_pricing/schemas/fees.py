from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from stay_pricing.core.enums import FeeKind


class FeeLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: FeeKind
    amount: Decimal
    taxable: bool


class FeeSchedule(BaseModel):
    """Per-property fee configuration"""
    model_config = ConfigDict(frozen=True, extra="forbid")

    cleaning_fee: Decimal
    pet_fee_per_week: Decimal
    damage_waiver: Decimal
    pool_heat_per_week: Decimal = Decimal("0")
    travel_insurance: Decimal = Decimal("0")


class FeeSelections(BaseModel):
    model_config = ConfigDict(frozen=True)

    pool_heat: bool = False
    travel_insurance: bool = False


class TaxRates(BaseModel):
    model_config = ConfigDict(frozen=True)

    accommodation_rate: Decimal
    fee_rate: Decimal
