import math
from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from stay_pricing.schemas.fees import FeeLine, FeeSelections


class StayRequest(BaseModel):
    property_id: str = Field(min_length=1)
    check_in: date
    check_out: date
    adults: int = Field(default=1, ge=0)
    children: int = Field(default=0, ge=0)
    pets: int = Field(default=0, ge=0)
    promo_code: Optional[str] = None
    pool_heat: bool = False
    travel_insurance: bool = False

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days

    @property
    def weeks(self) -> int:
        return math.ceil(self.nights / 7)

    @property
    def guests(self) -> int:
        return self.adults + self.children

    @property
    def selections(self) -> FeeSelections:
        return FeeSelections(pool_heat=self.pool_heat, travel_insurance=self.travel_insurance)


class NightlyRate(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: date
    rate: Decimal


class Discount(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    amount: Decimal


class Quote(BaseModel):
    model_config = ConfigDict(frozen=True)

    property_id: str
    check_in: date
    check_out: date
    nights: int
    weeks: int
    base_rate: Decimal
    accommodation_total: Decimal
    fee_lines: List[FeeLine]
    subtotal: Decimal
    taxes: Decimal
    discount: Optional[Discount] = None
    total: Decimal
    nightly_rates: List[NightlyRate]
    currency: str = "USD"

    @property
    def discount_amount(self) -> Decimal:
        return self.discount.amount if self.discount else Decimal("0")
