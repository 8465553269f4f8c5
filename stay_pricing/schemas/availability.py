from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AvailabilityDay(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    date: date
    is_available: bool = Field(alias="isAvailable")
    # NaN passes parsing so aggregate_rates reports it as InvalidAmount
    rate: Optional[Decimal] = Field(default=None, allow_inf_nan=True)
    minimum_stay: int = Field(default=1, alias="minimumStay")
