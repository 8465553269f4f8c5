from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict


class PromoValidation(BaseModel):
    model_config = ConfigDict(frozen=True)

    valid: bool
    discount_amount: Optional[Decimal] = None
    percent_off: Optional[Decimal] = None
