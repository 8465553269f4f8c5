from decimal import Decimal
from typing import Iterable

from pydantic import BaseModel

from stay_pricing.schemas.fees import FeeLine, TaxRates
from stay_pricing.utils.money import round_money, to_money


class TaxBreakdown(BaseModel):
    accommodation_tax: Decimal
    fee_tax: Decimal

    @property
    def total(self) -> Decimal:
        return self.accommodation_tax + self.fee_tax


def calculate_taxes(accommodation_total: Decimal, fee_lines: Iterable[FeeLine], rates: TaxRates) -> TaxBreakdown:
    # Each component is rounded on its own before summing
    accommodation_total = to_money(accommodation_total, "accommodation_total")
    taxable_fees = sum(
        (to_money(line.amount, str(line.kind)) for line in fee_lines if line.taxable),
        Decimal("0"),
    )
    accommodation_rate = to_money(rates.accommodation_rate, "accommodation_rate")
    fee_rate = to_money(rates.fee_rate, "fee_rate")
    return TaxBreakdown(
        accommodation_tax=round_money(accommodation_total * accommodation_rate),
        fee_tax=round_money(taxable_fees * fee_rate),
    )
