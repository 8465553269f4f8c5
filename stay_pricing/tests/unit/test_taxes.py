import pytest
from decimal import Decimal

from stay_pricing.core.enums import FeeKind
from stay_pricing.core.errors import InvalidAmount
from stay_pricing.schemas.fees import FeeLine
from stay_pricing.services.taxes import calculate_taxes
from stay_pricing.utils.money import round_money


def line(kind, amount, taxable=True):
    return FeeLine(kind=kind, amount=Decimal(str(amount)), taxable=taxable)


class TestTaxCalculation:

    def test_seven_night_scenario(self, tax_rates):
        fees = [line(FeeKind.CLEANING, 350), line(FeeKind.DAMAGE_WAIVER, 99)]
        taxes = calculate_taxes(Decimal("1400"), fees, tax_rates)

        # 1400 * 0.0875 = 122.5 -> 123, 449 * 0.0675 = 30.3075 -> 30
        assert taxes.accommodation_tax == Decimal("123")
        assert taxes.fee_tax == Decimal("30")
        assert taxes.total == Decimal("153")

    def test_components_rounded_separately(self, tax_rates):
        fees = [line(FeeKind.CLEANING, 10)]
        taxes = calculate_taxes(Decimal("100"), fees, tax_rates)

        # 8.75 -> 9 and 0.675 -> 1, while 9.425 combined would round to 9
        assert taxes.accommodation_tax == Decimal("9")
        assert taxes.fee_tax == Decimal("1")
        assert taxes.total == Decimal("10")
        combined = round_money(Decimal("100") * tax_rates.accommodation_rate + Decimal("10") * tax_rates.fee_rate)
        assert combined == Decimal("9")

    def test_non_taxable_lines_excluded(self, tax_rates):
        fees = [line(FeeKind.CLEANING, 200), line(FeeKind.TRAVEL_INSURANCE, 1000, taxable=False)]
        taxes = calculate_taxes(Decimal("0"), fees, tax_rates)

        # 200 * 0.0675 = 13.5 -> 14
        assert taxes.fee_tax == Decimal("14")
        assert taxes.accommodation_tax == Decimal("0")

    def test_no_fees(self, tax_rates):
        taxes = calculate_taxes(Decimal("1000"), [], tax_rates)

        assert taxes.fee_tax == Decimal("0")
        assert taxes.accommodation_tax == Decimal("88")

    def test_negative_accommodation(self, tax_rates):
        with pytest.raises(InvalidAmount):
            calculate_taxes(Decimal("-1"), [], tax_rates)

    def test_nan_accommodation(self, tax_rates):
        with pytest.raises(InvalidAmount):
            calculate_taxes(Decimal("NaN"), [], tax_rates)
