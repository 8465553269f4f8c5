import logging
from decimal import Decimal
from typing import Optional, Protocol

from stay_pricing.core.config import Settings
from stay_pricing.core.errors import PricingInvariantViolation
from stay_pricing.schemas.fees import FeeSchedule, TaxRates
from stay_pricing.schemas.quote import Discount, Quote, StayRequest
from stay_pricing.services.availability import AvailabilitySource
from stay_pricing.services.fees import resolve_fees
from stay_pricing.services.promotions import PromotionValidator, discount_for
from stay_pricing.services.rates import aggregate_rates, stay_nights
from stay_pricing.services.taxes import calculate_taxes

logger = logging.getLogger(__name__)


class FeeScheduleProvider(Protocol):
    async def get_fee_schedule(self, property_id: str) -> FeeSchedule:
        ...


def verify_quote(quote: Quote) -> Quote:
    """Check that quote totals reconcile with their components"""
    fees = sum((line.amount for line in quote.fee_lines), Decimal("0"))
    discount = quote.discount_amount
    problems = []
    if quote.subtotal != quote.accommodation_total + fees:
        problems.append(
            f"subtotal {quote.subtotal} != accommodation {quote.accommodation_total} + fees {fees}"
        )
    if quote.total != quote.subtotal - discount + quote.taxes:
        problems.append(
            f"total {quote.total} != subtotal {quote.subtotal} - discount {discount} + taxes {quote.taxes}"
        )
    if not Decimal("0") <= discount <= quote.subtotal:
        problems.append(f"discount {discount} outside [0, {quote.subtotal}]")
    if problems:
        message = "; ".join(problems)
        logger.critical(f"Pricing invariant violated for property {quote.property_id}: {message}")
        raise PricingInvariantViolation(message)
    return quote


class PricingEngine:
    """Builds itemized quotes from availability, fee, tax and promotion inputs.

    Holds no per-request state, so one instance serves concurrent requests.
    """

    def __init__(
        self,
        availability: AvailabilitySource,
        fee_schedules: FeeScheduleProvider,
        promotions: PromotionValidator,
        tax_rates: TaxRates,
        currency: str = "USD",
    ):
        self.availability = availability
        self.fee_schedules = fee_schedules
        self.promotions = promotions
        self.tax_rates = tax_rates
        self.currency = currency

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        availability: AvailabilitySource,
        fee_schedules: FeeScheduleProvider,
        promotions: PromotionValidator,
    ) -> "PricingEngine":
        rates = TaxRates(
            accommodation_rate=settings.ACCOMMODATION_TAX_RATE,
            fee_rate=settings.FEE_TAX_RATE,
        )
        return cls(availability, fee_schedules, promotions, rates, settings.CURRENCY)

    async def calculate_pricing(self, request: StayRequest) -> Quote:
        # Reject bad ranges before any upstream call
        stay_nights(request.check_in, request.check_out)

        days = await self.availability.get_availability(
            request.property_id, request.check_in, request.check_out
        )
        rates = aggregate_rates(days, request.check_in, request.check_out)

        schedule = await self.fee_schedules.get_fee_schedule(request.property_id)
        fee_lines = resolve_fees(rates.nights, request.pets, schedule, request.selections)
        subtotal = rates.accommodation_total + sum((line.amount for line in fee_lines), Decimal("0"))

        # Taxes apply to the pre-discount components
        taxes = calculate_taxes(rates.accommodation_total, fee_lines, self.tax_rates)

        discount = await self._discount(request.promo_code, subtotal)

        quote = Quote(
            property_id=request.property_id,
            check_in=request.check_in,
            check_out=request.check_out,
            nights=rates.nights,
            weeks=request.weeks,
            base_rate=rates.base_rate,
            accommodation_total=rates.accommodation_total,
            fee_lines=fee_lines,
            subtotal=subtotal,
            taxes=taxes.total,
            discount=discount,
            total=subtotal - (discount.amount if discount else Decimal("0")) + taxes.total,
            nightly_rates=rates.nightly_rates,
            currency=self.currency,
        )
        return verify_quote(quote)

    async def _discount(self, code: Optional[str], subtotal: Decimal) -> Optional[Discount]:
        if not code or not code.strip():
            return None
        try:
            promo = await self.promotions.validate(code)
        except Exception as e:
            logger.warning(f"Promotion validation failed for code {code!r}, quoting without discount: {e}")
            return None
        amount = discount_for(promo, subtotal)
        if amount <= 0:
            return None
        return Discount(code=code.strip().upper(), amount=amount)
