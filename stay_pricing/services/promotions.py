import logging
from decimal import Decimal
from typing import Dict, Protocol

from stay_pricing.core.config import Settings
from stay_pricing.schemas.promotion import PromoValidation
from stay_pricing.utils.money import round_money, to_money

logger = logging.getLogger(__name__)

NO_DISCOUNT = PromoValidation(valid=False)


class PromotionValidator(Protocol):
    async def validate(self, code: str) -> PromoValidation:
        ...


def _parse_promo(code: str, spec: str) -> PromoValidation:
    spec = spec.strip()
    if spec.endswith("%"):
        percent = to_money(spec[:-1], f"promo {code}")
        return PromoValidation(valid=True, percent_off=percent / 100)
    return PromoValidation(valid=True, discount_amount=to_money(spec, f"promo {code}"))


class StaticPromotionValidator:
    """Promo codes from a fixed table, matched case-insensitively.

    Values are either a flat amount ("50") or a percentage of the subtotal ("10%").
    """

    def __init__(self, codes: Dict[str, str]):
        self.codes = {code.upper(): _parse_promo(code, spec) for code, spec in codes.items()}

    @classmethod
    def from_settings(cls, settings: Settings) -> "StaticPromotionValidator":
        return cls(settings.PROMO_CODES)

    async def validate(self, code: str) -> PromoValidation:
        return self.codes.get(code.strip().upper(), NO_DISCOUNT)


def discount_for(promo: PromoValidation, subtotal: Decimal) -> Decimal:
    """Discount owed for a validated promo, clamped to [0, subtotal]"""
    if not promo.valid:
        return Decimal("0")
    if promo.percent_off is not None:
        amount = round_money(subtotal * promo.percent_off)
    else:
        amount = promo.discount_amount or Decimal("0")
    return max(Decimal("0"), min(amount, subtotal))
