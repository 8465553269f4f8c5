"""Pricing error taxonomy"""
from datetime import date
from typing import Optional


class PricingError(Exception):
    """Base class for every error raised by the pricing engine"""


class InvalidDateRange(PricingError):
    def __init__(self, check_in: date, check_out: date):
        self.check_in = check_in
        self.check_out = check_out
        super().__init__(f"Check-out ({check_out}) must be after check-in ({check_in})")


class IncompleteAvailability(PricingError):
    """The requested nights are not all available and priced"""

    def __init__(self, message: str, day: Optional[date] = None):
        self.day = day
        super().__init__(message)


class MinimumStayNotMet(IncompleteAvailability):
    def __init__(self, day: date, minimum_stay: int, nights: int):
        self.minimum_stay = minimum_stay
        self.nights = nights
        super().__init__(
            f"Stays starting {day} require at least {minimum_stay} nights, got {nights}",
            day=day,
        )


class InvalidAmount(PricingError):
    """Malformed upstream money value (negative or NaN)"""


class PricingInvariantViolation(PricingError):
    """Quote totals do not reconcile with their components"""


class AvailabilityServiceError(PricingError):
    """Transport or protocol failure talking to the availability source"""


class PropertyNotFound(PricingError):
    def __init__(self, property_id: str):
        self.property_id = property_id
        super().__init__(f"Property not found: {property_id}")
