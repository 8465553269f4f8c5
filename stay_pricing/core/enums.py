from enum import Enum


class FeeKind(str, Enum):
    CLEANING = "cleaning"
    PET = "pet"
    DAMAGE_WAIVER = "damage_waiver"
    POOL_HEAT = "pool_heat"
    TRAVEL_INSURANCE = "travel_insurance"
    CONVENIENCE = "convenience"

    def __str__(self):
        return self.value


class QuoteOutcome(str, Enum):
    SUCCESS = "success"
    INVALID_DATES = "invalid_dates"
    UNAVAILABLE = "unavailable"
    UPSTREAM_ERROR = "upstream_error"
    INTERNAL_ERROR = "internal_error"

    def __str__(self):
        return self.value
