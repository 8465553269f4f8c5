from decimal import Decimal
from typing import Dict, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    REDIS_URL: Optional[str] = None

    TRACK_API_URL: str = "https://api.trackhs.com/api"
    TRACK_API_KEY: Optional[str] = None
    TRACK_TIMEOUT: int = 10

    PRICE_CACHE_TTL: int = 60           # 60 seconds
    AVAILABILITY_CACHE_TTL: int = 120   # 2 minutes
    MEMORY_CACHE_MAX_ENTRIES: int = 10000

    ACCOMMODATION_TAX_RATE: Decimal = Decimal("0.0875")
    FEE_TAX_RATE: Decimal = Decimal("0.0675")

    # Provisional until per-property fee data comes from the PMS
    DEFAULT_CLEANING_FEE: Decimal = Decimal("350")
    DEFAULT_PET_FEE_PER_WEEK: Decimal = Decimal("250")
    DEFAULT_DAMAGE_WAIVER: Decimal = Decimal("99")
    DEFAULT_POOL_HEAT_PER_WEEK: Decimal = Decimal("500")
    DEFAULT_TRAVEL_INSURANCE: Decimal = Decimal("0")
    # property id -> partial fee schedule, e.g. {"123": {"cleaning_fee": 275}}
    FEE_OVERRIDES: Dict[str, Dict[str, Optional[Decimal]]] = {}

    # code -> "10%" or "50"
    PROMO_CODES: Dict[str, str] = {
        "WELCOME10": "10%",
        "SAVE50": "50",
        "OBX2024": "15%",
    }

    CURRENCY: str = "USD"

    API_TITLE: str = "Stay Pricing Service"
    API_DESCRIPTION: str = "Itemized price quotes for vacation rental stays"
    API_VERSION: str = "1.0.0"

    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
