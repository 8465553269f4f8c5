from fastapi import Request

from stay_pricing.core.cache import CacheBackend
from stay_pricing.services.pricing import PricingEngine


def get_engine(request: Request) -> PricingEngine:
    return request.app.state.engine


def get_cache(request: Request) -> CacheBackend:
    return request.app.state.cache
