"""Pricing quote endpoints with response caching"""
import logging
import time
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from stay_pricing.api.dependencies import get_cache, get_engine
from stay_pricing.core.cache import CacheBackend, cache_get, cache_set
from stay_pricing.core.config import settings
from stay_pricing.core.enums import QuoteOutcome
from stay_pricing.core.errors import (
    AvailabilityServiceError,
    IncompleteAvailability,
    InvalidDateRange,
    PropertyNotFound,
)
from stay_pricing.core.metrics import quote_duration, quotes_calculated
from stay_pricing.schemas.quote import Quote, StayRequest
from stay_pricing.services.availability import CachedAvailabilitySource
from stay_pricing.services.pricing import PricingEngine
from stay_pricing.utils.hashing import cache_key

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/pricing", tags=["pricing"])

QUOTE_NAMESPACE = "price"


def _outcome(exc: Exception) -> QuoteOutcome:
    if isinstance(exc, InvalidDateRange):
        return QuoteOutcome.INVALID_DATES
    if isinstance(exc, (IncompleteAvailability, PropertyNotFound)):
        return QuoteOutcome.UNAVAILABLE
    if isinstance(exc, AvailabilityServiceError):
        return QuoteOutcome.UPSTREAM_ERROR
    return QuoteOutcome.INTERNAL_ERROR


async def quote_stay(req: StayRequest, engine: PricingEngine, cache: CacheBackend) -> Quote:
    key = cache_key(f"{QUOTE_NAMESPACE}:{req.property_id}", req.model_dump(mode="json"))
    cached = await cache_get(cache, key, QUOTE_NAMESPACE)
    if cached:
        try:
            return Quote.model_validate_json(cached)
        except ValueError as e:
            logger.warning(f"Ignoring unreadable quote cache entry: {e}")

    start_time = time.time()
    try:
        quote = await engine.calculate_pricing(req)
    except Exception as exc:
        quotes_calculated.labels(outcome=_outcome(exc).value).inc()
        raise
    finally:
        quote_duration.observe(time.time() - start_time)
    quotes_calculated.labels(outcome=QuoteOutcome.SUCCESS.value).inc()

    await cache_set(cache, key, quote.model_dump_json(), settings.PRICE_CACHE_TTL)
    return quote


@router.get("/quote", response_model=Quote)
async def get_quote(
    property_id: str = Query(..., min_length=1),
    check_in: date = Query(...),
    check_out: date = Query(...),
    adults: Optional[int] = Query(None, ge=0),
    children: int = Query(0, ge=0),
    guests: Optional[int] = Query(None, ge=0),
    pets: int = Query(0, ge=0),
    promo_code: Optional[str] = None,
    pool_heat: bool = False,
    travel_insurance: bool = False,
    engine: PricingEngine = Depends(get_engine),
    cache: CacheBackend = Depends(get_cache),
):
    if adults is None:
        adults = guests if guests is not None else 1
    req = StayRequest(
        property_id=property_id,
        check_in=check_in,
        check_out=check_out,
        adults=adults,
        children=children,
        pets=pets,
        promo_code=promo_code,
        pool_heat=pool_heat,
        travel_insurance=travel_insurance,
    )
    return await quote_stay(req, engine, cache)


@router.post("/quote", response_model=Quote)
async def post_quote(
    req: StayRequest,
    engine: PricingEngine = Depends(get_engine),
    cache: CacheBackend = Depends(get_cache),
):
    return await quote_stay(req, engine, cache)


@router.delete("/cache/{property_id}")
async def invalidate_property(
    property_id: str,
    engine: PricingEngine = Depends(get_engine),
    cache: CacheBackend = Depends(get_cache),
):
    """Drop cached quotes and availability for a property whose calendar changed"""
    quotes_removed = await cache.delete_prefix(f"{QUOTE_NAMESPACE}:{property_id}:")
    availability_removed = 0
    if isinstance(engine.availability, CachedAvailabilitySource):
        availability_removed = await engine.availability.invalidate(property_id)
    logger.info(
        f"Invalidated cache for property {property_id}: "
        f"{quotes_removed} quotes, {availability_removed} availability ranges"
    )
    return {
        "property_id": property_id,
        "quotes_removed": quotes_removed,
        "availability_removed": availability_removed,
    }
