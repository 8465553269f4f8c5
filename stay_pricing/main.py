from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from typing import Optional
from starlette.responses import Response
from starlette.middleware.base import BaseHTTPMiddleware
from stay_pricing.api import quotes
from stay_pricing.core.cache import CacheBackend, build_cache
from stay_pricing.core.config import settings
from stay_pricing.core.errors import (
    AvailabilityServiceError,
    IncompleteAvailability,
    InvalidAmount,
    InvalidDateRange,
    PricingInvariantViolation,
    PropertyNotFound,
)
from stay_pricing.core.metrics import request_count, request_duration, redis_connected, get_metrics_text
from stay_pricing.services.availability import CachedAvailabilitySource, TrackAvailabilitySource
from stay_pricing.services.fees import FeeScheduleSource
from stay_pricing.services.pricing import PricingEngine
from stay_pricing.services.promotions import StaticPromotionValidator
import time
import logging

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
            return response
        finally:
            duration = time.time() - start_time
            request_count.labels(
                method=request.method,
                endpoint=request.url.path,
                status=status
            ).inc()
            request_duration.labels(
                method=request.method,
                endpoint=request.url.path
            ).observe(duration)


def build_engine(cache: CacheBackend) -> PricingEngine:
    availability = CachedAvailabilitySource(
        TrackAvailabilitySource.from_settings(settings),
        cache,
        settings.AVAILABILITY_CACHE_TTL,
    )
    return PricingEngine.from_settings(
        settings,
        availability,
        FeeScheduleSource.from_settings(settings, settings.FEE_OVERRIDES),
        StaticPromotionValidator.from_settings(settings),
    )


def register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(InvalidDateRange)
    async def invalid_date_range(request: Request, exc: InvalidDateRange):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(PropertyNotFound)
    async def property_not_found(request: Request, exc: PropertyNotFound):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(IncompleteAvailability)
    async def incomplete_availability(request: Request, exc: IncompleteAvailability):
        return JSONResponse(
            status_code=409,
            content={"detail": f"Not bookable for these dates: {exc}"},
        )

    @app.exception_handler(AvailabilityServiceError)
    async def availability_unreachable(request: Request, exc: AvailabilityServiceError):
        logger.error(f"Availability service error: {exc}")
        return JSONResponse(status_code=502, content={"detail": "Availability service unavailable"})

    @app.exception_handler(InvalidAmount)
    async def invalid_amount(request: Request, exc: InvalidAmount):
        logger.exception(f"Malformed pricing data: {exc}")
        return JSONResponse(status_code=502, content={"detail": "Failed to calculate pricing"})

    @app.exception_handler(PricingInvariantViolation)
    async def invariant_violation(request: Request, exc: PricingInvariantViolation):
        logger.critical(f"Pricing invariant violation: {exc}")
        return JSONResponse(status_code=500, content={"detail": "Failed to calculate pricing"})


def create_app(engine: Optional[PricingEngine] = None, cache: Optional[CacheBackend] = None) -> FastAPI:

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Application starting...")

        if getattr(app.state, "cache", None) is None:
            app.state.cache = await build_cache(settings)
        redis_connected.set(1 if app.state.cache.name == "redis" else 0)
        logger.info(f"Using {app.state.cache.name} cache")

        if getattr(app.state, "engine", None) is None:
            app.state.engine = build_engine(app.state.cache)

        yield

        logger.info("Application shutting down...")
        await app.state.cache.close()
        redis_connected.set(0)
        logger.info("Shutdown complete")

    app = FastAPI(
        title=settings.API_TITLE,
        description=settings.API_DESCRIPTION,
        version=settings.API_VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan
    )

    app.state.cache = cache
    app.state.engine = engine

    app.add_middleware(MetricsMiddleware)
    register_exception_handlers(app)
    app.include_router(quotes.router)

    @app.get("/metrics", tags=["monitoring"])
    async def metrics():
        return Response(
            content=get_metrics_text(),
            media_type="text/plain; version=0.0.4; charset=utf-8"
        )

    @app.get("/health", tags=["monitoring"])
    async def health_check(request: Request):
        cache_backend = request.app.state.cache
        cache_healthy = await cache_backend.ping()

        return {
            "status": "healthy",
            "service": settings.API_TITLE,
            "version": settings.API_VERSION,
            "dependencies": {
                "cache": cache_backend.name,
                "cache_status": "connected" if cache_healthy else "disconnected",
            }
        }

    @app.get("/readiness", tags=["monitoring"])
    async def readiness_check(request: Request):
        ready = getattr(request.app.state, "engine", None) is not None
        if not ready:
            return JSONResponse(
                status_code=503,
                content={"ready": False, "reason": "Pricing engine not initialized"},
            )
        return {
            "ready": True,
            "service": settings.API_TITLE
        }

    @app.get("/", tags=["root"])
    async def root():
        return {
            "message": settings.API_TITLE,
            "version": settings.API_VERSION,
            "docs": "/docs",
            "health": "/health",
            "metrics": "/metrics"
        }

    return app


app = create_app()
