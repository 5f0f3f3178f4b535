"""Clarity Proxy — FastAPI Application Entry Point.

Fronts the Microsoft Clarity export API with a quota-aware cache and
per-URL metric aggregation.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from clarity_proxy.analyzer.pipeline import InsightsService
from clarity_proxy.api.debug_routes import router as debug_router
from clarity_proxy.api.metrics_routes import router as metrics_router
from clarity_proxy.cache.quota_cache import QuotaCache
from clarity_proxy.config import settings
from clarity_proxy.connectors.clarity.client import ClarityClient
from clarity_proxy.core.logging import get_logger
from clarity_proxy.scheduler.jobs import start_scheduler, stop_scheduler

logger = get_logger("main")

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
}


def build_service(client: ClarityClient | None = None) -> InsightsService:
    """Wire the cache and Clarity client into a service."""
    return InsightsService(
        cache=QuotaCache(ttl_seconds=settings.cache_ttl_seconds),
        client=client or ClarityClient(),
    )


def create_app(service: InsightsService | None = None) -> FastAPI:
    """Build the FastAPI app. Tests pass their own service."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown lifecycle."""
        logger.info("🚀 Clarity proxy starting up...")
        if not settings.clarity_api_token:
            logger.error("❌ Missing CLARITY_API_TOKEN — export calls will fail")
        app.state.insights = service or build_service()
        logger.info(
            f"🗄️  Cache policy '{settings.cache_policy}' "
            f"(TTL {app.state.insights.cache.ttl_seconds}s)"
        )
        start_scheduler(app.state.insights)
        yield
        stop_scheduler()
        await app.state.insights.client.close()
        logger.info("Clarity proxy shut down")

    app = FastAPI(
        title="Clarity Proxy",
        description="Cached Microsoft Clarity export with per-URL metric aggregation.",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-API-Key"],
    )

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers[header] = value
        return response

    app.include_router(metrics_router)
    app.include_router(debug_router)

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "service": "clarity-proxy", "version": "1.0.0"}

    return app


app = create_app()
