"""Clarity Proxy — Diagnostics Routes."""

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from clarity_proxy.analyzer.pipeline import (
    InsightsService,
    MalformedInputError,
    effective_days,
)
from clarity_proxy.api.auth import get_service, require_api_key
from clarity_proxy.api.metrics_routes import upstream_http_error
from clarity_proxy.connectors.clarity.client import UpstreamError
from clarity_proxy.core.logging import get_logger

logger = get_logger("api.debug")

router = APIRouter(
    prefix="/debug", tags=["Debug"], dependencies=[Depends(require_api_key)]
)


@router.get("/schema")
async def debug_schema(
    days: Optional[str] = Query(None),
    profile: str = Query("url"),
    service: InsightsService = Depends(get_service),
):
    """Field names of each block's first row.

    Uses the cached export when available.
    """
    try:
        schema = await service.schema_snapshot(days, profile)
    except MalformedInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except UpstreamError as e:
        logger.error(f"Schema snapshot failed: {e}", extra={"endpoint": "/debug/schema"})
        raise upstream_http_error(e)
    return {
        "days": effective_days(days),
        "block_count": len(schema),
        "schema": [s.model_dump() for s in schema],
    }


@router.get("/urls")
async def debug_urls(
    days: Optional[str] = Query(None),
    service: InsightsService = Depends(get_service),
):
    """Raw URLs present in the export, for checking why a target doesn't match."""
    try:
        samples = await service.url_samples(days)
    except UpstreamError as e:
        logger.error(f"URL sampling failed: {e}", extra={"endpoint": "/debug/urls"})
        raise upstream_http_error(e)
    return {
        "days": effective_days(days),
        "sample_count": len(samples),
        "samples": samples,
    }


@router.get("/token")
async def debug_token(service: InsightsService = Depends(get_service)):
    """Whether a Clarity token is configured."""
    return service.client.token_status()


@router.get("/cache")
async def debug_cache(service: InsightsService = Depends(get_service)):
    """Cache entries and hit/miss counters."""
    return {
        "ttl_seconds": service.cache.ttl_seconds,
        "stats": asdict(service.cache.stats),
        "entries": service.cache.entries(),
    }
