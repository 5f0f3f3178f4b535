"""Clarity Proxy — Metrics API Routes."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from clarity_proxy.analyzer.pipeline import InsightsService, MalformedInputError
from clarity_proxy.api.auth import get_service, require_api_key
from clarity_proxy.connectors.clarity.client import UpstreamError
from clarity_proxy.core.logging import get_logger
from clarity_proxy.models.analysis_models import AggregatedRecord, RefreshResult

logger = get_logger("api.metrics")

router = APIRouter(tags=["Metrics"], dependencies=[Depends(require_api_key)])


def upstream_http_error(e: UpstreamError) -> HTTPException:
    """Map an UpstreamError onto a 502 response."""
    return HTTPException(
        status_code=502,
        detail={
            "error": "Upstream error",
            "status_code": e.status_code,
            "message": str(e),
        },
    )


@router.get("/metrics", response_model=AggregatedRecord)
async def get_metrics(
    url: Optional[str] = Query(None, description="Final URL to aggregate"),
    days: Optional[str] = Query(None, description="1-3, clamped"),
    profile: str = Query("url", description="url | channel | source_medium"),
    predicate: Optional[str] = Query(
        None, description="paid_search | google_cpc | all; defaults per profile"
    ),
    force: bool = Query(False, description="Bypass the cache"),
    service: InsightsService = Depends(get_service),
):
    """Aggregate Clarity metrics for every row matching ``url``."""
    try:
        return await service.compute_metrics(url, days, profile, predicate, force)
    except MalformedInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except UpstreamError as e:
        logger.error(f"Metrics failed: {e}", extra={"endpoint": "/metrics"})
        raise upstream_http_error(e)


@router.post("/refresh", response_model=RefreshResult)
async def refresh(
    profile: str = Query("url", description="url | channel | source_medium"),
    days: Optional[str] = Query(None, description="1-3, clamped"),
    service: InsightsService = Depends(get_service),
):
    """Force a fresh export call for one profile, replacing the cached copy."""
    try:
        return await service.refresh(profile, days)
    except MalformedInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except UpstreamError as e:
        logger.error(f"Refresh failed: {e}", extra={"endpoint": "/refresh"})
        raise upstream_http_error(e)
