"""Clarity Proxy — Scheduler Jobs.

Optional APScheduler daily job that refreshes the cache for the configured
dimension profiles, so the first request of the day doesn't pay for the
export call. Each warm-up spends one export call per profile.
"""

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from clarity_proxy.analyzer.pipeline import InsightsService, MalformedInputError
from clarity_proxy.config import settings
from clarity_proxy.connectors.clarity.client import UpstreamError
from clarity_proxy.core.logging import get_logger

logger = get_logger("scheduler")

scheduler = AsyncIOScheduler()


async def warm_cache_job(service: InsightsService):
    """Force-refresh every configured profile."""
    logger.info("Scheduled cache warm-up starting...")
    for profile in settings.cache_warm_profiles:
        try:
            result = await service.refresh(profile)
            logger.info(f"Warmed '{profile}': {result.block_count} blocks")
        except (UpstreamError, MalformedInputError) as e:
            logger.error(f"Cache warm-up for '{profile}' failed: {e}")


def start_scheduler(service: InsightsService):
    """Configure and start the scheduler."""
    if not settings.scheduler_enabled:
        logger.info("Scheduler disabled via config")
        return

    scheduler.add_job(
        warm_cache_job,
        "cron",
        hour=settings.cache_warm_hour,
        minute=0,
        args=[service],
        id="warm_cache",
        replace_existing=True,
        misfire_grace_time=3600,
    )
    scheduler.start()
    logger.info(f"Scheduler started. Cache warm-up at {settings.cache_warm_hour}:00 UTC")


def stop_scheduler():
    """Shutdown the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
