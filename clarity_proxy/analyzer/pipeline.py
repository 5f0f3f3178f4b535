"""Clarity Proxy — Insights Service.

Runs the request flow:
  validate → query signature → cache (or Clarity export) → aggregate

The service owns no global state; the cache and client are passed in.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from clarity_proxy.analyzer.aggregator import aggregate
from clarity_proxy.analyzer.classifier import PREDICATES, RowPredicate
from clarity_proxy.cache.quota_cache import QuerySignature, QuotaCache, clamp_days
from clarity_proxy.config import settings
from clarity_proxy.connectors.clarity.client import ClarityClient
from clarity_proxy.connectors.clarity.transformer import sample_urls, schema_of
from clarity_proxy.core.logging import get_logger
from clarity_proxy.models.analysis_models import (
    AggregatedRecord,
    BlockSchema,
    RefreshResult,
)
from clarity_proxy.models.raw_models import MetricBlock

logger = get_logger("analyzer.pipeline")

NO_FILTER = "all"


class MalformedInputError(ValueError):
    """Rejected request parameters; raised before any upstream call."""


class DimensionProfile(str, Enum):
    """Which dimensions are requested from the export."""

    URL = "url"
    CHANNEL = "channel"
    SOURCE_MEDIUM = "source_medium"


PROFILE_DIMENSIONS: Dict[DimensionProfile, Tuple[str, ...]] = {
    DimensionProfile.URL: ("URL",),
    DimensionProfile.CHANNEL: ("Channel", "URL"),
    DimensionProfile.SOURCE_MEDIUM: ("Source", "Medium", "URL"),
}

PROFILE_PREDICATE: Dict[DimensionProfile, Optional[str]] = {
    DimensionProfile.URL: None,
    DimensionProfile.CHANNEL: "paid_search",
    DimensionProfile.SOURCE_MEDIUM: "google_cpc",
}


def resolve_profile(profile: Any) -> DimensionProfile:
    if isinstance(profile, DimensionProfile):
        return profile
    try:
        return DimensionProfile(str(profile or DimensionProfile.URL.value).lower())
    except ValueError:
        raise MalformedInputError(f"Unknown dimension profile: {profile}") from None


def resolve_predicate(
    profile: DimensionProfile, predicate_name: Optional[str]
) -> Tuple[Optional[str], Optional[RowPredicate]]:
    """Pick the row filter for a profile.

    ``None`` means the profile's default; ``"all"`` disables filtering.
    """
    if not predicate_name:
        name = PROFILE_PREDICATE[profile]
    elif predicate_name.lower() == NO_FILTER:
        return None, None
    else:
        name = predicate_name.lower()
        if name not in PREDICATES:
            raise MalformedInputError(f"Unknown predicate: {predicate_name}")
        if name != PROFILE_PREDICATE[profile]:
            raise MalformedInputError(
                f"Predicate '{name}' does not apply to profile '{profile.value}'"
            )
    if name is None:
        return None, None
    return name, PREDICATES[name]


def signature_for(profile: DimensionProfile, days: Any) -> QuerySignature:
    return QuerySignature.build(days, *PROFILE_DIMENSIONS[profile])


class InsightsService:
    """Caller-facing operations over the cached Clarity export."""

    def __init__(
        self,
        cache: QuotaCache,
        client: ClarityClient,
        max_target_url_length: int | None = None,
    ):
        self.cache = cache
        self.client = client
        self.max_target_url_length = (
            max_target_url_length or settings.max_target_url_length
        )

    async def _blocks(
        self, signature: QuerySignature, force: bool = False
    ) -> List[MetricBlock]:
        return await self.cache.get_or_fetch(
            signature,
            lambda: self.client.fetch_live_insights(signature),
            force=force,
        )

    def _validate_target(self, target_url: Optional[str]) -> str:
        target = (target_url or "").strip()
        if not target:
            raise MalformedInputError("Missing query param: url")
        if len(target) > self.max_target_url_length:
            raise MalformedInputError("URL too long")
        return target

    async def compute_metrics(
        self,
        target_url: Optional[str],
        days: Any = None,
        profile: Any = DimensionProfile.URL,
        predicate_name: Optional[str] = None,
        force: bool = False,
    ) -> AggregatedRecord:
        """Aggregate export metrics for one target URL."""
        target = self._validate_target(target_url)
        dimension_profile = resolve_profile(profile)
        predicate_label, predicate = resolve_predicate(
            dimension_profile, predicate_name
        )
        signature = signature_for(dimension_profile, days or settings.default_days)

        blocks = await self._blocks(signature, force=force)
        record = aggregate(blocks, target, predicate)
        record.days = signature.days
        record.profile = dimension_profile.value
        record.predicate = predicate_label

        logger.info(
            f"Aggregated {record.matched_rows} rows for {record.normalized_target} "
            f"({signature})",
            extra={"signature": str(signature)},
        )
        return record

    async def refresh(self, profile: Any = DimensionProfile.URL, days: Any = None) -> RefreshResult:
        """Force a fresh export call and report how many blocks came back."""
        dimension_profile = resolve_profile(profile)
        signature = signature_for(dimension_profile, days or settings.default_days)
        blocks = await self._blocks(signature, force=True)
        entry = self.cache.peek(signature)
        return RefreshResult(
            profile=dimension_profile.value,
            days=signature.days,
            block_count=len(blocks),
            expires_at=entry.expires_at if entry else 0.0,
        )

    async def schema_snapshot(
        self, days: Any = None, profile: Any = DimensionProfile.URL
    ) -> List[BlockSchema]:
        """First-row field names per block, for spotting export schema drift."""
        signature = signature_for(resolve_profile(profile), days or settings.default_days)
        blocks = await self._blocks(signature)
        return schema_of(blocks, settings.schema_sample_key_limit)

    async def url_samples(self, days: Any = None, limit: int | None = None) -> List[str]:
        """Distinct raw URLs seen in the URL export."""
        signature = signature_for(DimensionProfile.URL, days or settings.default_days)
        blocks = await self._blocks(signature)
        return sample_urls(blocks, limit or settings.url_sample_limit)


def effective_days(days: Any) -> int:
    return clamp_days(days or settings.default_days)
