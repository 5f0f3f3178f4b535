"""Clarity Proxy — Unified Metric Registry.

Defines the Clarity export blocks the aggregator understands and, for each
logical metric, the ordered list of upstream field names it may appear under.
Clarity has renamed fields across export revisions; the first candidate with a
non-zero value wins (see ``coercion.pick_first_non_zero``).
"""

from enum import Enum
from typing import Dict, Optional, Tuple


class Accumulation(str, Enum):
    """How a metric folds across rows."""

    SUM = "sum"  # Counters: sessions, users, time
    AVERAGE = "average"  # Running mean over rows with a positive value


class BlockKind(str, Enum):
    """Accumulation rule selected by a block's metricName."""

    TRAFFIC = "traffic"
    ENGAGEMENT_TIME = "engagement_time"
    SCROLL_DEPTH = "scroll_depth"
    GROUP = "group"


class MetricDefinition:
    """Describes a single metric and where to find it in a row."""

    def __init__(
        self,
        name: str,
        accumulation: Accumulation,
        candidates: Tuple[str, ...],
        unit: str = "",
        description: str = "",
    ):
        self.name = name
        self.accumulation = accumulation
        self.candidates = candidates
        self.unit = unit
        self.description = description

    def __repr__(self) -> str:
        return f"<Metric {self.name} ({self.accumulation.value})>"


# ─────────────────────────────────────────────
# BLOCK NAMES — Clarity export "metricName"
# ─────────────────────────────────────────────

TRAFFIC_BLOCK = "Traffic"
ENGAGEMENT_TIME_BLOCK = "EngagementTime"
SCROLL_DEPTH_BLOCK = "ScrollDepth"

# Group blocks map to the sub-group attribute on AggregatedRecord
GROUP_BLOCKS: Dict[str, str] = {
    "RageClickCount": "rage_click",
    "DeadClickCount": "dead_click",
    "ExcessiveScroll": "excessive_scroll",
    "QuickbackClick": "quickback_click",
    "ScriptErrorCount": "script_error",
    "ErrorClickCount": "error_click",
}

# Older exports spelled block names with spaces
BLOCK_ALIASES: Dict[str, str] = {
    "Engagement Time": ENGAGEMENT_TIME_BLOCK,
    "Scroll Depth": SCROLL_DEPTH_BLOCK,
    "Rage Click Count": "RageClickCount",
    "Dead Click Count": "DeadClickCount",
    "Excessive Scroll": "ExcessiveScroll",
    "Quickback Click": "QuickbackClick",
    "Script Error Count": "ScriptErrorCount",
    "Error Click Count": "ErrorClickCount",
}


# ─────────────────────────────────────────────
# METRICS — per block kind
# ─────────────────────────────────────────────

TRAFFIC_METRICS: Dict[str, MetricDefinition] = {
    "total_session_count": MetricDefinition(
        "total_session_count",
        Accumulation.SUM,
        ("totalSessionCount", "sessionCount", "sessions"),
        "count",
        "Sessions landing on the page",
    ),
    "total_bot_session_count": MetricDefinition(
        "total_bot_session_count",
        Accumulation.SUM,
        ("totalBotSessionCount", "botSessionCount"),
        "count",
        "Sessions flagged as bot traffic",
    ),
    "distinct_user_count": MetricDefinition(
        "distinct_user_count",
        Accumulation.SUM,
        # "distantUserCount" is how the export actually spells it
        ("distinctUserCount", "distantUserCount", "userCount", "users"),
        "count",
        "Distinct users",
    ),
    "pages_per_session_percentage": MetricDefinition(
        "pages_per_session_percentage",
        Accumulation.AVERAGE,
        ("pagesPerSessionPercentage", "PagesPerSessionPercentage", "pagesPerSession"),
        "%",
        "Pages viewed per session",
    ),
}

ENGAGEMENT_TIME_METRICS: Dict[str, MetricDefinition] = {
    "total_time": MetricDefinition(
        "total_time", Accumulation.SUM, ("totalTime", "TotalTime"), "s", "Total time"
    ),
    "active_time": MetricDefinition(
        "active_time", Accumulation.SUM, ("activeTime", "ActiveTime"), "s", "Active time"
    ),
}

SCROLL_DEPTH_METRICS: Dict[str, MetricDefinition] = {
    "average_scroll_depth": MetricDefinition(
        "average_scroll_depth",
        Accumulation.AVERAGE,
        ("averageScrollDepth", "AverageScrollDepth", "scrollDepth"),
        "%",
        "Average scroll depth",
    ),
}

GROUP_METRICS: Dict[str, MetricDefinition] = {
    "sessions_count": MetricDefinition(
        "sessions_count", Accumulation.SUM, ("sessionsCount", "sessionCount"), "count"
    ),
    "sessions_with_metric_percentage": MetricDefinition(
        "sessions_with_metric_percentage",
        Accumulation.SUM,
        ("sessionsWithMetricPercentage",),
        "%",
    ),
    "sessions_without_metric_percentage": MetricDefinition(
        "sessions_without_metric_percentage",
        Accumulation.SUM,
        ("sessionsWithoutMetricPercentage",),
        "%",
    ),
    "pages_views": MetricDefinition(
        "pages_views", Accumulation.SUM, ("pagesViews", "pageViews"), "count"
    ),
    "sub_total": MetricDefinition(
        "sub_total", Accumulation.SUM, ("subTotal", "SubTotal"), "count"
    ),
}

BLOCK_METRICS: Dict[BlockKind, Dict[str, MetricDefinition]] = {
    BlockKind.TRAFFIC: TRAFFIC_METRICS,
    BlockKind.ENGAGEMENT_TIME: ENGAGEMENT_TIME_METRICS,
    BlockKind.SCROLL_DEPTH: SCROLL_DEPTH_METRICS,
    BlockKind.GROUP: GROUP_METRICS,
}


# ─────────────────────────────────────────────
# HELPERS
# ─────────────────────────────────────────────


def canonical_block_name(name: str) -> str:
    """Trim a block name and resolve legacy spellings."""
    name = (name or "").strip()
    return BLOCK_ALIASES.get(name, name)


def block_kind(name: str) -> Optional[BlockKind]:
    """Return the accumulation rule for a block, or None if unrecognised."""
    name = canonical_block_name(name)
    if name == TRAFFIC_BLOCK:
        return BlockKind.TRAFFIC
    if name == ENGAGEMENT_TIME_BLOCK:
        return BlockKind.ENGAGEMENT_TIME
    if name == SCROLL_DEPTH_BLOCK:
        return BlockKind.SCROLL_DEPTH
    if name in GROUP_BLOCKS:
        return BlockKind.GROUP
    return None


def group_key(name: str) -> Optional[str]:
    """Return the sub-group attribute name for a group block."""
    return GROUP_BLOCKS.get(canonical_block_name(name))
