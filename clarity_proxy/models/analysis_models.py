"""Clarity Proxy — Aggregation Output Models."""

from typing import List, Optional

from pydantic import BaseModel, Field


class GroupMetrics(BaseModel):
    """Sums for one click/scroll/error category block."""

    sessions_count: float = 0.0
    sessions_with_metric_percentage: float = 0.0
    sessions_without_metric_percentage: float = 0.0
    pages_views: float = 0.0
    sub_total: float = 0.0


class AggregatedRecord(BaseModel):
    """Everything the export says about one target URL.

    Counters are sums over matched rows. ``pages_per_session_percentage`` and
    ``average_scroll_depth`` are means over rows with a positive value.
    """

    target_url: str = ""
    normalized_target: str = ""
    days: int = 3
    profile: str = "url"
    predicate: Optional[str] = None

    matched_rows: int = 0
    blocks_seen: List[str] = []

    # Traffic
    total_session_count: float = 0.0
    total_bot_session_count: float = 0.0
    distinct_user_count: float = 0.0
    pages_per_session_percentage: float = 0.0

    # EngagementTime
    total_time: float = 0.0
    active_time: float = 0.0
    avg_session_duration_sec: int = 0
    active_time_per_session_sec: int = 0

    # ScrollDepth
    average_scroll_depth: float = 0.0

    # Groups
    rage_click: GroupMetrics = Field(default_factory=GroupMetrics)
    dead_click: GroupMetrics = Field(default_factory=GroupMetrics)
    excessive_scroll: GroupMetrics = Field(default_factory=GroupMetrics)
    quickback_click: GroupMetrics = Field(default_factory=GroupMetrics)
    script_error: GroupMetrics = Field(default_factory=GroupMetrics)
    error_click: GroupMetrics = Field(default_factory=GroupMetrics)


class BlockSchema(BaseModel):
    """Field names of the first row of a block, for spotting schema drift."""

    block_name: Optional[str] = None
    sample_field_names: List[str] = []


class RefreshResult(BaseModel):
    """Outcome of a forced cache refresh."""

    profile: str
    days: int
    block_count: int
    expires_at: float
