"""Clarity Proxy — Raw Export Models (Immutable)."""

from typing import Any, Dict, List

from pydantic import BaseModel, Field

Row = Dict[str, Any]


class MetricBlock(BaseModel):
    """One named batch of rows from the Clarity export.

    Never modify this data — blocks are shared through the cache.
    """

    name: str = Field(default="", description="Clarity metricName")
    rows: List[Row] = Field(
        default_factory=list, description="Raw rows from the block's 'information'"
    )

    model_config = {"frozen": True}
