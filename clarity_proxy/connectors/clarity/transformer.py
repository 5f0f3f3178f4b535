"""Clarity Proxy — Raw Export → MetricBlock Transformer.

The live-insights export is a JSON list of ``{"metricName", "information"}``
objects. Anything that does not fit is dropped here rather than failing the
whole payload.
"""

from typing import Any, List, Optional

from clarity_proxy.analyzer.url_normalizer import row_url
from clarity_proxy.core.logging import get_logger
from clarity_proxy.models.analysis_models import BlockSchema
from clarity_proxy.models.raw_models import MetricBlock

logger = get_logger("clarity.transformer")


def parse_blocks(payload: Any) -> Optional[List[MetricBlock]]:
    """Convert an export payload into MetricBlocks.

    Returns None when the payload is not a list at all.
    """
    if not isinstance(payload, list):
        return None

    blocks: List[MetricBlock] = []
    dropped_rows = 0
    for entry in payload:
        if not isinstance(entry, dict):
            continue
        information = entry.get("information")
        raw_rows = information if isinstance(information, list) else []
        rows = [r for r in raw_rows if isinstance(r, dict)]
        dropped_rows += len(raw_rows) - len(rows)
        blocks.append(
            MetricBlock(name=str(entry.get("metricName") or ""), rows=rows)
        )

    logger.info(
        f"Parsed {len(blocks)} blocks ({sum(len(b.rows) for b in blocks)} rows, "
        f"{dropped_rows} dropped)"
    )
    return blocks


def schema_of(blocks: List[MetricBlock], key_limit: int = 80) -> List[BlockSchema]:
    """First-row field names per block."""
    return [
        BlockSchema(
            block_name=block.name or None,
            sample_field_names=list(block.rows[0].keys())[:key_limit]
            if block.rows
            else [],
        )
        for block in blocks
    ]


def sample_urls(blocks: List[MetricBlock], limit: int = 150) -> List[str]:
    """Distinct raw row URLs in export order, up to ``limit``."""
    samples: List[str] = []
    seen = set()
    for block in blocks:
        for row in block.rows:
            if len(samples) >= limit:
                return samples
            url = row_url(row)
            if url and str(url) not in seen:
                seen.add(str(url))
                samples.append(str(url))
    return samples
