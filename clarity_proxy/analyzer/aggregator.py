"""Clarity Proxy — Metric Aggregator.

Folds every export row whose URL normalizes to the target into a single
AggregatedRecord. Block names select the accumulation rule (see
``core.metric_registry``); unknown blocks still count as matched rows.

Malformed rows never raise: missing or non-numeric fields contribute 0.
"""

from collections import defaultdict
from typing import Any, Dict, Iterable, Optional

from clarity_proxy.analyzer.classifier import RowPredicate
from clarity_proxy.analyzer.coercion import pick_first_non_zero, round_half_away
from clarity_proxy.analyzer.url_normalizer import normalize_url, row_url
from clarity_proxy.core.metric_registry import (
    BLOCK_METRICS,
    Accumulation,
    BlockKind,
    block_kind,
    canonical_block_name,
    group_key,
)
from clarity_proxy.models.analysis_models import AggregatedRecord, GroupMetrics
from clarity_proxy.models.raw_models import MetricBlock


class _RunningMean:
    """Sum/count pair; only positive values count toward the divisor."""

    def __init__(self):
        self.total = 0.0
        self.count = 0

    def add(self, value: float) -> None:
        if value > 0:
            self.total += value
            self.count += 1

    def result(self) -> Optional[int]:
        if self.count == 0:
            return None
        return round_half_away(self.total / self.count)


def _block_parts(block: Any) -> tuple[str, list]:
    if isinstance(block, MetricBlock):
        return block.name, block.rows
    if isinstance(block, dict):
        rows = block.get("rows", block.get("information"))
        name = block.get("name", block.get("metricName"))
        return str(name or ""), rows if isinstance(rows, list) else []
    return "", []


def aggregate(
    blocks: Iterable[Any],
    target_url: str,
    predicate: Optional[RowPredicate] = None,
) -> AggregatedRecord:
    """Aggregate all rows matching ``target_url`` across ``blocks``."""
    target = normalize_url(target_url)
    record = AggregatedRecord(target_url=target_url or "", normalized_target=target)

    sums: Dict[str, float] = defaultdict(float)
    means: Dict[str, _RunningMean] = defaultdict(_RunningMean)
    groups: Dict[str, Dict[str, float]] = defaultdict(lambda: defaultdict(float))
    seen = set()

    for block in blocks or []:
        name, rows = _block_parts(block)
        block_name = canonical_block_name(name)
        if block_name:
            seen.add(block_name)
        kind = block_kind(name)
        metrics = BLOCK_METRICS.get(kind, {}) if kind else {}

        for row in rows:
            if not isinstance(row, dict):
                continue
            if predicate is not None and not predicate(row):
                continue
            row_key = normalize_url(row_url(row))
            if not row_key or row_key != target:
                continue
            record.matched_rows += 1

            for metric in metrics.values():
                value = pick_first_non_zero(row, metric.candidates)
                if kind is BlockKind.GROUP:
                    groups[group_key(name)][metric.name] += value
                elif metric.accumulation is Accumulation.AVERAGE:
                    means[metric.name].add(value)
                else:
                    sums[metric.name] += value

    record.blocks_seen = sorted(seen)
    for metric_name, total in sums.items():
        setattr(record, metric_name, total)
    for metric_name, mean in means.items():
        value = mean.result()
        if value is not None:
            setattr(record, metric_name, value)
    for attr, fields in groups.items():
        setattr(record, attr, GroupMetrics(**fields))

    sessions = record.total_session_count
    if sessions > 0 and record.total_time > 0:
        record.avg_session_duration_sec = round_half_away(record.total_time / sessions)
    if sessions > 0 and record.active_time > 0:
        record.active_time_per_session_sec = round_half_away(
            record.active_time / sessions
        )

    return record
