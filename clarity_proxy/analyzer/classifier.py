"""Clarity Proxy — Traffic row classification.

Clarity's channel and source/medium labels are inconsistent, so both checks
match on substrings. Counting a few non-paid rows is preferred over missing
paid ones.
"""

from typing import Any, Callable, Dict, Tuple

from clarity_proxy.models.raw_models import Row

RowPredicate = Callable[[Row], bool]

CHANNEL_FIELDS = ("Channel", "channel")
SOURCE_FIELDS = ("Source", "source")
MEDIUM_FIELDS = ("Medium", "medium")


def _label(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip().lower()


def _field(row: Row, fields: Tuple[str, ...]) -> Any:
    for field in fields:
        value = row.get(field)
        if value:
            return value
    return None


def is_paid_search_channel(channel_label: Any) -> bool:
    """True for 'Paid Search' and its cpc/ppc spellings."""
    label = _label(channel_label)
    if not label:
        return False
    if label == "paid search":
        return True
    if "paid" in label and "search" in label:
        return True
    return "cpc" in label or "ppc" in label


def is_google_cpc(source: Any, medium: Any) -> bool:
    """True when the source is Google and the medium is cpc/ppc."""
    src = _label(source)
    med = _label(medium)
    return "google" in src and ("cpc" in med or "ppc" in med)


def row_is_paid_search(row: Row) -> bool:
    return is_paid_search_channel(_field(row, CHANNEL_FIELDS))


def row_is_google_cpc(row: Row) -> bool:
    return is_google_cpc(_field(row, SOURCE_FIELDS), _field(row, MEDIUM_FIELDS))


PREDICATES: Dict[str, RowPredicate] = {
    "paid_search": row_is_paid_search,
    "google_cpc": row_is_google_cpc,
}
