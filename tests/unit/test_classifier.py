"""Unit tests for traffic row classification."""
import pytest

from clarity_proxy.analyzer.classifier import (
    PREDICATES,
    is_google_cpc,
    is_paid_search_channel,
    row_is_google_cpc,
    row_is_paid_search,
)


@pytest.mark.parametrize(
    "label,expected",
    [
        ("Paid Search", True),
        ("  paid search ", True),
        ("Search - Paid", True),
        ("Google CPC", True),
        ("ppc-campaign", True),
        ("Organic", False),
        ("Organic Search", False),
        ("Paid Social", False),
        ("", False),
        (None, False),
    ],
)
def test_is_paid_search_channel(label, expected):
    assert is_paid_search_channel(label) is expected


@pytest.mark.parametrize(
    "source,medium,expected",
    [
        ("google.com", "cpc", True),
        ("Google", " CPC ", True),
        ("google", "ppc", True),
        ("www.google.co.uk", "paid-cpc", True),
        ("bing", "cpc", False),
        ("google", "organic", False),
        ("google", None, False),
        (None, "cpc", False),
    ],
)
def test_is_google_cpc(source, medium, expected):
    assert is_google_cpc(source, medium) is expected


def test_row_predicates_read_dimension_casings():
    """Test row adapters accept both capitalised and lower-case fields."""
    assert row_is_paid_search({"Channel": "Paid Search"})
    assert row_is_paid_search({"channel": "paid search"})
    assert not row_is_paid_search({"URL": "https://x.com"})

    assert row_is_google_cpc({"Source": "google", "Medium": "cpc"})
    assert row_is_google_cpc({"source": "google", "medium": "cpc"})
    assert not row_is_google_cpc({"Source": "google"})


def test_predicate_registry():
    assert PREDICATES["paid_search"] is row_is_paid_search
    assert PREDICATES["google_cpc"] is row_is_google_cpc
