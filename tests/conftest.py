"""Shared fixtures: a fake Clarity export served through httpx.MockTransport."""
import httpx
import pytest

from clarity_proxy.analyzer.pipeline import InsightsService
from clarity_proxy.cache.quota_cache import QuotaCache
from clarity_proxy.connectors.clarity.client import ClarityClient

EXPORT_URL = "https://clarity.test/export-data/api/v1/project-live-insights"

URL_EXPORT = [
    {
        "metricName": "Traffic",
        "information": [
            {"URL": "https://shop.example.com/landing/?gclid=1", "totalSessionCount": "6",
             "totalBotSessionCount": "0", "distantUserCount": "5",
             "PagesPerSessionPercentage": 1.5},
            {"URL": "https://www.shop.example.com/landing", "totalSessionCount": "4",
             "totalBotSessionCount": "1", "distantUserCount": "3",
             "PagesPerSessionPercentage": 2.5},
            {"URL": "https://shop.example.com/other", "totalSessionCount": "50"},
        ],
    },
    {
        "metricName": "EngagementTime",
        "information": [
            {"Url": "https://shop.example.com/landing", "totalTime": "250", "activeTime": "120"},
        ],
    },
    {
        "metricName": "ScrollDepth",
        "information": [
            {"URL": "https://shop.example.com/landing", "averageScrollDepth": 64.0},
        ],
    },
    {
        "metricName": "DeadClickCount",
        "information": [
            {"URL": "https://shop.example.com/landing", "sessionsCount": "2",
             "sessionsWithMetricPercentage": 20, "sessionsWithoutMetricPercentage": 80,
             "pagesViews": "3", "subTotal": "4"},
        ],
    },
]

CHANNEL_EXPORT = [
    {
        "metricName": "Traffic",
        "information": [
            {"Channel": "Paid Search", "URL": "https://shop.example.com/landing",
             "totalSessionCount": "7"},
            {"Channel": "Organic Search", "URL": "https://shop.example.com/landing",
             "totalSessionCount": "11"},
        ],
    },
]

SOURCE_MEDIUM_EXPORT = [
    {
        "metricName": "Traffic",
        "information": [
            {"Source": "google", "Medium": "cpc", "URL": "https://shop.example.com/landing",
             "totalSessionCount": "3"},
            {"Source": "bing", "Medium": "cpc", "URL": "https://shop.example.com/landing",
             "totalSessionCount": "8"},
        ],
    },
]


class FakeClarity:
    """Serves canned exports keyed by dimension1 and records every request."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.body = None
        self.exports = {
            "URL": URL_EXPORT,
            "Channel": CHANNEL_EXPORT,
            "Source": SOURCE_MEDIUM_EXPORT,
        }

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status_code != 200:
            return httpx.Response(self.status_code, text=self.body or "")
        if self.body is not None:
            return httpx.Response(200, text=self.body)
        dimension = request.url.params.get("dimension1")
        return httpx.Response(200, json=self.exports.get(dimension, []))

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def fake_clarity():
    return FakeClarity()


@pytest.fixture
def clarity_client(fake_clarity):
    return ClarityClient(token="test-token", export_url=EXPORT_URL, transport=fake_clarity.transport)


@pytest.fixture
def service(clarity_client):
    return InsightsService(cache=QuotaCache(ttl_seconds=86_400), client=clarity_client)
