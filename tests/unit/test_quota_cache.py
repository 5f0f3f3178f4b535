"""Unit tests for the quota-aware cache."""
import pytest

from clarity_proxy.cache.quota_cache import QuerySignature, QuotaCache, clamp_days


class FakeClock:
    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class CountingFetch:
    """Async fetch stub returning successive payloads."""

    def __init__(self, *payloads, error: Exception | None = None):
        self.payloads = list(payloads)
        self.error = error
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.payloads[min(self.calls, len(self.payloads)) - 1]


SIG = QuerySignature.build(3, "URL")


@pytest.mark.parametrize(
    "days,expected", [(1, 1), (3, 3), (7, 3), (-2, 1), ("2", 2), ("x", 3), (None, 3), (0, 3)]
)
def test_clamp_days(days, expected):
    assert clamp_days(days) == expected


def test_signature_is_keyed_by_days_and_dimensions():
    """Test signatures compare by clamped days and dimension set."""
    assert QuerySignature.build(9, "URL") == QuerySignature.build(3, "URL")
    assert QuerySignature.build(3, "URL") != QuerySignature.build(2, "URL")
    assert QuerySignature.build(3, "Channel", "URL") != QuerySignature.build(3, "URL")
    assert QuerySignature.build(3, "URL", "") == QuerySignature.build(3, "URL")
    assert str(QuerySignature.build(1, "Source", "Medium", "URL")) == "1|Source|Medium|URL"


@pytest.mark.asyncio
async def test_second_call_is_served_from_cache():
    """Test a live entry is returned without calling fetch again."""
    cache = QuotaCache(ttl_seconds=86_400, clock=FakeClock())
    fetch = CountingFetch(["first"], ["second"])

    assert await cache.get_or_fetch(SIG, fetch) == ["first"]
    assert await cache.get_or_fetch(SIG, fetch) == ["first"]
    assert fetch.calls == 1
    assert cache.stats.hits == 1
    assert cache.stats.misses == 1


@pytest.mark.asyncio
async def test_expired_entry_is_refetched():
    clock = FakeClock()
    cache = QuotaCache(ttl_seconds=300, clock=clock)
    fetch = CountingFetch(["first"], ["second"])

    await cache.get_or_fetch(SIG, fetch)
    clock.now += 300

    assert await cache.get_or_fetch(SIG, fetch) == ["second"]
    assert fetch.calls == 2


@pytest.mark.asyncio
async def test_force_always_fetches_and_overwrites():
    """Test force bypasses a live entry and replaces it."""
    clock = FakeClock()
    cache = QuotaCache(ttl_seconds=86_400, clock=clock)
    fetch = CountingFetch(["first"], ["second"])

    await cache.get_or_fetch(SIG, fetch)
    clock.now += 10
    assert await cache.get_or_fetch(SIG, fetch, force=True) == ["second"]

    assert fetch.calls == 2
    entry = cache.peek(SIG)
    assert entry.payload == ["second"]
    assert entry.expires_at == clock.now + 86_400
    assert await cache.get_or_fetch(SIG, fetch) == ["second"]
    assert fetch.calls == 2


@pytest.mark.asyncio
async def test_failed_fetch_keeps_previous_entry():
    """Test a failing refresh neither clears nor extends the stored entry."""
    cache = QuotaCache(ttl_seconds=86_400, clock=FakeClock())
    await cache.get_or_fetch(SIG, CountingFetch(["good"]))
    before = cache.peek(SIG)

    failing = CountingFetch(error=RuntimeError("upstream down"))
    with pytest.raises(RuntimeError, match="upstream down"):
        await cache.get_or_fetch(SIG, failing, force=True)

    assert cache.peek(SIG) is before
    assert await cache.get_or_fetch(SIG, failing) == ["good"]
    assert failing.calls == 1
    assert cache.stats.failures == 1


@pytest.mark.asyncio
async def test_failed_first_fetch_stores_nothing():
    cache = QuotaCache(ttl_seconds=60, clock=FakeClock())

    with pytest.raises(ValueError):
        await cache.get_or_fetch(SIG, CountingFetch(error=ValueError("bad body")))

    assert cache.peek(SIG) is None
    assert cache.entries() == []


@pytest.mark.asyncio
async def test_signatures_are_cached_independently():
    cache = QuotaCache(ttl_seconds=60, clock=FakeClock())
    url_fetch = CountingFetch(["url"])
    channel_fetch = CountingFetch(["channel"])
    channel_sig = QuerySignature.build(3, "Channel", "URL")

    assert await cache.get_or_fetch(SIG, url_fetch) == ["url"]
    assert await cache.get_or_fetch(channel_sig, channel_fetch) == ["channel"]
    assert len(cache.entries()) == 2

    assert cache.invalidate(SIG) == 1
    assert cache.peek(SIG) is None
    assert cache.invalidate() == 1
