"""In-memory rate limit counters and their expiry sweep"""

import pytest

from app import rate_limiter


@pytest.fixture(autouse=True)
def empty_cache(monkeypatch):
    monkeypatch.setattr(rate_limiter, "memory_cache", {})
    monkeypatch.setattr(rate_limiter, "last_cleanup_time", 0)


def test_counts_until_limit():
    results = [rate_limiter.check_rate_limit("invites:1.2.3.4", 2, 60, None)[0] for _ in range(3)]

    assert results == [True, True, False]


def test_cleanup_removes_only_expired_entries():
    rate_limiter.memory_cache.update(
        {
            "invites:old": {"count": 5, "reset_time": 1_000, "last_redis_sync": 0},
            "invites:live": {"count": 1, "reset_time": 5_000, "last_redis_sync": 0},
        }
    )

    removed = rate_limiter.cleanup_expired_cache(now=2_000)

    assert removed == 1
    assert list(rate_limiter.memory_cache) == ["invites:live"]


def test_cleanup_waits_for_interval():
    rate_limiter.memory_cache["invites:old"] = {"count": 5, "reset_time": 1_000, "last_redis_sync": 0}
    rate_limiter.cleanup_expired_cache(now=2_000)
    rate_limiter.memory_cache["invites:stale"] = {"count": 1, "reset_time": 1_500, "last_redis_sync": 0}

    assert rate_limiter.cleanup_expired_cache(now=2_010) == 0
    assert "invites:stale" in rate_limiter.memory_cache
    assert rate_limiter.cleanup_expired_cache(now=2_000 + rate_limiter.MEMORY_CACHE_CLEANUP_INTERVAL) == 1


def test_many_clients_do_not_accumulate(monkeypatch):
    now = 10_000
    monkeypatch.setattr(rate_limiter.time, "time", lambda: now)
    for i in range(50):
        rate_limiter.check_rate_limit(f"billing_webhook:10.0.0.{i}", 100, 60, None)
    assert len(rate_limiter.memory_cache) == 50

    now += 3_600
    rate_limiter.check_rate_limit("billing_webhook:10.0.1.1", 100, 60, None)

    assert list(rate_limiter.memory_cache) == ["billing_webhook:10.0.1.1"]
