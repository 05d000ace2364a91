"""
Hybrid in-memory + Redis rate limiting utilities

Counts are kept in process memory and synced to Redis periodically, so a
request normally costs no Redis round trip.
"""

import logging
import os
import time
from threading import Lock
from typing import Optional

import redis
from fastapi import HTTPException, Request

logger = logging.getLogger(__name__)

redis_client: Optional[redis.Redis] = None

# {key: {"count": int, "reset_time": int, "last_redis_sync": int}}
memory_cache: dict[str, dict] = {}
cache_lock = Lock()

MEMORY_CACHE_SYNC_INTERVAL = 10  # seconds between Redis syncs per key
MEMORY_CACHE_CLEANUP_INTERVAL = 60  # seconds between sweeps of expired entries
REDIS_RETRY_INTERVAL = 60  # seconds to wait before reconnecting after a failure
redis_retry_at = 0.0
last_cleanup_time = 0


def get_redis_client() -> redis.Redis:
    """Get or create the Redis client from REDIS_URL or REDIS_HOST/REDIS_PORT"""
    global redis_client

    if redis_client is None:
        redis_url = os.getenv("REDIS_URL")
        options = {
            "decode_responses": True,
            "socket_connect_timeout": 5,
            "socket_timeout": 5,
            "retry_on_timeout": True,
            "health_check_interval": 30,
        }
        if redis_url:
            client = redis.from_url(redis_url, **options)
        else:
            client = redis.Redis(
                host=os.getenv("REDIS_HOST", "localhost"),
                port=int(os.getenv("REDIS_PORT", "6379")),
                password=os.getenv("REDIS_PASSWORD"),
                db=int(os.getenv("REDIS_DB", "0")),
                ssl=os.getenv("REDIS_SSL", "false").lower() == "true",
                **options,
            )
        client.ping()
        logger.info("Redis connected successfully")
        redis_client = client

    return redis_client


def _load_entry(key: str, window_seconds: int, client: Optional[redis.Redis], now: int) -> dict:
    if client is not None:
        try:
            count = client.get(key)
            ttl = client.ttl(key)
            if count and ttl > 0:
                return {"count": int(count), "reset_time": now + ttl, "last_redis_sync": now}
        except redis.RedisError as e:
            logger.warning(f"⚠️ Failed to load {key} from Redis, using memory only: {e}")
    return {"count": 0, "reset_time": now + window_seconds, "last_redis_sync": now}


def cleanup_expired_cache(now: Optional[int] = None) -> int:
    """Remove expired entries from the memory cache, at most once per cleanup interval"""
    global last_cleanup_time
    now = int(time.time()) if now is None else now

    if now - last_cleanup_time < MEMORY_CACHE_CLEANUP_INTERVAL:
        return 0

    with cache_lock:
        expired_keys = [k for k, v in memory_cache.items() if now >= v.get("reset_time", 0)]
        for k in expired_keys:
            del memory_cache[k]

    if expired_keys:
        logger.debug(f"🧹 Cleaned up {len(expired_keys)} expired rate limit entries")
    last_cleanup_time = now
    return len(expired_keys)


def check_rate_limit(
    key: str, limit: int, window_seconds: int, client: Optional[redis.Redis]
) -> tuple[bool, int, int]:
    """
    Count one request against key.

    Returns:
        Tuple of (is_allowed, current_count, ttl_seconds)
    """
    now = int(time.time())
    cleanup_expired_cache(now)

    with cache_lock:
        entry = memory_cache.get(key)
        if entry is None:
            entry = memory_cache[key] = _load_entry(key, window_seconds, client, now)

        if now >= entry["reset_time"]:
            entry.update(count=0, reset_time=now + window_seconds, last_redis_sync=0)

        is_allowed = entry["count"] < limit
        if is_allowed:
            entry["count"] += 1

        if client is not None and now - entry["last_redis_sync"] >= MEMORY_CACHE_SYNC_INTERVAL:
            try:
                client.set(key, entry["count"], ex=window_seconds)
                entry["last_redis_sync"] = now
            except redis.RedisError as e:
                logger.warning(f"⚠️ Failed to sync {key} to Redis: {e}")

        return is_allowed, entry["count"], max(0, entry["reset_time"] - now)


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def create_rate_limiter(limit: int, window_seconds: int, key_prefix: str = "rate_limit"):
    """
    Create a per-IP rate limiter dependency.

    Example usage:
        rate_limit_invites = create_rate_limiter(limit=20, window_seconds=3600, key_prefix="invites")

        @router.post("/invitations")
        async def invite(_: None = Depends(rate_limit_invites)):
            ...
    """

    async def rate_limiter(request: Request):
        global redis_retry_at
        client = None
        if time.time() >= redis_retry_at:
            try:
                client = get_redis_client()
            except (redis.RedisError, OSError) as e:
                logger.warning(f"⚠️ Redis unavailable, rate limiting from memory only: {e}")
                redis_retry_at = time.time() + REDIS_RETRY_INTERVAL

        key = f"{key_prefix}:{_client_ip(request)}"
        is_allowed, current_count, ttl = check_rate_limit(key, limit, window_seconds, client)

        if not is_allowed:
            logger.warning(f"🚫 Rate limit EXCEEDED for {key} - {current_count}/{limit} requests used")
            raise HTTPException(
                status_code=429,
                detail={
                    "message": f"Rate limit exceeded. Maximum {limit} requests per {window_seconds} seconds.",
                    "retry_after": ttl,
                },
                headers={"Retry-After": str(ttl)},
            )

    return rate_limiter


rate_limit_billing_webhook = create_rate_limiter(limit=100, window_seconds=60, key_prefix="billing_webhook")
rate_limit_invitations = create_rate_limiter(limit=20, window_seconds=3600, key_prefix="invitations")
