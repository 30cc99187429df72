"""
RentMatch: Redis-backed cache for ranked match lists.

A match list depends only on the tenant's stored preferences, the query
parameters, and the catalog.  Entries are keyed by user, preference version,
and query, and expire after ``MATCH_CACHE_TTL_SECONDS`` so catalog changes
show up without explicit invalidation.

The cache is strictly best-effort: when Redis is unreachable the failure is
logged and the request is served uncached.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

import structlog

from app.config import get_settings

logger = structlog.get_logger("rentmatch.match_cache")

_redis_client = None


# ── Connection management ────────────────────────────────────────────────────

async def connect_redis() -> None:
    global _redis_client
    import redis.asyncio as aioredis

    settings = get_settings()
    _redis_client = aioredis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
        socket_connect_timeout=5,
    )
    await _redis_client.ping()
    logger.info("redis_connected", url=settings.REDIS_URL)


async def close_redis() -> None:
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
        logger.info("redis_closed")


def get_redis():
    """Return the shared Redis client, or ``None`` before startup."""
    return _redis_client


# ── Match-list cache ─────────────────────────────────────────────────────────

class MatchCache:
    """Read-through cache of serialised match-list responses."""

    KEY_PREFIX = "rentmatch:matches"

    def __init__(self, client: Any = None, ttl_seconds: int | None = None) -> None:
        self.client = client if client is not None else get_redis()
        if ttl_seconds is None:
            ttl_seconds = get_settings().MATCH_CACHE_TTL_SECONDS
        self.ttl_seconds = ttl_seconds

    @property
    def enabled(self) -> bool:
        return self.client is not None and self.ttl_seconds > 0

    def build_key(self, user_id: Any, preferences_version: str | None, **query: Any) -> str:
        """Deterministic key for one (user, preference version, query) triple."""
        query_blob = json.dumps(query, sort_keys=True, default=str)
        digest = hashlib.sha256(query_blob.encode("utf-8")).hexdigest()[:16]
        return f"{self.KEY_PREFIX}:{user_id}:{preferences_version or 'none'}:{digest}"

    async def get(self, key: str) -> dict | None:
        if not self.enabled:
            return None
        try:
            cached = await self.client.get(key)
        except Exception as exc:
            logger.warning("match_cache_read_failed", key=key, error=str(exc))
            return None
        if cached is None:
            return None
        try:
            return json.loads(cached)
        except (TypeError, ValueError):
            logger.warning("match_cache_corrupt_entry", key=key)
            return None

    async def set(self, key: str, payload: dict) -> None:
        if not self.enabled:
            return
        try:
            await self.client.set(key, json.dumps(payload, default=str), ex=self.ttl_seconds)
        except Exception as exc:
            logger.warning("match_cache_write_failed", key=key, error=str(exc))
