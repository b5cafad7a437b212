"""
Async Redis client shared by the outbox processor and health checks.

The client is created lazily on first use inside the running event loop
and closed from the application lifespan (or by CLI commands).
"""

from __future__ import annotations

import asyncio
import time

import redis.asyncio as redis

from pos_shared.config.logging import get_logger
from pos_shared.config.settings import REDIS_URL, settings

logger = get_logger(__name__)

HEALTH_CHECK_TIMEOUT_SECONDS = 3.0

_client: redis.Redis | None = None
_client_lock: asyncio.Lock | None = None


async def get_redis_pool() -> redis.Redis:
    """Return the process-wide Redis client, creating it on first call."""
    global _client, _client_lock

    if _client is not None:
        return _client

    if _client_lock is None:
        _client_lock = asyncio.Lock()

    async with _client_lock:
        if _client is None:
            _client = redis.from_url(
                REDIS_URL,
                max_connections=settings.redis_pool_max_connections,
                socket_connect_timeout=settings.redis_socket_timeout,
                socket_timeout=settings.redis_socket_timeout,
                decode_responses=True,
                health_check_interval=30,
            )
            logger.info(
                "Redis client created",
                max_connections=settings.redis_pool_max_connections,
                socket_timeout=settings.redis_socket_timeout,
            )
    return _client


async def close_redis_pool() -> None:
    """Close the shared client; the next get_redis_pool() call reconnects."""
    global _client, _client_lock

    client, _client, _client_lock = _client, None, None
    if client is not None:
        await client.aclose()
        logger.info("Redis client closed")


async def check_redis_health() -> dict:
    """
    PING Redis with a short timeout.

    Returns {"status": "healthy", "latency_ms": ...} or
    {"status": "unhealthy", "error": ...}; never raises.
    """
    started = time.perf_counter()
    try:
        client = await get_redis_pool()
        await asyncio.wait_for(client.ping(), timeout=HEALTH_CHECK_TIMEOUT_SECONDS)
    except Exception as e:
        logger.warning("Redis health check failed", error=str(e))
        return {"status": "unhealthy", "error": str(e)}
    return {"status": "healthy", "latency_ms": round((time.perf_counter() - started) * 1000, 1)}
