"""Shared Redis client for the token blocklist."""

import redis
from django.conf import settings

_client: redis.Redis | None = None


def get_redis_client() -> redis.Redis:
    """Return a process-wide Redis client built from ``settings.REDIS_URL``.

    The connection is lazy; nothing touches the network until the first
    blocklist command.
    """

    global _client
    if _client is None:
        _client = redis.Redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
        )
    return _client


def reset_redis_client() -> None:
    """Drop the cached client, e.g. after REDIS_URL changes in tests."""

    global _client
    _client = None


__all__ = ["get_redis_client", "reset_redis_client"]
