"""Process-wide Redis client singleton."""

import redis
from driveverify.config import settings

_client: redis.Redis | None = None


def get_redis() -> redis.Redis:
    """Get or create the Redis client for job records."""
    global _client
    if _client is None:
        if not settings.redis_url:
            raise RuntimeError("DRIVEVERIFY_REDIS_URL must be set")
        _client = redis.Redis.from_url(settings.redis_url, decode_responses=True)
    return _client
