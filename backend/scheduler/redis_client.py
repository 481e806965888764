from typing import Optional

from redis import Redis

from .config import settings


def create_redis_client(url: Optional[str]) -> Optional[Redis]:
    """Client for the configured Redis, or None when caching is disabled."""
    if not url:
        return None
    return Redis.from_url(url, decode_responses=True)


redis_client = create_redis_client(settings.redis_url)
