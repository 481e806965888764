"""
Read-through cache for dashboard appointment listings.

Key format: cache:views:appointments:{scope}:{scope_id}:g{generation}
Value: JSON array of serialised appointments, expires after ttl.

The generation counter lives under its own key and is bumped by every
appointment mutation (see broadcaster.py). Readers fetch the generation
before querying the database, so a listing built from state that a
concurrent mutation has since replaced is filed under a generation
nobody asks for any more.
"""

import json
import logging
from typing import Optional

from redis import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class AppointmentViewCache:

    KEY_PREFIX = "cache:views:appointments"
    GENERATION_KEY = "cache:views:appointments_generation"

    def __init__(self, redis: Optional[Redis], ttl_seconds: int = 300):
        self.redis = redis
        self.ttl_seconds = ttl_seconds

    def _key(self, scope: str, scope_id, generation: int) -> str:
        return f"{self.KEY_PREFIX}:{scope}:{scope_id}:g{generation}"

    def generation(self) -> Optional[int]:
        """Current generation, or None when caching is off or Redis is down."""
        if self.redis is None:
            return None
        try:
            raw = self.redis.get(self.GENERATION_KEY)
        except RedisError:
            logger.exception("View cache generation read failed")
            return None
        return int(raw) if raw is not None else 0

    def get(self, scope: str, scope_id, generation: Optional[int]) -> Optional[list[dict]]:
        """Cached listing, or None on miss (or when Redis is unavailable)."""
        if self.redis is None or generation is None:
            return None
        try:
            raw = self.redis.get(self._key(scope, scope_id, generation))
        except RedisError:
            logger.exception("View cache read failed for %s:%s", scope, scope_id)
            return None
        if raw is None:
            return None
        return json.loads(raw)

    def set(self, scope: str, scope_id, generation: Optional[int], items: list[dict]) -> None:
        if self.redis is None or generation is None:
            return
        try:
            self.redis.set(
                self._key(scope, scope_id, generation), json.dumps(items), ex=self.ttl_seconds
            )
        except RedisError:
            logger.exception("View cache write failed for %s:%s", scope, scope_id)

    def invalidate_all(self) -> int:
        """
        Start a new generation and delete every cached listing.

        Returns number of deleted keys.
        """
        if self.redis is None:
            return 0
        self.redis.incr(self.GENERATION_KEY)
        keys = list(self.redis.scan_iter(match=f"{self.KEY_PREFIX}:*"))
        if not keys:
            return 0
        return self.redis.delete(*keys)
