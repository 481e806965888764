"""
Cross-view consistency after appointment mutations.

SchedulingService calls notify_appointment_changed() exactly once per
successful mutation, after the transaction commits. What listens is not the
core's business; the Redis implementation:

- drops every cached dashboard listing (view_cache.py)
- pushes {"type": "appointment_changed", ...} to events:p2p for consumers
"""

import json
import logging
import time
from typing import Optional, Protocol

from redis import Redis
from redis.exceptions import RedisError

from .view_cache import AppointmentViewCache

logger = logging.getLogger(__name__)

EVENTS_QUEUE = "events:p2p"


class ConsistencyBroadcaster(Protocol):
    def notify_appointment_changed(self, appointment_id: int) -> None:
        ...


class RedisBroadcaster:
    """Invalidate cached views and emit a change event through Redis."""

    def __init__(self, redis: Optional[Redis], view_cache: Optional[AppointmentViewCache] = None):
        self.redis = redis
        self.view_cache = view_cache or AppointmentViewCache(redis)

    def notify_appointment_changed(self, appointment_id: int) -> None:
        if self.redis is None:
            logger.debug(f"No Redis configured, appointment {appointment_id} change not broadcast")
            return

        event = {
            "type": "appointment_changed",
            "appointment_id": appointment_id,
            "ts": int(time.time()),
        }
        try:
            deleted = self.view_cache.invalidate_all()
            self.redis.rpush(EVENTS_QUEUE, json.dumps(event))
            logger.info(
                f"appointment_changed emitted for appointment={appointment_id} "
                f"({deleted} cached views dropped)"
            )
        except RedisError as e:
            # the mutation is already committed; views fall back to TTL expiry
            logger.error(f"Failed to broadcast change of appointment {appointment_id}: {e}")
