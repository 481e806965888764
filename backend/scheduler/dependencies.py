from fastapi import Depends
from sqlalchemy.orm import Session

from .config import settings
from .database import get_db
from .redis_client import redis_client
from .services.broadcaster import RedisBroadcaster
from .services.scheduling import SchedulingService
from .services.view_cache import AppointmentViewCache


def get_view_cache() -> AppointmentViewCache:
    return AppointmentViewCache(redis_client, settings.view_cache_ttl_seconds)


def get_broadcaster(view_cache: AppointmentViewCache = Depends(get_view_cache)) -> RedisBroadcaster:
    return RedisBroadcaster(redis_client, view_cache)


def get_scheduling_service(
    db: Session = Depends(get_db),
    broadcaster: RedisBroadcaster = Depends(get_broadcaster),
) -> SchedulingService:
    return SchedulingService(db, broadcaster)
