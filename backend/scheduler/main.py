import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .config import settings
from .database import SessionLocal
from .errors import SchedulingError
from .redis_client import redis_client
from .routers import appointments, employees, services, slots
from .services.broadcaster import RedisBroadcaster
from .services.late_checker import late_checker_loop
from .services.view_cache import AppointmentViewCache

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    task = None
    if settings.late_checker_enabled:
        broadcaster = RedisBroadcaster(
            redis_client,
            AppointmentViewCache(redis_client, settings.view_cache_ttl_seconds),
        )
        task = asyncio.create_task(
            late_checker_loop(SessionLocal, broadcaster, settings.late_check_interval_seconds)
        )
    try:
        yield
    finally:
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass


app = FastAPI(title="Appointment Scheduler API", lifespan=lifespan)


@app.exception_handler(SchedulingError)
async def scheduling_error_handler(request: Request, exc: SchedulingError):
    logger.info(f"{request.method} {request.url.path} rejected: {exc.kind}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.kind},
    )


app.include_router(appointments.router)
app.include_router(slots.router)
app.include_router(services.router)
app.include_router(employees.router)


@app.get("/health")
def health():
    return {
        "status": "ok",
        "redis": redis_client.ping() if redis_client is not None else None,
    }
