"""
Dreamers Incubation API

FastAPI entry point. Wires together:
- the JSON API under /api/v1 (applications, incubation centres, admin)
- the reviewer approval endpoint at /handle-approval
- Postgres and Redis connections for the process lifetime
- liveness and readiness probes
"""

import logging
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Response, status
from fastapi.middleware.cors import CORSMiddleware

from app.api import api_router
from app.core import redis as redis_module
from app.core.config import settings
from app.core.database import close_db, init_db
from app.core.email import notification_dispatcher
from app.core.redis import close_redis, init_redis
from app.modules.applications import approval_router

logging.basicConfig(
    level=logging.DEBUG if settings.is_development else logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

logger = logging.getLogger(__name__)


async def _connect(label: str, connect: Callable[[], Awaitable[object]]) -> None:
    """Run a startup connection; outside production a failure is reported and tolerated."""
    try:
        await connect()
    except Exception as e:
        print(f"[FAIL] {label}: {e}")
        if settings.is_production:
            raise
        return
    print(f"[OK] {label} connected")


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Open connections on startup; flush queued emails before closing them on shutdown."""
    print(f"Dreamers Incubation API starting ({settings.python_env})")

    # Without Redis the rate limiter uses its in-process store
    await _connect("Redis", init_redis)
    await _connect("Database", init_db)

    yield

    pending = notification_dispatcher.pending_count
    await notification_dispatcher.drain()
    print(f"[OK] Flushed {pending} pending notification(s)")

    await close_redis()
    await close_db()
    print("Dreamers Incubation API stopped")


app = FastAPI(
    title="Dreamers Incubation API",
    description="Application intake and approval workflow for Dreamers Incubation",
    version="0.1.0",
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

app.include_router(api_router, prefix="/api/v1")

# Reviewer links are <PUBLIC_BASE_URL>/handle-approval?token=...
app.include_router(approval_router)


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    return {
        "service": "Dreamers Incubation API",
        "environment": settings.python_env,
    }


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Liveness probe: the process is serving requests."""
    return {"status": "healthy"}


@app.get("/ready", tags=["Health"])
async def readiness_check(response: Response) -> dict[str, str]:
    """Readiness probe: the database answers. Redis is reported but optional."""
    checks = {"status": "ready"}

    try:
        await init_db()
        checks["database"] = "ok"
    except Exception as e:
        logger.warning(f"Readiness check: database unavailable: {e}")
        checks["database"] = "unavailable"
        checks["status"] = "not_ready"
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    checks["redis"] = "ok" if redis_module.redis_client is not None else "memory_fallback"
    return checks
