"""Health check endpoints.

- /health: Basic health check with database connectivity
- /health/live: Liveness probe (is the app running?)
- /health/ready: Readiness probe (database and the Celery broker reachable?)
"""

from datetime import datetime
from typing import Any, Dict

import redis
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

from groupware import __version__
from groupware.api.deps import get_db
from groupware.core.config import get_settings

router = APIRouter(tags=["health"])
settings = get_settings()


def check_database(db: Session) -> Dict[str, Any]:
    """Check database connectivity."""
    try:
        db.execute(text("SELECT 1")).fetchone()
        return {"status": "healthy"}
    except Exception as e:
        return {"status": "unhealthy", "error": str(e)}


def check_broker() -> Dict[str, Any]:
    """Check the Redis instance backing webhook delivery."""
    if not settings.celery_broker.startswith("redis"):
        return {"status": "skipped", "broker": settings.celery_broker.split(":", 1)[0]}

    try:
        r = redis.from_url(settings.celery_broker, socket_connect_timeout=2, socket_timeout=2)
        r.ping()
        r.close()
        return {"status": "healthy"}
    except Exception as e:
        return {"status": "unhealthy", "error": str(e)}


def _report(checks: Dict[str, Dict[str, Any]]) -> JSONResponse:
    healthy = all(check["status"] in ("healthy", "skipped") for check in checks.values())
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "healthy" if healthy else "unhealthy",
            "version": __version__,
            "timestamp": datetime.utcnow().isoformat(),
            "checks": checks,
        },
    )


@router.get("/health")
async def health_check(db: Session = Depends(get_db)):
    return _report({"database": check_database(db)})


@router.get("/health/live")
async def liveness_probe():
    """The process is up and serving requests."""
    return {"status": "alive", "timestamp": datetime.utcnow().isoformat()}


@router.get("/health/ready")
async def readiness_probe(db: Session = Depends(get_db)):
    """Notifications need the broker only when a webhook is configured."""
    checks = {"database": check_database(db)}
    if settings.notification_webhook_url:
        checks["broker"] = check_broker()
    return _report(checks)
