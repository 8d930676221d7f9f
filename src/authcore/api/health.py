"""Health check endpoints.

Learn: GET / answers with a plain liveness banner. GET /health also checks
that the database answers a trivial query. Failure details go to the log,
never to the response.
"""

import structlog
from fastapi import APIRouter, Request
from sqlalchemy import text

from authcore import __version__

logger = structlog.get_logger()

router = APIRouter()


@router.get("/")
async def root():
    return {"message": "Authentication API is running!"}


@router.get("/health")
async def health_check(request: Request):
    """Check server health and database connectivity."""
    checks = {"server": "ok", "version": __version__}

    engine = getattr(request.app.state, "engine", None)
    try:
        if engine is None:
            raise RuntimeError("engine not initialised")
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        logger.warning("health.database_unavailable", error=str(e))
        checks["database"] = "error"

    status = "healthy" if checks["database"] == "ok" else "degraded"
    return {"status": status, **checks}
