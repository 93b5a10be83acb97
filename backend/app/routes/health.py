"""
Mindtrail Backend - Root and Health Check Routes
=================================================

What:  GET / (plaintext greeting) and GET /health (dependency status).
How:   /health runs lightweight probes: SELECT 1 against the database and
       a model listing against the summarization API.

Status levels:
    - healthy:   database and summarizer reachable
    - degraded:  summarizer unavailable or unconfigured (saveAudio still
                 stores records, marked 'degraded')
    - unhealthy: database unreachable
"""

import logging
import time

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse
from sqlalchemy import text

from app import __version__
from app.database import engine
from app.schemas.common import HealthResponse
from app.services.openai_service import openai_client

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Process start, for uptime reporting
_start_time = time.time()


@router.get("/", response_class=PlainTextResponse, summary="Liveness greeting")
async def root() -> str:
    return "Mindtrail API is running"


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description=(
        "Returns the health status of the backend service and its dependencies. "
        "Used by Docker health checks and load balancers."
    ),
)
async def health_check() -> HealthResponse:
    db_status = "connected"
    summarizer_status = "available"
    overall = "healthy"

    # ── Check Database ────────────────────────────────────────────────────
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    # ── Check Summarization API ───────────────────────────────────────────
    if not openai_client.configured:
        summarizer_status = "unconfigured"
    elif not await openai_client.health_check():
        summarizer_status = "unavailable"
    if summarizer_status != "available" and overall != "unhealthy":
        overall = "degraded"

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        summarizer=summarizer_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
