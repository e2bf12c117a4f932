"""
MindVault Backend — Health Check Route
========================================

What:  Health check endpoint for monitoring and load balancer checks.
How:   Checks the database and reports which key mode the field cipher runs in.

Status levels:
    - healthy:   database reachable and ENCRYPTION_KEY configured
    - degraded:  database reachable but the cipher runs on an ephemeral key
                 (anything written now is lost on restart)
    - unhealthy: database unreachable
"""

import logging
import time

from fastapi import APIRouter, Depends

from mindvault import __version__
from mindvault.dependencies import get_field_cipher
from mindvault.schemas.common import HealthResponse
from mindvault.services.field_cipher import FieldCipher

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check(cipher: FieldCipher = Depends(get_field_cipher)) -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    # ── Check Database ────────────────────────────────────────────────────
    try:
        from mindvault.database import engine
        from sqlalchemy import text
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    # ── Check Field Cipher ────────────────────────────────────────────────
    encryption = "ephemeral" if cipher.ephemeral else "configured"
    if cipher.ephemeral and overall != "unhealthy":
        overall = "degraded"

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        encryption=encryption,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
