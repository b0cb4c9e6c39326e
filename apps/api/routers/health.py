"""Health check router: liveness and readiness.

Readiness pings the Supabase REST endpoint with a short timeout so a slow
or unreachable database reports ``degraded`` instead of hanging the probe.
"""

import httpx
import structlog
from fastapi import APIRouter

from apps.api.core.config import setting

router = APIRouter(tags=["health"])
logger = structlog.get_logger()

SUPABASE_TIMEOUT_SECONDS = 2


@router.get("/health")
async def health_liveness():
    """Liveness probe: 200 while the API process is running."""
    return {"status": "healthy", "service": "api"}


async def _ping_supabase() -> bool:
    url = setting("SUPABASE_URL", "")
    key = setting("SUPABASE_ANON_KEY", "")
    if not url:
        return False
    async with httpx.AsyncClient(timeout=SUPABASE_TIMEOUT_SECONDS) as client:
        response = await client.get(
            f"{url.rstrip('/')}/rest/v1/",
            headers={"apikey": key, "Authorization": f"Bearer {key}"},
        )
    return response.status_code < 500


@router.get("/health/ready")
async def health_readiness():
    """Readiness probe: checks that Supabase answers."""
    status = {
        "status": "healthy",
        "services": {
            "api": "up",
            "supabase": "unknown",
        },
    }

    try:
        if await _ping_supabase():
            status["services"]["supabase"] = "up"
        else:
            status["services"]["supabase"] = "down"
            status["status"] = "degraded"
    except httpx.TimeoutException:
        status["services"]["supabase"] = "timeout"
        status["status"] = "degraded"
        logger.warning("supabase_health_timeout", timeout_s=SUPABASE_TIMEOUT_SECONDS)
    except httpx.HTTPError as e:
        status["services"]["supabase"] = "down"
        status["status"] = "degraded"
        logger.warning("supabase_health_failed", error=str(e))

    return status
