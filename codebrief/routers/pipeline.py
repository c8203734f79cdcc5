"""Pipeline route handlers for manual digest runs."""

import logging

from fastapi import APIRouter, Header, HTTPException, status

from codebrief.config import get_settings
from codebrief.services.pipeline import DigestRunResult, run_daily_digest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/pipeline", tags=["pipeline"])


@router.post("/run", response_model=DigestRunResult)
async def trigger_digest(
    x_pipeline_token: str | None = Header(default=None, alias="X-Pipeline-Token"),
) -> DigestRunResult:
    """Manually trigger the daily digest (collect, rank, deliver)."""
    logger.info("Manual digest trigger requested")
    settings = get_settings()
    expected_token = settings.pipeline_trigger_token
    if expected_token and x_pipeline_token != expected_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid pipeline trigger token",
        )

    try:
        result = await run_daily_digest(settings)
    except Exception as exc:
        logger.exception("Digest run failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Digest run failed: {type(exc).__name__}",
        ) from exc
    return result
