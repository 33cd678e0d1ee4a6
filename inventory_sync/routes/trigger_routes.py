"""Scheduler (cron) and manual entry points for the ingestion pipelines."""

import hmac
import logging
import time
from datetime import datetime, timezone
from typing import Literal

from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse

from ..config import Settings
from ..services import Services
from .deps import get_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["triggers"])

Method = Literal["query", "snapshot"]


def verify_trigger_auth(settings: Settings, authorization: str | None, label: str) -> bool:
    """Check the bearer secret sent by the scheduler or operator."""
    if settings.is_development:
        logger.info(f"{label} - Dev mode, skipping auth check")
        return True

    if not settings.cron_secret:
        logger.error(f"{label} - CRON_SECRET not configured")
        return False

    expected = f"Bearer {settings.cron_secret}"
    if not authorization or not hmac.compare_digest(authorization.encode(), expected.encode()):
        logger.error(f"{label} - Invalid authorization header")
        return False

    return True


def _iso_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def run_pipeline(services: Services, method: str, label: str) -> JSONResponse:
    """Run one pipeline and wrap its result in the trigger response envelope."""
    start_time = time.monotonic()
    logger.info(f"{label} - Job started")

    try:
        result = services.fetcher_for(method).run()
        duration = f"{time.monotonic() - start_time:.2f}s"

        if result.success:
            logger.info(
                f"{label} - Job completed successfully. "
                f"Records: {result.record_count}, Duration: {duration}"
            )
            return JSONResponse(
                {
                    "success": True,
                    "message": f"{method.capitalize()} inventory fetch completed",
                    "recordCount": result.record_count,
                    "duration": duration,
                    "timestamp": _iso_now(),
                },
                status_code=200,
            )

        logger.error(f"{label} - Job failed. Error: {result.error}")
        error = result.error

    except Exception as e:
        logger.exception(f"{label} - Unexpected error: {e}")
        error = str(e) or "Unknown error"
        duration = f"{time.monotonic() - start_time:.2f}s"

    return JSONResponse(
        {
            "success": False,
            "error": error,
            "duration": duration,
            "timestamp": _iso_now(),
        },
        status_code=500,
    )


def _unauthorized() -> JSONResponse:
    return JSONResponse({"error": "Unauthorized"}, status_code=401)


@router.get("/cron/{method}")
def cron_trigger(
    method: Method,
    authorization: str | None = Header(default=None),
    services: Services = Depends(get_services),
):
    """Periodic invocation from the scheduler."""
    label = f"CRON /{method}"
    if not verify_trigger_auth(services.settings, authorization, label):
        return _unauthorized()
    return run_pipeline(services, method, label)


@router.post("/trigger/{method}")
def manual_trigger(
    method: Method,
    authorization: str | None = Header(default=None),
    services: Services = Depends(get_services),
):
    """Operator-initiated invocation."""
    label = f"Manual trigger /{method}"
    if not verify_trigger_auth(services.settings, authorization, label):
        return _unauthorized()
    return run_pipeline(services, method, label)
