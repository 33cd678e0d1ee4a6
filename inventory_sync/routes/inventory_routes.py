"""Read API: inventory rows by bin-location prefix."""

import logging
import time
from typing import Literal

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..services import Services
from .deps import get_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/inventory", tags=["inventory"])


def normalize_prefix(prefix: str | None) -> str | None:
    """Trim and upper-case a prefix; None when blank."""
    if prefix is None or not prefix.strip():
        return None
    return prefix.strip().upper()


@router.get("/{method}")
def inventory_by_prefix(
    method: Literal["query", "snapshot"],
    prefix: str | None = None,
    services: Services = Depends(get_services),
):
    start_time = time.monotonic()

    normalized = normalize_prefix(prefix)
    if normalized is None:
        return JSONResponse(
            {"error": "Missing required query parameter: prefix"},
            status_code=400,
        )

    logger.info(f"API /inventory/{method} - Querying with prefix: {normalized}")

    try:
        rows = services.store_for(method).find_by_prefix(normalized)
    except Exception as e:
        logger.error(f"API /inventory/{method} - Error: {e}")
        return JSONResponse(
            {"error": "Internal server error", "details": str(e)},
            status_code=500,
        )

    payload = [
        {"location": row.bin, "sku": row.sku, "quantity": row.quantity}
        for row in rows
    ]
    duration_ms = int((time.monotonic() - start_time) * 1000)
    logger.info(f"API /inventory/{method} - Found {len(payload)} records in {duration_ms}ms")

    return JSONResponse(
        payload,
        status_code=200,
        headers={
            "Cache-Control": "no-store, max-age=0",
            "X-Response-Time": f"{duration_ms}ms",
        },
    )
