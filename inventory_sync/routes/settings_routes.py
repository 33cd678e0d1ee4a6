"""Credential settings API: view, save and clear the ShipHero credentials."""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from ..credentials import token_hint
from ..exceptions import CredentialValidationError
from ..services import Services
from .deps import get_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/settings", tags=["settings"])


@router.get("")
def get_settings_status(services: Services = Depends(get_services)):
    try:
        credentials = services.credential_store.get()
    except Exception as e:
        logger.error(f"GET /api/settings error: {e}")
        return JSONResponse(
            {"error": "Failed to fetch settings", "details": str(e)},
            status_code=500,
        )

    if credentials is None:
        return {"configured": False, "message": "No settings configured"}

    return {
        "configured": True,
        "warehouse_id": credentials.warehouse_id,
        "token_hint": token_hint(credentials.refresh_token),
        "updated_at": credentials.updated_at.isoformat() if credentials.updated_at else None,
    }


@router.post("")
def save_settings(
    payload: Any = Body(default=None),
    services: Services = Depends(get_services),
):
    """Replace the stored credentials.

    The token cache is cleared so the next run exchanges the new refresh token.
    """
    if not isinstance(payload, dict):
        payload = {}

    try:
        services.credential_store.save(
            payload.get("refresh_token"), payload.get("warehouse_id")
        )
    except CredentialValidationError as e:
        return JSONResponse({"error": str(e)}, status_code=400)
    except Exception as e:
        logger.error(f"POST /api/settings error: {e}")
        return JSONResponse(
            {"error": "Failed to save settings", "details": str(e)},
            status_code=500,
        )

    services.token_manager.clear_cache()
    return {"success": True, "message": "Settings saved successfully"}


@router.delete("")
def clear_settings(services: Services = Depends(get_services)):
    try:
        services.credential_store.clear()
    except Exception as e:
        logger.error(f"DELETE /api/settings error: {e}")
        return JSONResponse(
            {"error": "Failed to clear settings", "details": str(e)},
            status_code=500,
        )

    services.token_manager.clear_cache()
    return {"success": True, "message": "Settings cleared successfully"}
