"""Credential store for the ShipHero refresh token and warehouse id.

At most one credential row exists: saving always clears the table first.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from .database import session_scope
from .exceptions import CredentialValidationError, PersistenceError
from .models import AppSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credentials:
    refresh_token: str
    warehouse_id: str
    updated_at: datetime | None = None


def token_hint(refresh_token: str | None) -> str | None:
    """Mask a refresh token down to its last four characters."""
    if not refresh_token:
        return None
    return f"***{refresh_token[-4:]}"


def validate_credentials(refresh_token, warehouse_id) -> tuple[str, str]:
    """Trim and check both credential fields.

    Raises:
        CredentialValidationError: If either field is missing, not a string, or blank.
    """
    if not isinstance(refresh_token, str) or not refresh_token.strip():
        raise CredentialValidationError("refresh_token")
    if not isinstance(warehouse_id, str) or not warehouse_id.strip():
        raise CredentialValidationError("warehouse_id")
    return refresh_token.strip(), warehouse_id.strip()


class CredentialStore:
    """Read/write access to the single active credential set."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def get(self) -> Credentials | None:
        """Return the active credentials, or None when not configured."""
        try:
            with session_scope(self._session_factory) as db:
                row = db.scalars(
                    select(AppSettings).order_by(AppSettings.id.desc()).limit(1)
                ).first()
                if row is None:
                    logger.info("No settings found in database")
                    return None
                refresh_token = (row.shiphero_refresh_token or "").strip()
                warehouse_id = (row.shiphero_warehouse_id or "").strip()
                updated_at = row.updated_at
        except SQLAlchemyError as e:
            logger.error(f"Error fetching settings: {e}")
            raise PersistenceError(f"Failed to fetch settings: {e}") from e

        if not refresh_token or not warehouse_id:
            return None
        return Credentials(refresh_token, warehouse_id, updated_at)

    def save(self, refresh_token, warehouse_id) -> Credentials:
        """Replace any stored credentials with the given pair.

        Validation happens before the database is touched.
        """
        refresh_token, warehouse_id = validate_credentials(refresh_token, warehouse_id)

        logger.info("Saving app settings...")
        try:
            with session_scope(self._session_factory) as db:
                db.execute(delete(AppSettings))
                row = AppSettings(
                    shiphero_refresh_token=refresh_token,
                    shiphero_warehouse_id=warehouse_id,
                )
                db.add(row)
                db.flush()
                updated_at = row.updated_at
        except SQLAlchemyError as e:
            logger.error(f"Error saving settings: {e}")
            raise PersistenceError(f"Failed to save settings: {e}") from e

        logger.info("Settings saved successfully")
        return Credentials(refresh_token, warehouse_id, updated_at)

    def clear(self) -> None:
        """Delete all stored credentials."""
        logger.info("Clearing app settings...")
        try:
            with session_scope(self._session_factory) as db:
                db.execute(delete(AppSettings))
        except SQLAlchemyError as e:
            logger.error(f"Error clearing settings: {e}")
            raise PersistenceError(f"Failed to clear settings: {e}") from e
        logger.info("Settings cleared successfully")
