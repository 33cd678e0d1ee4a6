"""Shared run loop for the inventory ingestion pipelines."""

import logging
import time
from dataclasses import dataclass

from .credentials import CredentialStore
from .exceptions import ConfigurationError
from .inventory_store import InventoryCacheStore, InventoryRow

logger = logging.getLogger(__name__)


@dataclass
class FetchResult:
    success: bool
    record_count: int = 0
    error: str | None = None
    duration_seconds: float = 0.0


class InventoryFetcher:
    """Base class: resolve the warehouse, collect rows, replace the cache.

    Subclasses implement collect(). run() never raises.
    """

    name = "inventory"

    def __init__(self, credential_store: CredentialStore, store: InventoryCacheStore):
        self.credential_store = credential_store
        self.store = store

    def collect(self, warehouse_id: str) -> list[InventoryRow]:
        raise NotImplementedError

    def run(self) -> FetchResult:
        start_time = time.monotonic()
        logger.info(f"Starting {self.name} inventory fetch...")

        try:
            credentials = self.credential_store.get()
            if credentials is None or not credentials.warehouse_id:
                raise ConfigurationError(
                    "ShipHero credentials not configured. "
                    "Please enter your warehouse ID in Settings."
                )

            rows = self.collect(credentials.warehouse_id)

            if not rows:
                logger.info("No inventory data to insert")
                return FetchResult(
                    success=True,
                    record_count=0,
                    duration_seconds=time.monotonic() - start_time,
                )

            inserted = self.store.replace_all(rows)

            duration = time.monotonic() - start_time
            logger.info(
                f"{self.name.capitalize()} inventory fetch completed. "
                f"Records: {inserted}, Duration: {duration:.2f}s"
            )
            return FetchResult(success=True, record_count=inserted, duration_seconds=duration)

        except Exception as e:
            message = str(e) or type(e).__name__
            logger.error(f"{self.name.capitalize()} inventory fetch failed: {message}")
            return FetchResult(
                success=False,
                error=message,
                duration_seconds=time.monotonic() - start_time,
            )
