"""Inventory ingestion through ShipHero's asynchronous inventory snapshots.

A snapshot is requested for the warehouse, polled until the job reports
success with a download URL, then downloaded as a JSON array of
{sku, inventory_bin, quantity, ...} items and written to the snapshot cache.
"""

import enum
import logging
import re
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

from .config import Settings
from .credentials import CredentialStore
from .exceptions import FormatError, GenerationError, SnapshotError, SnapshotTimeoutError
from .fetchers import InventoryFetcher
from .inventory_store import InventoryCacheStore, InventoryRow
from .shiphero_client import ShipHeroClient

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class SnapshotState(str, enum.Enum):
    """Lifecycle of one snapshot job."""

    IDLE = "idle"
    REQUESTED = "requested"
    POLLING = "polling"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class SnapshotStatus:
    status: str
    url: str | None = None
    error: str | None = None


def coerce_quantity(value: Any) -> int:
    """Lenient integer coercion; unparseable values become 0."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value == value and abs(value) != float("inf") else 0
    if value is None:
        return 0
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else 0


def transform_snapshot_data(items: list) -> list[InventoryRow]:
    """Drop items without a bin or sku and normalize quantities."""
    rows = []
    for item in items:
        if not isinstance(item, dict):
            continue
        sku = item.get("sku")
        inventory_bin = item.get("inventory_bin")
        if not sku or not inventory_bin:
            continue
        rows.append(
            InventoryRow(
                sku=str(sku),
                bin=str(inventory_bin),
                quantity=coerce_quantity(item.get("quantity")),
            )
        )
    return rows


class SnapshotInventoryFetcher(InventoryFetcher):
    """Snapshot pipeline.

    One instance is shared by every request; `state` is tracked per thread so
    concurrent runs each report their own job.
    """

    name = "snapshot"

    def __init__(
        self,
        credential_store: CredentialStore,
        client: ShipHeroClient,
        store: InventoryCacheStore,
        settings: Settings,
        sleep: Callable[[float], None] = time.sleep,
    ):
        super().__init__(credential_store, store)
        self.client = client
        self.settings = settings
        self.sleep = sleep
        self._local = threading.local()

    @property
    def state(self) -> SnapshotState:
        return getattr(self._local, "state", SnapshotState.IDLE)

    @state.setter
    def state(self, value: SnapshotState) -> None:
        self._local.state = value

    def generate_snapshot(self, warehouse_id: str) -> str:
        logger.info(f"Generating inventory snapshot for warehouse: {warehouse_id}")
        self.state = SnapshotState.REQUESTED

        mutation = f"""
        mutation {{
          inventory_generate_snapshot(
            data: {{ warehouse_id: "{warehouse_id}" }}
          ) {{
            request_id
            complexity
            snapshot {{
              snapshot_id
              status
            }}
          }}
        }}
        """
        body = self.client.execute(mutation)

        snapshot = ((body.get("data") or {}).get("inventory_generate_snapshot") or {}).get(
            "snapshot"
        ) or {}
        snapshot_id = snapshot.get("snapshot_id")
        if not snapshot_id:
            logger.error(f"Snapshot generation response: {body}")
            self.state = SnapshotState.FAILED
            raise GenerationError("Failed to generate snapshot: No snapshot_id returned")

        logger.info(f"Snapshot generation initiated. ID: {snapshot_id}")
        return snapshot_id

    def check_snapshot_status(self, snapshot_id: str) -> SnapshotStatus:
        query = f"""
        query {{
          inventory_snapshot(snapshot_id: "{snapshot_id}") {{
            request_id
            complexity
            snapshot {{
              snapshot_id
              status
              snapshot_url
              error
            }}
          }}
        }}
        """
        body = self.client.execute(query)

        snapshot = ((body.get("data") or {}).get("inventory_snapshot") or {}).get(
            "snapshot"
        ) or {}
        return SnapshotStatus(
            status=snapshot.get("status") or "unknown",
            url=snapshot.get("snapshot_url") or None,
            error=snapshot.get("error") or None,
        )

    def wait_for_snapshot(self, snapshot_id: str) -> str:
        """Poll until the snapshot is ready and return its download URL.

        Raises:
            SnapshotError: As soon as a status reports an error.
            SnapshotTimeoutError: If every attempt comes back unfinished.
        """
        max_attempts = self.settings.snapshot_max_poll_attempts
        logger.info(f"Waiting for snapshot {snapshot_id} to complete...")
        self.state = SnapshotState.POLLING

        for attempt in range(1, max_attempts + 1):
            status = self.check_snapshot_status(snapshot_id)
            logger.info(f"Snapshot status check {attempt}/{max_attempts}: {status.status}")

            if status.status == "error" or status.error:
                self.state = SnapshotState.FAILED
                raise SnapshotError(f"Snapshot failed: {status.error or 'Unknown error'}")

            if status.status == "success" and status.url:
                self.state = SnapshotState.READY
                logger.info(f"Snapshot ready! URL: {status.url[:50]}...")
                return status.url

            if attempt < max_attempts:
                self.sleep(self.settings.snapshot_poll_interval_seconds)

        self.state = SnapshotState.FAILED
        raise SnapshotTimeoutError(f"Snapshot timed out after {max_attempts} attempts")

    def download_snapshot_data(self, url: str) -> list:
        logger.info("Downloading snapshot data...")
        data = self.client.download(url)

        if not isinstance(data, list):
            raise FormatError("Invalid snapshot data format: expected array")

        logger.info(f"Downloaded {len(data)} inventory records")
        return data

    def collect(self, warehouse_id: str) -> list[InventoryRow]:
        self.state = SnapshotState.IDLE
        snapshot_id = self.generate_snapshot(warehouse_id)
        url = self.wait_for_snapshot(snapshot_id)
        return transform_snapshot_data(self.download_snapshot_data(url))
