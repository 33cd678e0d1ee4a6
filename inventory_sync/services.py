"""Process-wide service container.

Everything here is constructed once at startup and shared by reference
between requests: one engine, one token cache, one fetcher per method.
"""

from dataclasses import dataclass

import requests
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from .config import Settings
from .credentials import CredentialStore
from .database import create_session_factory
from .inventory_store import InventoryCacheStore
from .models import QueryInventoryRecord, SnapshotInventoryRecord
from .query_fetcher import QueryInventoryFetcher
from .shiphero_auth import TokenManager
from .shiphero_client import ShipHeroClient
from .snapshot_fetcher import SnapshotInventoryFetcher


@dataclass
class Services:
    settings: Settings
    session_factory: sessionmaker
    credential_store: CredentialStore
    token_manager: TokenManager
    client: ShipHeroClient
    query_store: InventoryCacheStore
    snapshot_store: InventoryCacheStore
    query_fetcher: QueryInventoryFetcher
    snapshot_fetcher: SnapshotInventoryFetcher

    def store_for(self, method: str) -> InventoryCacheStore:
        return self.query_store if method == "query" else self.snapshot_store

    def fetcher_for(self, method: str):
        return self.query_fetcher if method == "query" else self.snapshot_fetcher


def build_services(
    settings: Settings,
    engine: Engine,
    http: requests.Session | None = None,
) -> Services:
    session_factory = create_session_factory(engine)
    http = http or requests.Session()

    credential_store = CredentialStore(session_factory)
    token_manager = TokenManager(credential_store, settings, http=http)
    client = ShipHeroClient(token_manager, settings, http=http)

    query_store = InventoryCacheStore(
        session_factory, QueryInventoryRecord, batch_size=settings.insert_batch_size
    )
    snapshot_store = InventoryCacheStore(
        session_factory, SnapshotInventoryRecord, batch_size=settings.insert_batch_size
    )

    return Services(
        settings=settings,
        session_factory=session_factory,
        credential_store=credential_store,
        token_manager=token_manager,
        client=client,
        query_store=query_store,
        snapshot_store=snapshot_store,
        query_fetcher=QueryInventoryFetcher(credential_store, client, query_store, settings),
        snapshot_fetcher=SnapshotInventoryFetcher(
            credential_store, client, snapshot_store, settings
        ),
    )
