from __future__ import annotations

import pytest
import requests
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from inventory_sync.config import Settings
from inventory_sync.credentials import CredentialStore
from inventory_sync.database import create_session_factory
from inventory_sync.inventory_store import InventoryCacheStore
from inventory_sync.models import Base, QueryInventoryRecord, SnapshotInventoryRecord


class FakeResponse:
    def __init__(self, status_code: int = 200, payload=None, text: str | None = None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else ("" if payload is None else str(payload))

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload

    def raise_for_status(self) -> None:
        if not self.ok:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)


class FakeHttp:
    """Stands in for requests.Session; replays queued responses in order."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls: list[tuple[str, str, dict]] = []

    def queue(self, *responses) -> None:
        self.responses.extend(responses)

    def _next(self, method: str, url: str, kwargs: dict):
        self.calls.append((method, url, kwargs))
        if not self.responses:
            raise AssertionError(f"Unexpected {method} {url}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def post(self, url, **kwargs):
        return self._next("POST", url, kwargs)

    def get(self, url, **kwargs):
        return self._next("GET", url, kwargs)


class FakeClient:
    """Stands in for ShipHeroClient; replays queued GraphQL bodies."""

    def __init__(self, *bodies, download=None):
        self.bodies = list(bodies)
        self.queries: list[str] = []
        self.downloaded: list[str] = []
        self.download_payload = download

    def execute(self, query: str) -> dict:
        self.queries.append(query)
        if not self.bodies:
            raise AssertionError("Unexpected GraphQL call")
        body = self.bodies.pop(0)
        if isinstance(body, Exception):
            raise body
        return body

    def download(self, url: str):
        self.downloaded.append(url)
        if isinstance(self.download_payload, Exception):
            raise self.download_payload
        return self.download_payload


def make_settings(**overrides) -> Settings:
    values = {
        "database_url": "sqlite://",
        "shiphero_api_url": "https://api.test/graphql",
        "shiphero_refresh_url": "https://api.test/auth/refresh",
        "cron_secret": "s3cret",
        "environment": "production",
        "query_page_delay_seconds": 0,
        "snapshot_poll_interval_seconds": 0,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def credential_store(session_factory) -> CredentialStore:
    return CredentialStore(session_factory)


@pytest.fixture
def query_store(session_factory) -> InventoryCacheStore:
    return InventoryCacheStore(session_factory, QueryInventoryRecord)


@pytest.fixture
def snapshot_store(session_factory) -> InventoryCacheStore:
    return InventoryCacheStore(session_factory, SnapshotInventoryRecord)
