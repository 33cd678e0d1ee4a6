import pytest
import requests

from inventory_sync.exceptions import ConfigurationError, UpstreamAuthError
from inventory_sync.shiphero_auth import TokenManager

from tests.conftest import FakeHttp, FakeResponse


class Clock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def _token(access_token: str, expires_in: int = 3600) -> FakeResponse:
    return FakeResponse(200, {"access_token": access_token, "expires_in": expires_in})


@pytest.fixture
def clock():
    return Clock()


def _manager(credential_store, settings, http, clock) -> TokenManager:
    return TokenManager(credential_store, settings, http=http, clock=clock)


def test_missing_credentials_raise_configuration_error(credential_store, settings, clock):
    http = FakeHttp()
    manager = _manager(credential_store, settings, http, clock)

    with pytest.raises(ConfigurationError):
        manager.get_access_token()
    assert http.calls == []


def test_token_is_exchanged_then_cached(credential_store, settings, clock):
    credential_store.save("refresh-1", "WH1")
    http = FakeHttp(_token("access-1"))
    manager = _manager(credential_store, settings, http, clock)

    assert manager.get_access_token() == "access-1"
    assert manager.get_access_token() == "access-1"

    assert len(http.calls) == 1
    method, url, kwargs = http.calls[0]
    assert (method, url) == ("POST", settings.shiphero_refresh_url)
    assert kwargs["json"] == {"refresh_token": "refresh-1"}


def test_token_refreshed_inside_safety_buffer(credential_store, settings, clock):
    credential_store.save("refresh-1", "WH1")
    http = FakeHttp(_token("access-1", expires_in=3600), _token("access-2"))
    manager = _manager(credential_store, settings, http, clock)

    manager.get_access_token()
    clock.now += 3600 - 300 - 1
    assert manager.get_access_token() == "access-1"

    clock.now += 1
    assert manager.get_access_token() == "access-2"
    assert len(http.calls) == 2


def test_credential_change_invalidates_cached_token(credential_store, settings, clock):
    credential_store.save("T1", "WH1")
    http = FakeHttp(_token("access-for-T1"), _token("access-for-T2"))
    manager = _manager(credential_store, settings, http, clock)

    assert manager.get_access_token() == "access-for-T1"

    credential_store.save("T2", "WH1")
    assert manager.get_access_token() == "access-for-T2"
    assert http.calls[1][2]["json"] == {"refresh_token": "T2"}


def test_force_refresh_always_exchanges(credential_store, settings, clock):
    credential_store.save("refresh-1", "WH1")
    http = FakeHttp(_token("access-1"), _token("access-2"))
    manager = _manager(credential_store, settings, http, clock)

    manager.get_access_token()
    assert manager.force_refresh() == "access-2"
    assert manager.get_access_token() == "access-2"


def test_clear_cache_forces_next_exchange(credential_store, settings, clock):
    credential_store.save("refresh-1", "WH1")
    http = FakeHttp(_token("access-1"), _token("access-2"))
    manager = _manager(credential_store, settings, http, clock)

    manager.get_access_token()
    manager.clear_cache()
    assert manager.cache.get() is None
    assert manager.get_access_token() == "access-2"


def test_rejected_refresh_carries_status_and_body(credential_store, settings, clock):
    credential_store.save("bad", "WH1")
    http = FakeHttp(FakeResponse(403, {"error": "invalid"}, text='{"error": "invalid"}'))
    manager = _manager(credential_store, settings, http, clock)

    with pytest.raises(UpstreamAuthError) as exc_info:
        manager.get_access_token()
    assert exc_info.value.status_code == 403
    assert "invalid" in exc_info.value.body
    assert manager.cache.get() is None


def test_response_without_access_token_is_rejected(credential_store, settings, clock):
    credential_store.save("refresh-1", "WH1")
    http = FakeHttp(FakeResponse(200, {"expires_in": 3600}))
    manager = _manager(credential_store, settings, http, clock)

    with pytest.raises(UpstreamAuthError, match="No access_token"):
        manager.get_access_token()


def test_network_failure_becomes_upstream_auth_error(credential_store, settings, clock):
    credential_store.save("refresh-1", "WH1")
    http = FakeHttp(requests.ConnectionError("unreachable"))
    manager = _manager(credential_store, settings, http, clock)

    with pytest.raises(UpstreamAuthError):
        manager.get_access_token()


@pytest.mark.parametrize("expires_in", ["abc", [3600], float("nan")])
def test_malformed_expires_in_is_rejected(credential_store, settings, clock, expires_in):
    credential_store.save("refresh-1", "WH1")
    http = FakeHttp(FakeResponse(200, {"access_token": "t", "expires_in": expires_in}))
    manager = _manager(credential_store, settings, http, clock)

    with pytest.raises(UpstreamAuthError, match="Invalid expires_in") as exc_info:
        manager.get_access_token()
    assert exc_info.value.status_code == 200
    assert manager.cache.get() is None


def test_numeric_string_expires_in_is_accepted(credential_store, settings, clock):
    credential_store.save("refresh-1", "WH1")
    http = FakeHttp(FakeResponse(200, {"access_token": "t", "expires_in": "3600"}))
    manager = _manager(credential_store, settings, http, clock)

    assert manager.get_access_token() == "t"
    assert manager.cache.get().expires_at == clock.now + 3600
