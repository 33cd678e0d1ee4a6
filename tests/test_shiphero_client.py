import pytest

from inventory_sync.exceptions import FormatError, UpstreamError
from inventory_sync.shiphero_auth import TokenManager
from inventory_sync.shiphero_client import ShipHeroClient

from tests.conftest import FakeHttp, FakeResponse


@pytest.fixture
def configured(credential_store):
    credential_store.save("refresh-1", "WH1")
    return credential_store


def _client(credential_store, settings, http) -> ShipHeroClient:
    manager = TokenManager(credential_store, settings, http=http)
    return ShipHeroClient(manager, settings, http=http)


def _token(value: str) -> FakeResponse:
    return FakeResponse(200, {"access_token": value, "expires_in": 86400})


def test_execute_sends_bearer_token(configured, settings):
    http = FakeHttp(_token("access-1"), FakeResponse(200, {"data": {"ok": True}}))
    client = _client(configured, settings, http)

    body = client.execute("query { ok }")

    assert body == {"data": {"ok": True}}
    method, url, kwargs = http.calls[1]
    assert (method, url) == ("POST", settings.shiphero_api_url)
    assert kwargs["json"] == {"query": "query { ok }"}
    assert kwargs["headers"]["Authorization"] == "Bearer access-1"


def test_unauthorized_response_refreshes_token_once(configured, settings):
    http = FakeHttp(
        _token("stale"),
        FakeResponse(401, text="expired"),
        _token("fresh"),
        FakeResponse(200, {"data": {}}),
    )
    client = _client(configured, settings, http)

    assert client.execute("query { x }") == {"data": {}}
    assert http.calls[3][2]["headers"]["Authorization"] == "Bearer fresh"


def test_second_unauthorized_response_is_not_retried(configured, settings):
    http = FakeHttp(
        _token("stale"),
        FakeResponse(401, text="expired"),
        _token("fresh"),
        FakeResponse(401, text="still expired"),
    )
    client = _client(configured, settings, http)

    with pytest.raises(UpstreamError, match="401"):
        client.execute("query { x }")
    assert http.responses == []


def test_graphql_errors_are_joined(configured, settings):
    http = FakeHttp(
        _token("access-1"),
        FakeResponse(200, {"errors": [{"message": "bad cursor"}, {"message": "throttled"}]}),
    )
    client = _client(configured, settings, http)

    with pytest.raises(UpstreamError, match="GraphQL errors: bad cursor, throttled"):
        client.execute("query { x }")


def test_server_error_raises_upstream_error(configured, settings):
    http = FakeHttp(_token("access-1"), FakeResponse(502, text="bad gateway"))
    client = _client(configured, settings, http)

    with pytest.raises(UpstreamError):
        client.execute("query { x }")


def test_download_uses_plain_get(configured, settings):
    http = FakeHttp(FakeResponse(200, [{"sku": "A"}]))
    client = _client(configured, settings, http)

    assert client.download("https://files.test/snap.json") == [{"sku": "A"}]
    method, url, kwargs = http.calls[0]
    assert (method, url) == ("GET", "https://files.test/snap.json")
    assert "headers" not in kwargs


def test_download_rejects_non_json(configured, settings):
    http = FakeHttp(FakeResponse(200, None, text="<html>"))
    client = _client(configured, settings, http)

    with pytest.raises(FormatError):
        client.download("https://files.test/snap.json")


def test_download_http_failure(configured, settings):
    http = FakeHttp(FakeResponse(404, text="gone"))
    client = _client(configured, settings, http)

    with pytest.raises(UpstreamError):
        client.download("https://files.test/snap.json")
