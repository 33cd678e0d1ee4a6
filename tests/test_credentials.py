import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from inventory_sync.credentials import CredentialStore, token_hint
from inventory_sync.exceptions import CredentialValidationError, PersistenceError
from inventory_sync.models import AppSettings


def _row_count(session_factory) -> int:
    with session_factory() as db:
        return db.scalar(select(func.count()).select_from(AppSettings))


def test_get_returns_none_when_not_configured(credential_store):
    assert credential_store.get() is None


def test_save_then_get(credential_store):
    credential_store.save("  refresh-abc  ", " WH1 ")

    creds = credential_store.get()
    assert creds.refresh_token == "refresh-abc"
    assert creds.warehouse_id == "WH1"
    assert creds.updated_at is not None


def test_save_replaces_previous_credentials(credential_store, session_factory):
    credential_store.save("first", "WH1")
    credential_store.save("second", "WH2")

    assert _row_count(session_factory) == 1
    creds = credential_store.get()
    assert (creds.refresh_token, creds.warehouse_id) == ("second", "WH2")


@pytest.mark.parametrize(
    "refresh_token,warehouse_id,field",
    [
        ("", "WH1", "refresh_token"),
        ("   ", "WH1", "refresh_token"),
        (None, "WH1", "refresh_token"),
        ("token", "", "warehouse_id"),
        ("token", " \t ", "warehouse_id"),
        ("token", 42, "warehouse_id"),
    ],
)
def test_invalid_credentials_rejected_before_any_write(
    credential_store, session_factory, monkeypatch, refresh_token, warehouse_id, field
):
    credential_store.save("existing", "WH0")

    def _no_session():
        raise AssertionError("storage touched")

    monkeypatch.setattr(credential_store, "_session_factory", _no_session)

    with pytest.raises(CredentialValidationError) as exc_info:
        credential_store.save(refresh_token, warehouse_id)
    assert exc_info.value.field == field

    assert _row_count(session_factory) == 1


def test_clear_removes_credentials(credential_store):
    credential_store.save("token", "WH1")
    credential_store.clear()
    assert credential_store.get() is None


def test_storage_failure_becomes_persistence_error(session_factory):
    def broken_factory():
        raise OperationalError("SELECT", {}, Exception("db down"))

    store = CredentialStore(broken_factory)
    with pytest.raises(PersistenceError):
        store.get()


def test_token_hint_masks_all_but_last_four():
    assert token_hint("abcdefgh1234") == "***1234"
    assert token_hint("") is None
