"""
Тесты CredentialStore: восстановление, атомарность пары токенов, logout
"""

import pytest

from conftest import ADMIN_USER
from flitcar_admin.core import CredentialStore, MemoryStorage, client_storage, create_credential_store


class RecordingStorage(MemoryStorage):
    """MemoryStorage, запоминающая каждую запись"""

    def __init__(self) -> None:
        super().__init__()
        self.writes = []

    def set_items(self, items):
        self.writes.append(dict(items))
        super().set_items(items)


def test_restore_after_restart_yields_same_session(storage):
    original = CredentialStore(storage, prefix="admin_")
    original.login(ADMIN_USER, "A1", "R1")

    restarted = CredentialStore(storage, prefix="admin_")
    session = restarted.restore()

    assert session.is_authenticated
    assert session.access_token == "A1"
    assert session.refresh_token == "R1"
    assert session.user == original.user
    assert session.user.email == ADMIN_USER["email"]
    assert session.user.display_name == "Amina Benali"


def test_persisted_layout_is_namespaced(credentials, storage):
    credentials.login(ADMIN_USER, "A1", "R1")

    assert set(storage.snapshot()) == {"admin_token", "admin_refresh_token", "admin_user"}


def test_restore_without_data_is_unauthenticated(credentials):
    session = credentials.restore()

    assert not session.is_authenticated
    assert session.user is None


@pytest.mark.parametrize("user_raw", ["{not json", "null", '{"email": "missing-id@flitcar.com"}'])
def test_restore_with_corrupted_user_starts_clean(user_raw):
    storage = MemoryStorage({"admin_token": "A1", "admin_refresh_token": "R1", "admin_user": user_raw})
    credentials = CredentialStore(storage, prefix="admin_")

    session = credentials.restore()

    assert not session.is_authenticated
    assert storage.snapshot() == {}


def test_restore_discards_refresh_token_without_access_token():
    storage = MemoryStorage({"admin_refresh_token": "R1"})
    credentials = CredentialStore(storage, prefix="admin_")

    assert not credentials.restore().is_authenticated
    assert storage.snapshot() == {}


def test_restore_accepts_camel_case_user_fields():
    storage = MemoryStorage(
        {
            "admin_token": "A1",
            "admin_user": '{"id": "u-2", "email": "ops@flitcar.com", "firstName": "Yassine"}',
        }
    )
    credentials = CredentialStore(storage, prefix="admin_")

    session = credentials.restore()

    assert session.user.first_name == "Yassine"
    assert session.refresh_token is None


def test_set_tokens_writes_pair_in_one_operation():
    storage = RecordingStorage()
    credentials = CredentialStore(storage, prefix="admin_")
    credentials.login(ADMIN_USER, "A1", "R1")
    storage.writes.clear()

    credentials.set_tokens("A2", "R2")

    assert storage.writes == [{"admin_token": "A2", "admin_refresh_token": "R2"}]
    assert (credentials.access_token, credentials.refresh_token) == ("A2", "R2")
    assert credentials.user.email == ADMIN_USER["email"]


def test_login_without_refresh_token_drops_stale_one(credentials, storage):
    credentials.login(ADMIN_USER, "A1", "R1")

    credentials.login(ADMIN_USER, "B1")

    assert credentials.refresh_token is None
    assert storage.get_item("admin_refresh_token") is None
    assert storage.get_item("admin_token") == "B1"


def test_login_and_restore_bump_generation(storage):
    credentials = CredentialStore(storage, prefix="admin_")
    assert credentials.generation == 0

    credentials.login(ADMIN_USER, "A1", "R1")
    assert credentials.generation == 1

    credentials.restore()
    assert credentials.generation == 2

    credentials.set_tokens("A2", "R2")
    assert credentials.generation == 2

    credentials.clear()
    assert credentials.generation == 3


def test_update_user_keeps_tokens(credentials, storage):
    credentials.login(ADMIN_USER, "A1", "R1")

    user = credentials.update_user({**ADMIN_USER, "phone": "+212600000000"})

    assert user.phone == "+212600000000"
    assert credentials.access_token == "A1"
    assert "+212600000000" in storage.get_item("admin_user")


@pytest.mark.asyncio
async def test_logout_revokes_then_clears(credentials, storage):
    credentials.login(ADMIN_USER, "A1", "R1")
    revoked = []

    async def revoke(refresh_token):
        revoked.append(refresh_token)

    await credentials.logout(revoke=revoke)

    assert revoked == ["R1"]
    assert storage.snapshot() == {}
    assert not credentials.is_authenticated


@pytest.mark.asyncio
async def test_logout_clears_even_when_revoke_fails(credentials, storage):
    credentials.login(ADMIN_USER, "A1", "R1")

    async def revoke(refresh_token):
        raise TimeoutError("revoke timed out")

    await credentials.logout(revoke=revoke)

    assert storage.snapshot() == {}
    assert credentials.user is None


@pytest.mark.asyncio
async def test_logout_without_session_skips_revoke(credentials):
    revoked = []

    async def revoke(refresh_token):
        revoked.append(refresh_token)

    await credentials.logout(revoke=revoke)

    assert revoked == []
    assert not credentials.is_authenticated


def test_blocked_reason_is_read_once(credentials):
    credentials.set_blocked_reason("Compte suspendu")

    assert credentials.pop_blocked_reason() == "Compte suspendu"
    assert credentials.pop_blocked_reason() is None


def test_clear_keeps_blocked_reason(credentials):
    credentials.login(ADMIN_USER, "A1", "R1")
    credentials.set_blocked_reason("Compte suspendu")

    credentials.clear()

    assert not credentials.is_authenticated
    assert credentials.pop_blocked_reason() == "Compte suspendu"


# ==================== Per-browser sessions ====================


def test_browsers_do_not_share_sessions(tmp_path):
    first_browser = create_credential_store(client_storage("a" * 32, directory=tmp_path))
    first_browser.login(ADMIN_USER, "A1", "R1")

    second_browser = create_credential_store(client_storage("b" * 32, directory=tmp_path))

    assert not second_browser.is_authenticated
    assert second_browser.access_token is None

    # Тот же браузер после перезапуска получает свою сессию обратно
    reopened = create_credential_store(client_storage("a" * 32, directory=tmp_path))
    assert reopened.access_token == "A1"


def test_clear_in_one_browser_keeps_other_sessions(tmp_path):
    first_browser = create_credential_store(client_storage("a" * 32, directory=tmp_path))
    first_browser.login(ADMIN_USER, "A1", "R1")
    second_browser = create_credential_store(client_storage("b" * 32, directory=tmp_path))
    second_browser.login(ADMIN_USER, "B1", "S1")

    second_browser.clear()

    reopened = create_credential_store(client_storage("a" * 32, directory=tmp_path))
    assert (reopened.access_token, reopened.refresh_token) == ("A1", "R1")


def test_store_without_client_id_restores_nothing():
    first = create_credential_store()
    first.login(ADMIN_USER, "A1", "R1")

    second = create_credential_store()

    assert not second.is_authenticated
