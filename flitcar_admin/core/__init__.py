"""Модуль core для работы с сессией, хранилищем и обновлением токенов."""

from flitcar_admin.core.auth import CredentialStore, create_credential_store
from flitcar_admin.core.notifications import Navigator, Notifier
from flitcar_admin.core.refresh import RefreshCoordinator
from flitcar_admin.core.storage import (
    JSONFileStorage,
    KeyValueStorage,
    MemoryStorage,
    client_storage,
    is_valid_client_id,
)

__all__ = [
    # auth
    "CredentialStore",
    "create_credential_store",
    # notifications
    "Navigator",
    "Notifier",
    # refresh
    "RefreshCoordinator",
    # storage
    "JSONFileStorage",
    "KeyValueStorage",
    "MemoryStorage",
    "client_storage",
    "is_valid_client_id",
]
