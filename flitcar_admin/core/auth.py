"""Хранилище учетных данных: источник правды для сессии администратора."""

import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from flitcar_admin.config import get_settings
from flitcar_admin.constants import (
    STORAGE_KEY_ACCESS_TOKEN,
    STORAGE_KEY_BLOCKED_REASON,
    STORAGE_KEY_REFRESH_TOKEN,
    STORAGE_KEY_USER,
)
from flitcar_admin.core.storage import KeyValueStorage, MemoryStorage, client_storage
from flitcar_admin.schemas import Session, UserRecord
from flitcar_admin.utils import discard_errors, mask_token

logger = logging.getLogger(__name__)

RevokeFunc = Callable[[str], Awaitable[Any]]


class CredentialStore:
    """
    Держит access token, refresh token и профиль в памяти и в хранилище.

    Токены всегда меняются парой. API клиент читает и пишет сессию только
    через этот объект.
    """

    def __init__(self, storage: KeyValueStorage, prefix: Optional[str] = None) -> None:
        """
        Args:
            storage: Долговременное хранилище
            prefix: Префикс ключей (по умолчанию из настроек)
        """
        if prefix is None:
            prefix = get_settings().storage_prefix
        self._storage = storage
        self._access_key = f"{prefix}{STORAGE_KEY_ACCESS_TOKEN}"
        self._refresh_key = f"{prefix}{STORAGE_KEY_REFRESH_TOKEN}"
        self._user_key = f"{prefix}{STORAGE_KEY_USER}"
        self._blocked_key = f"{prefix}{STORAGE_KEY_BLOCKED_REASON}"
        self._session = Session()
        self._generation = 0

    # ---- чтение ----

    @property
    def session(self) -> Session:
        return self._session

    @property
    def access_token(self) -> Optional[str]:
        return self._session.access_token

    @property
    def refresh_token(self) -> Optional[str]:
        return self._session.refresh_token

    @property
    def user(self) -> Optional[UserRecord]:
        return self._session.user

    @property
    def is_authenticated(self) -> bool:
        return self._session.is_authenticated

    @property
    def generation(self) -> int:
        """Номер сессии, увеличивается при каждом login, restore и clear"""
        return self._generation

    # ---- жизненный цикл ----

    def restore(self) -> Session:
        """
        Восстановить сессию из хранилища при старте.

        Сетевых вызовов нет: валидность токена выясняется при первом 401.
        Поврежденные данные трактуются как отсутствие сессии.

        Returns:
            Восстановленная или пустая сессия
        """
        try:
            access_token = self._storage.get_item(self._access_key)
            refresh_token = self._storage.get_item(self._refresh_key)
            user_raw = self._storage.get_item(self._user_key)
            user = UserRecord.model_validate_json(user_raw) if user_raw else None
        except (OSError, ValueError) as e:
            logger.warning(f"[SESSION] Persisted session is unreadable, starting clean: {e}")
            self._wipe_storage()
            self._session = Session()
            return self._session

        if not access_token:
            if refresh_token or user_raw:
                logger.warning("[SESSION] Persisted session without access token, discarding")
                self._wipe_storage()
            self._session = Session()
            logger.info("[SESSION] No persisted session")
            return self._session

        self._session = Session(access_token=access_token, refresh_token=refresh_token, user=user)
        self._generation += 1
        logger.info(
            f"[SESSION] Restored session for {user.email if user else 'unknown user'} "
            f"(refresh token: {'yes' if refresh_token else 'no'})"
        )
        return self._session

    def login(
        self,
        user: Union[UserRecord, Dict[str, Any]],
        access_token: str,
        refresh_token: Optional[str] = None,
    ) -> Session:
        """
        Сохранить новую сессию после успешного входа.

        Args:
            user: Профиль администратора
            access_token: Access token
            refresh_token: Refresh token, если backend его выдал

        Returns:
            Новая сессия
        """
        if not isinstance(user, UserRecord):
            user = UserRecord.model_validate(user)

        if refresh_token is None:
            # Старый refresh token не должен остаться в паре с новым access token
            self._storage.remove_item(self._refresh_key)
            items = {self._access_key: access_token, self._user_key: user.model_dump_json()}
        else:
            items = {
                self._access_key: access_token,
                self._refresh_key: refresh_token,
                self._user_key: user.model_dump_json(),
            }
        self._storage.set_items(items)

        self._session = Session(access_token=access_token, refresh_token=refresh_token, user=user)
        self._generation += 1
        logger.info(f"[SESSION] Logged in as {user.email} (access {mask_token(access_token)})")
        return self._session

    def set_tokens(self, access_token: str, refresh_token: str) -> None:
        """
        Атомарно заменить пару токенов, профиль не трогается.

        Пара записывается в хранилище одной операцией до возврата.
        """
        self._storage.set_items({self._access_key: access_token, self._refresh_key: refresh_token})
        self._session = self._session.model_copy(
            update={"access_token": access_token, "refresh_token": refresh_token}
        )
        logger.info(f"[SESSION] Token pair replaced (access {mask_token(access_token)})")

    def update_user(self, user: Union[UserRecord, Dict[str, Any]]) -> UserRecord:
        """Обновить закэшированный профиль"""
        if not isinstance(user, UserRecord):
            user = UserRecord.model_validate(user)
        self._storage.set_item(self._user_key, user.model_dump_json())
        self._session = self._session.model_copy(update={"user": user})
        return user

    def clear(self) -> None:
        """Локально стереть сессию из памяти и хранилища."""
        self._wipe_storage()
        self._session = Session()
        self._generation += 1
        logger.info("[SESSION] Session cleared")

    async def logout(self, revoke: Optional[RevokeFunc] = None) -> None:
        """
        Выход: best-effort отзыв refresh токена, затем очистка.

        Ошибка отзыва отбрасывается явно, локальная очистка выполняется всегда.

        Args:
            revoke: Корутина-функция, отзывающая refresh token на backend
        """
        refresh_token = self.refresh_token
        try:
            if revoke is not None and refresh_token:
                await discard_errors(revoke(refresh_token), "refresh token revoke")
        finally:
            self.clear()
        logger.info("[SESSION] User logged out")

    # ---- причина блокировки ----

    def set_blocked_reason(self, reason: str) -> None:
        self._storage.set_item(self._blocked_key, reason)

    def pop_blocked_reason(self) -> Optional[str]:
        """Прочитать и удалить причину блокировки аккаунта"""
        reason = self._storage.get_item(self._blocked_key)
        if reason is not None:
            self._storage.remove_item(self._blocked_key)
        return reason

    def _wipe_storage(self) -> None:
        self._storage.remove_items([self._access_key, self._refresh_key, self._user_key])


def create_credential_store(
    storage: Optional[KeyValueStorage] = None,
    client_id: Optional[str] = None,
) -> CredentialStore:
    """
    Создать хранилище учетных данных и восстановить сессию.

    Сессия хранится отдельно для каждого браузера. Без client_id
    используется пустое хранилище в памяти: чужая сессия не
    восстанавливается.

    Args:
        storage: Хранилище (приоритетнее client_id)
        client_id: Идентификатор браузера, выбирает файл сессии

    Returns:
        CredentialStore с восстановленной сессией
    """
    if storage is None:
        storage = client_storage(client_id) if client_id else MemoryStorage()
    store = CredentialStore(storage, prefix=get_settings().storage_prefix)
    store.restore()
    return store
