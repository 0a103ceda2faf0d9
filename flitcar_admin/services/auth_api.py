"""Сервис авторизации: вход, профиль, смена пароля, выход."""

import logging
from typing import Any, Dict, Optional

import httpx

from flitcar_admin.api_client import APIClient
from flitcar_admin.constants import (
    ENDPOINT_AUTH_CHANGE_PASSWORD,
    ENDPOINT_AUTH_LOGIN,
    ENDPOINT_AUTH_PROFILE,
    MSG_LOGIN_ERROR,
    MSG_PROFILE_INVALID,
)
from flitcar_admin.exceptions import AuthenticationError, InvalidResponseError
from flitcar_admin.schemas import LoginResponse, Session, UserRecord

logger = logging.getLogger(__name__)


def _extract_user(payload: Any) -> Dict[str, Any]:
    """Профиль приходит как {"user": {...}} или {"data": {...}}."""
    if isinstance(payload, dict):
        for key in ("user", "data"):
            value = payload.get(key)
            if isinstance(value, dict):
                return value
        return payload
    raise ValueError("Unexpected profile response format")


class AuthAPI:
    """Обертка над auth эндпоинтами backend."""

    def __init__(self, client: APIClient) -> None:
        self.client = client

    async def login(self, email: str, password: str) -> Session:
        """
        Вход администратора.

        Args:
            email: Email
            password: Пароль

        Returns:
            Новая сессия (уже сохранена в CredentialStore)

        Raises:
            AuthenticationError: Неверные данные или ответ без token/user
        """
        response = await self.client.post(
            ENDPOINT_AUTH_LOGIN,
            json={"email": email, "password": password},
        )
        try:
            payload = response.json()
            login_response = LoginResponse.from_payload(payload)
        except ValueError as e:
            logger.error(f"[LOGIN] Login response missing token or user: {e}")
            raise AuthenticationError(MSG_LOGIN_ERROR, response=response) from e

        session = self.client.credentials.login(
            login_response.user,
            login_response.token,
            login_response.refresh_token,
        )
        logger.info(f"[LOGIN] Login successful for {login_response.user.email}")
        return session

    async def get_profile(self) -> UserRecord:
        """Получить профиль текущего администратора и обновить кэш."""
        response = await self.client.get(ENDPOINT_AUTH_PROFILE)
        return self._store_profile(response)

    async def update_profile(
        self,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> UserRecord:
        """
        Обновить профиль. Передаются только заданные поля.

        Returns:
            Обновленный профиль
        """
        data = {
            key: value
            for key, value in (("first_name", first_name), ("last_name", last_name), ("phone", phone))
            if value is not None
        }
        response = await self.client.put(ENDPOINT_AUTH_PROFILE, json=data)
        return self._store_profile(response)

    async def change_password(self, current_password: str, new_password: str) -> None:
        await self.client.put(
            ENDPOINT_AUTH_CHANGE_PASSWORD,
            json={"currentPassword": current_password, "newPassword": new_password},
        )

    async def logout(self) -> None:
        await self.client.logout()

    def _store_profile(self, response: httpx.Response) -> UserRecord:
        """Разобрать профиль из ответа и обновить кэш."""
        try:
            user = UserRecord.model_validate(_extract_user(response.json()))
        except ValueError as e:
            logger.error(f"[PROFILE] Unexpected profile response: {e}")
            raise InvalidResponseError(MSG_PROFILE_INVALID, response=response) from e
        return self.client.credentials.update_user(user)
