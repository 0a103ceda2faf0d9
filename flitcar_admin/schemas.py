"""
Схемы данных сессии и ответов auth эндпоинтов
"""

from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class UserRecord(BaseModel):
    """
    Профиль администратора, закэшированный для отображения в UI.

    Backend отдает поля то в snake_case, то в camelCase, принимаем оба.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str
    email: str
    first_name: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("first_name", "firstName")
    )
    last_name: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("last_name", "lastName")
    )
    role: str = "admin"
    phone: Optional[str] = None
    avatar_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("avatar_url", "profile_picture", "profilePicture"),
    )

    @property
    def display_name(self) -> str:
        """Имя для приветствия, email если имени нет"""
        full_name = " ".join(part for part in (self.first_name, self.last_name) if part)
        return full_name or self.email


class Session(BaseModel):
    """
    Текущая сессия администратора.

    Attributes:
        access_token: Короткоживущий bearer токен
        refresh_token: Токен для получения нового access token
        user: Закэшированный профиль
    """

    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    user: Optional[UserRecord] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token)


def _unwrap_data(payload: Any) -> Dict[str, Any]:
    """Ответы auth приходят либо плоскими, либо внутри {"data": {...}}."""
    if not isinstance(payload, dict):
        return {}
    nested = payload.get("data")
    if isinstance(nested, dict) and "token" not in payload:
        return nested
    return payload


class TokenPair(BaseModel):
    """Ответ POST /auth/refresh"""

    token: str = Field(min_length=1)
    refresh_token: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("refreshToken", "refresh_token")
    )

    @classmethod
    def from_payload(cls, payload: Any) -> "TokenPair":
        return cls.model_validate(_unwrap_data(payload))


class LoginResponse(BaseModel):
    """Ответ POST /auth/login"""

    token: str = Field(min_length=1)
    user: UserRecord
    refresh_token: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("refreshToken", "refresh_token")
    )

    @classmethod
    def from_payload(cls, payload: Any) -> "LoginResponse":
        return cls.model_validate(_unwrap_data(payload))
