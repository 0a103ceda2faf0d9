"""
Исключения API клиента
"""

from typing import Any, Dict, Optional

import httpx

from flitcar_admin.constants import (
    HTTP_BAD_REQUEST,
    HTTP_CONFLICT,
    HTTP_FORBIDDEN,
    HTTP_INTERNAL_SERVER_ERROR,
    HTTP_NOT_FOUND,
    HTTP_TOO_MANY_REQUESTS,
    HTTP_UNAUTHORIZED,
    HTTP_UNPROCESSABLE_ENTITY,
    REASON_REFRESH_FAILED,
)


class APIError(Exception):
    """Базовое исключение клиента с поддержкой HTTP статус кодов"""

    status_code: Optional[int] = None
    error_code: str = "API_ERROR"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
        response: Optional[httpx.Response] = None,
    ):
        self.message = message
        self.details = details or {}
        self.response = response
        if status_code:
            self.status_code = status_code
        elif response is not None:
            self.status_code = response.status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Сериализация исключения в словарь"""
        return {
            "error": self.error_code,
            "message": self.message,
            "status_code": self.status_code,
            "details": self.details,
        }


class NetworkError(APIError):
    """Сетевая ошибка или таймаут, ответа от сервера нет"""

    error_code = "NETWORK_ERROR"


class AuthenticationError(APIError):
    """Ошибка аутентификации (например, неверные учетные данные)"""

    status_code = HTTP_UNAUTHORIZED
    error_code = "AUTHENTICATION_ERROR"


class SessionExpiredError(AuthenticationError):
    """Сессия завершена, требуется повторный вход"""

    error_code = "SESSION_EXPIRED"

    def __init__(self, message: str, reason: str, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.reason = reason
        self.details.setdefault("reason", reason)


class RefreshFailedError(SessionExpiredError):
    """Не удалось обновить access token"""

    error_code = "REFRESH_FAILED"

    def __init__(self, message: str, **kwargs: Any):
        super().__init__(message, reason=REASON_REFRESH_FAILED, **kwargs)


class ForbiddenError(APIError):
    """Доступ запрещен"""

    status_code = HTTP_FORBIDDEN
    error_code = "FORBIDDEN"


class AccountBlockedError(ForbiddenError):
    """Аккаунт администратора заблокирован"""

    error_code = "ACCOUNT_BLOCKED"


class ValidationError(APIError):
    """Ошибка валидации данных"""

    status_code = HTTP_BAD_REQUEST
    error_code = "VALIDATION_ERROR"


class ResourceNotFoundError(APIError):
    """Ресурс не найден"""

    status_code = HTTP_NOT_FOUND
    error_code = "NOT_FOUND"


class ConflictError(APIError):
    """Конфликт состояния ресурса"""

    status_code = HTTP_CONFLICT
    error_code = "CONFLICT"


class RateLimitError(APIError):
    """Превышен лимит запросов"""

    status_code = HTTP_TOO_MANY_REQUESTS
    error_code = "RATE_LIMIT_EXCEEDED"


class ServerError(APIError):
    """Ошибка на стороне сервера (5xx)"""

    status_code = HTTP_INTERNAL_SERVER_ERROR
    error_code = "SERVER_ERROR"


class InvalidResponseError(APIError):
    """Успешный ответ, который не удалось разобрать"""

    error_code = "INVALID_RESPONSE"


_STATUS_ERRORS = {
    HTTP_BAD_REQUEST: ValidationError,
    HTTP_UNPROCESSABLE_ENTITY: ValidationError,
    HTTP_UNAUTHORIZED: AuthenticationError,
    HTTP_FORBIDDEN: ForbiddenError,
    HTTP_NOT_FOUND: ResourceNotFoundError,
    HTTP_CONFLICT: ConflictError,
    HTTP_TOO_MANY_REQUESTS: RateLimitError,
}


def extract_error_message(response: httpx.Response, default: str) -> str:
    """Достать сообщение об ошибке из JSON тела ответа, если оно есть."""
    try:
        body = response.json()
    except ValueError:
        return default
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return default


def error_for_response(response: httpx.Response) -> APIError:
    """
    Построить типизированное исключение по статусу ответа.

    Args:
        response: Неуспешный ответ сервера

    Returns:
        Экземпляр подходящего подкласса APIError
    """
    status = response.status_code
    if status >= HTTP_INTERNAL_SERVER_ERROR:
        error_cls = ServerError
    else:
        error_cls = _STATUS_ERRORS.get(status, APIError)
    message = extract_error_message(
        response, f"{response.request.method} {response.request.url.path} failed with status {status}"
    )
    return error_cls(message, status_code=status, response=response)
