"""Централизованный API клиент для взаимодействия с backend."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, NoReturn, Optional

import httpx

from flitcar_admin.config import get_settings
from flitcar_admin.constants import (
    ENDPOINT_AUTH_LOGOUT,
    ENDPOINT_AUTH_REFRESH,
    HTTP_FORBIDDEN,
    HTTP_INTERNAL_SERVER_ERROR,
    HTTP_UNAUTHORIZED,
    MSG_ACCOUNT_BLOCKED,
    MSG_FORBIDDEN,
    MSG_SERVER_ERROR,
    MSG_SESSION_EXPIRED,
    PUBLIC_ROUTES,
    REASON_ACCOUNT_BLOCKED,
    REASON_NO_REFRESH_TOKEN,
    REASON_REFRESH_FAILED,
    REASON_RETRY_REJECTED,
)
from flitcar_admin.core.auth import CredentialStore
from flitcar_admin.core.notifications import Navigator, Notifier
from flitcar_admin.core.refresh import RefreshCoordinator
from flitcar_admin.exceptions import (
    AccountBlockedError,
    ForbiddenError,
    NetworkError,
    RefreshFailedError,
    SessionExpiredError,
    error_for_response,
    extract_error_message,
)
from flitcar_admin.schemas import TokenPair

logger = logging.getLogger(__name__)


@dataclass
class _RequestContext:
    """Исходный запрос, который можно переотправить с новым токеном."""

    method: str
    url: str
    json: Any = None
    params: Optional[Dict[str, Any]] = None
    headers: Dict[str, str] = field(default_factory=dict)
    auth: bool = True
    retried: bool = False


class APIClient:
    """
    Клиент для взаимодействия с backend API админ-панели.

    Каждый запрос получает bearer токен. На 401 клиент один раз обновляет
    токен (одно обновление на все параллельные запросы) и повторяет запрос.
    Если обновление невозможно, сессия завершается: учетные данные
    стираются, пользователь видит одно уведомление и попадает на страницу входа.
    """

    def __init__(
        self,
        credentials: CredentialStore,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        notifier: Optional[Notifier] = None,
        navigator: Optional[Navigator] = None,
        public_routes: Iterable[str] = PUBLIC_ROUTES,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Инициализация API клиента.

        Args:
            credentials: Хранилище учетных данных
            base_url: Базовый URL API (по умолчанию из конфигурации)
            timeout: Таймаут запросов в секундах
            notifier: Куда показывать уведомления
            navigator: Как перенаправлять на страницу входа
            public_routes: Пути, на которые токен не отправляется
            transport: Транспорт httpx (подменяется в тестах)
        """
        settings = get_settings()
        self.base_url = (base_url or settings.api_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.api_timeout
        self.credentials = credentials
        self.notifier = notifier or Notifier()
        self.navigator = navigator or Navigator()
        self.public_routes = tuple(public_routes)
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )
        self._refresh = RefreshCoordinator()
        self._terminated_generation: Optional[int] = None

    async def __aenter__(self) -> "APIClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    @property
    def is_refreshing(self) -> bool:
        return self._refresh.is_refreshing

    @property
    def pending_refresh_count(self) -> int:
        return self._refresh.pending_count

    # ---- публичные методы ----

    async def request(
        self,
        method: str,
        url: str,
        *,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        auth: bool = True,
    ) -> httpx.Response:
        """
        Выполнить запрос через auth конвейер.

        Args:
            method: HTTP метод
            url: Путь относительно base_url
            json: Тело запроса
            params: Query параметры
            headers: Дополнительные заголовки
            auth: Отправлять ли access token

        Returns:
            Успешный (2xx) ответ

        Raises:
            SessionExpiredError: Сессия завершена, нужен повторный вход
            ForbiddenError: Недостаточно прав
            ServerError: Ошибка 5xx
            NetworkError: Сеть или таймаут
            APIError: Прочие неуспешные ответы
        """
        ctx = _RequestContext(
            method=method.upper(),
            url=url,
            json=json,
            params=params,
            headers=dict(headers or {}),
            auth=auth and not self._is_public(url),
        )
        token = self.credentials.access_token if ctx.auth else None
        response = await self._send(ctx, token)
        return await self._process(ctx, response)

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, json: Any = None, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", url, json=json, **kwargs)

    async def put(self, url: str, json: Any = None, **kwargs: Any) -> httpx.Response:
        return await self.request("PUT", url, json=json, **kwargs)

    async def patch(self, url: str, json: Any = None, **kwargs: Any) -> httpx.Response:
        return await self.request("PATCH", url, json=json, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("DELETE", url, **kwargs)

    async def logout(self) -> None:
        """Выйти: отозвать refresh token (best-effort) и очистить сессию."""
        await self.credentials.logout(revoke=self._revoke_refresh_token)

    # ---- конвейер ----

    def _is_public(self, url: str) -> bool:
        """Сравнить путь относительно base_url с публичными маршрутами."""
        # "auth/login", "/auth/login" и полный URL с префиксом /api дают один путь
        path = self._http.build_request("GET", url).url.path
        base_path = self._http.base_url.path.rstrip("/")
        if base_path and path.startswith(f"{base_path}/"):
            path = path[len(base_path):]
        path = path.rstrip("/")
        return any(path == route or path.startswith(f"{route}/") for route in self.public_routes)

    async def _send(self, ctx: _RequestContext, token: Optional[str]) -> httpx.Response:
        headers = dict(ctx.headers)
        if token:
            headers["Authorization"] = f"Bearer {token}"
        try:
            return await self._http.request(
                ctx.method,
                ctx.url,
                json=ctx.json,
                params=ctx.params,
                headers=headers,
            )
        except httpx.TransportError as e:
            logger.error(f"[API] {ctx.method} {ctx.url} failed: {e!r}")
            raise NetworkError(f"{ctx.method} {ctx.url} failed: {e}") from e

    async def _process(self, ctx: _RequestContext, response: httpx.Response) -> httpx.Response:
        """
        Классификация ответа.

        Returns:
            Успешный ответ (возможно, после обновления токена и повтора)
        """
        if response.is_success:
            return response

        status = response.status_code
        if status == HTTP_UNAUTHORIZED and ctx.auth:
            return await self._handle_unauthorized(ctx, response)

        if status == HTTP_FORBIDDEN:
            self._handle_forbidden(response)

        if status >= HTTP_INTERNAL_SERVER_ERROR:
            logger.error(
                f"[API] {ctx.method} {ctx.url} failed with status {status}: {response.text[:200]}"
            )
            self.notifier.error(MSG_SERVER_ERROR)
        else:
            logger.info(f"[API] {ctx.method} {ctx.url} returned status {status}")
        raise error_for_response(response)

    async def _handle_unauthorized(
        self,
        ctx: _RequestContext,
        response: httpx.Response,
    ) -> httpx.Response:
        if ctx.retried:
            logger.warning(f"[API] {ctx.method} {ctx.url} rejected again after token refresh")
            self._terminate_session(REASON_RETRY_REJECTED)
            raise SessionExpiredError(MSG_SESSION_EXPIRED, reason=REASON_RETRY_REJECTED, response=response)

        if not self.credentials.refresh_token:
            self._terminate_session(REASON_NO_REFRESH_TOKEN)
            raise SessionExpiredError(MSG_SESSION_EXPIRED, reason=REASON_NO_REFRESH_TOKEN, response=response)

        ctx.retried = True
        generation = self.credentials.generation
        try:
            token = await self._refresh.obtain_token(self._exchange_refresh_token)
        except RefreshFailedError:
            # Сессия уже завершена или заменена, пока шло обновление
            if self.credentials.generation == generation:
                self._terminate_session(REASON_REFRESH_FAILED)
            raise

        logger.debug(f"[API] Retrying {ctx.method} {ctx.url} with refreshed token")
        retry_response = await self._send(ctx, token)
        return await self._process(ctx, retry_response)

    def _handle_forbidden(self, response: httpx.Response) -> NoReturn:
        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict) and body.get("isBlocked"):
            reason = body.get("reason") or MSG_ACCOUNT_BLOCKED
            logger.warning("[API] Account is blocked, ending session")
            self.credentials.set_blocked_reason(reason)
            self._terminate_session(REASON_ACCOUNT_BLOCKED, message=reason)
            raise AccountBlockedError(reason, details={"reason": reason}, response=response)

        logger.warning(f"[API] Access denied: {response.request.method} {response.request.url.path}")
        self.notifier.error(MSG_FORBIDDEN)
        raise ForbiddenError(extract_error_message(response, MSG_FORBIDDEN), response=response)

    # ---- обновление токена ----

    async def _exchange_refresh_token(self) -> str:
        """
        Обменять refresh token на новую пару токенов.

        Запрос идет напрямую через httpx, мимо конвейера: без bearer
        заголовка и без обработки 401. Если за время запроса сессия
        завершилась (logout, блокировка) или сменилась, новая пара не
        сохраняется.

        Returns:
            Новый access token (пара уже сохранена)
        """
        refresh_token = self.credentials.refresh_token
        if not refresh_token:
            raise RefreshFailedError("No refresh token available")
        generation = self.credentials.generation

        try:
            response = await self._http.post(ENDPOINT_AUTH_REFRESH, json={"refreshToken": refresh_token})
        except httpx.TransportError as e:
            raise RefreshFailedError(f"Refresh request failed: {e}") from e

        if not response.is_success:
            raise RefreshFailedError(
                extract_error_message(response, f"Refresh rejected with status {response.status_code}"),
                status_code=response.status_code,
                response=response,
            )

        try:
            pair = TokenPair.from_payload(response.json())
        except ValueError as e:
            raise RefreshFailedError("Refresh response does not contain a new token") from e

        if self.credentials.generation != generation:
            logger.warning("[REFRESH] Session ended during token refresh, discarding new tokens")
            raise RefreshFailedError("Session ended during token refresh")

        # Backend без ротации может не прислать refresh token, тогда оставляем текущий
        new_refresh_token = pair.refresh_token or refresh_token
        try:
            self.credentials.set_tokens(pair.token, new_refresh_token)
        except OSError as e:
            raise RefreshFailedError(f"Could not persist refreshed tokens: {e}") from e
        return pair.token

    async def _revoke_refresh_token(self, refresh_token: str) -> None:
        response = await self._http.post(ENDPOINT_AUTH_LOGOUT, json={"refreshToken": refresh_token})
        response.raise_for_status()

    # ---- завершение сессии ----

    def _terminate_session(self, reason: str, message: str = MSG_SESSION_EXPIRED) -> None:
        """
        Стереть сессию, уведомить пользователя и перенаправить на вход.

        Срабатывает один раз на сессию: повторные вызовы для той же сессии
        ничего не делают.
        """
        if self._terminated_generation == self.credentials.generation:
            logger.debug(f"[SESSION] Termination already done for this session (reason={reason})")
            return

        logger.warning(f"[SESSION] Terminating session (reason={reason})")
        self.credentials.clear()
        # clear() увеличивает generation, запоминаем уже новое значение
        self._terminated_generation = self.credentials.generation
        self.notifier.error(message)
        self.navigator.redirect_to_login()
