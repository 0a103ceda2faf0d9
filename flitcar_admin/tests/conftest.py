"""
Фикстуры для тестов auth конвейера

Backend эмулируется через httpx.MockTransport: он проверяет bearer токен,
выдает новые пары токенов на /auth/refresh и записывает каждый вызов.
"""

import asyncio
import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest

from flitcar_admin.api_client import APIClient
from flitcar_admin.core import CredentialStore, MemoryStorage, Navigator, Notifier

BASE_URL = "http://testserver/api"

ADMIN_USER = {
    "id": "u-1",
    "email": "admin@flitcar.com",
    "first_name": "Amina",
    "last_name": "Benali",
    "role": "admin",
}


# ==================== Fake backend ====================


@dataclass
class RecordedCall:
    method: str
    path: str
    authorization: Optional[str]
    body: Any


RouteHandler = Callable[[httpx.Request], httpx.Response]


class FakeBackend:
    """Минимальный backend с access/refresh токенами."""

    def __init__(self) -> None:
        self.valid_access: Optional[str] = None
        self.valid_refresh: Optional[str] = "R1"
        self.next_pairs: List[Tuple[str, str]] = [("A2", "R2"), ("A3", "R3")]
        self.rotate_refresh = True
        self.refresh_gate: Optional[asyncio.Event] = None
        self.refresh_exception: Optional[Exception] = None
        self.refresh_status: Optional[int] = None
        self.logout_exception: Optional[Exception] = None
        self.login_payload: Dict[str, Any] = {
            "success": True,
            "token": "A1",
            "refreshToken": "R1",
            "user": ADMIN_USER,
        }
        self.routes: Dict[str, RouteHandler] = {}
        self.calls: List[RecordedCall] = []

    def calls_to(self, path: str) -> List[RecordedCall]:
        return [call for call in self.calls if call.path == path]

    async def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        path = request.url.path.removeprefix("/api")
        self.calls.append(
            RecordedCall(request.method, path, request.headers.get("Authorization"), body)
        )

        if path == "/auth/refresh":
            return await self._refresh(request, body)
        if path == "/auth/logout":
            if self.logout_exception is not None:
                raise self.logout_exception
            return httpx.Response(200, json={"success": True})
        if path == "/auth/login":
            if body.get("password") != "secret":
                return httpx.Response(401, json={"message": "Identifiants invalides"})
            return httpx.Response(200, json=self.login_payload)
        if path in self.routes:
            return self.routes[path](request)

        if request.headers.get("Authorization") != f"Bearer {self.valid_access}":
            return httpx.Response(401, json={"message": "Token expired"})
        return httpx.Response(200, json={"path": path, "ok": True})

    async def _refresh(self, request: httpx.Request, body: Any) -> httpx.Response:
        if self.refresh_gate is not None:
            await self.refresh_gate.wait()
        if self.refresh_exception is not None:
            raise self.refresh_exception
        if self.refresh_status is not None:
            return httpx.Response(self.refresh_status, json={"message": "Refresh unavailable"})
        if not body or body.get("refreshToken") != self.valid_refresh:
            return httpx.Response(401, json={"message": "Invalid refresh token"})

        access, refresh = self.next_pairs.pop(0)
        self.valid_access = access
        payload: Dict[str, Any] = {"token": access}
        if self.rotate_refresh:
            self.valid_refresh = refresh
            payload["refreshToken"] = refresh
        return httpx.Response(200, json=payload)


class RecordingNotifier(Notifier):
    def __init__(self) -> None:
        self.errors: List[str] = []
        self.successes: List[str] = []

    def error(self, message: str) -> None:
        self.errors.append(message)

    def warning(self, message: str) -> None:
        self.errors.append(message)

    def success(self, message: str) -> None:
        self.successes.append(message)


class RecordingNavigator(Navigator):
    def __init__(self) -> None:
        self.redirects = 0

    def redirect_to_login(self) -> None:
        self.redirects += 1


# ==================== Helpers ====================


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Крутить event loop, пока условие не выполнится."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition was not reached in time")
        await asyncio.sleep(0)


# ==================== Fixtures ====================


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def credentials(storage: MemoryStorage) -> CredentialStore:
    return CredentialStore(storage, prefix="admin_")


@pytest.fixture
def logged_in(credentials: CredentialStore) -> CredentialStore:
    """Сессия с истекшим access token A1 и валидным refresh token R1"""
    credentials.login(ADMIN_USER, "A1", "R1")
    return credentials


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def navigator() -> RecordingNavigator:
    return RecordingNavigator()


@pytest.fixture
def make_client(
    credentials: CredentialStore,
    backend: FakeBackend,
    notifier: RecordingNotifier,
    navigator: RecordingNavigator,
) -> Callable[[], APIClient]:
    """Фабрика клиентов, использовать как `async with make_client() as client`"""

    def _make() -> APIClient:
        return APIClient(
            credentials,
            base_url=BASE_URL,
            timeout=5.0,
            notifier=notifier,
            navigator=navigator,
            transport=httpx.MockTransport(backend.handler),
        )

    return _make
