"""Координация обновления access token между параллельными запросами."""

import asyncio
import logging
from collections import deque
from typing import Awaitable, Callable, Deque

from flitcar_admin.exceptions import RefreshFailedError

logger = logging.getLogger(__name__)

RefreshFunc = Callable[[], Awaitable[str]]


class RefreshCoordinator:
    """
    Гарантирует не более одного обновления токена одновременно.

    Первый запрос, получивший 401, становится лидером и выполняет обмен
    refresh токена. Остальные встают в очередь и получают результат того же
    обмена. Работает в одном event loop: проверка и установка флага идут
    без await между ними, поэтому блокировка не нужна.
    """

    def __init__(self) -> None:
        self._is_refreshing = False
        self._queue: Deque["asyncio.Future[str]"] = deque()

    @property
    def is_refreshing(self) -> bool:
        return self._is_refreshing

    @property
    def pending_count(self) -> int:
        """Сколько запросов ждут текущего обновления"""
        return len(self._queue)

    async def obtain_token(self, refresh: RefreshFunc) -> str:
        """
        Получить новый access token: дождаться текущего обновления или начать свое.

        Args:
            refresh: Корутина-функция, выполняющая обмен и сохраняющая токены

        Returns:
            Новый access token

        Raises:
            Exception: Ошибка обновления (та же, что получил лидер)
        """
        if self._is_refreshing:
            return await self._wait()
        return await self._lead(refresh)

    async def _wait(self) -> str:
        future: "asyncio.Future[str]" = asyncio.get_running_loop().create_future()
        self._queue.append(future)
        logger.debug(f"[REFRESH] Request queued behind refresh in flight (queue={len(self._queue)})")
        return await future

    async def _lead(self, refresh: RefreshFunc) -> str:
        self._is_refreshing = True
        logger.info("[REFRESH] Starting token refresh")
        try:
            token = await refresh()
        except asyncio.CancelledError:
            self._reject_all(RefreshFailedError("Token refresh was cancelled"))
            raise
        except Exception as e:
            logger.warning(f"[REFRESH] Token refresh failed, rejecting {len(self._queue)} queued request(s): {e}")
            self._reject_all(e)
            raise
        logger.info(f"[REFRESH] Token refreshed, releasing {len(self._queue)} queued request(s)")
        self._resolve_all(token)
        return token

    def _resolve_all(self, token: str) -> None:
        while self._queue:
            future = self._queue.popleft()
            if not future.done():
                future.set_result(token)
        self._is_refreshing = False

    def _reject_all(self, error: BaseException) -> None:
        while self._queue:
            future = self._queue.popleft()
            if not future.done():
                future.set_exception(error)
        self._is_refreshing = False
