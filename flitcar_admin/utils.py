"""
Вспомогательные функции
"""

import logging
from typing import Any, Awaitable

logger = logging.getLogger(__name__)


async def discard_errors(awaitable: Awaitable[Any], description: str) -> None:
    """
    Дождаться операции и отбросить любую ее ошибку.

    Для best-effort вызовов, чей результат никому не нужен (отзыв refresh
    токена при logout). Ошибка только логируется.

    Args:
        awaitable: Операция
        description: Что за операция, для лога
    """
    try:
        await awaitable
    except Exception as e:
        logger.warning(f"[DISCARD] {description} failed, result ignored: {e!r}")


def mask_token(token: str, visible: int = 4) -> str:
    """Короткое представление токена для логов: последние символы."""
    if not token:
        return "<empty>"
    if len(token) <= visible:
        return "*" * len(token)
    return f"...{token[-visible:]} (len={len(token)})"
