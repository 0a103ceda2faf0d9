"""Уведомления пользователя и навигация, которые API клиент вызывает из UI слоя."""

import logging

logger = logging.getLogger(__name__)


class Notifier:
    """
    Показывает уведомления пользователю.

    Базовая реализация только пишет в лог, UI подменяет ее своей
    (toast в Streamlit).
    """

    def error(self, message: str) -> None:
        logger.error(f"[NOTIFY] {message}")

    def warning(self, message: str) -> None:
        logger.warning(f"[NOTIFY] {message}")

    def success(self, message: str) -> None:
        logger.info(f"[NOTIFY] {message}")


class Navigator:
    """Перенаправление на страницу входа."""

    def redirect_to_login(self) -> None:
        logger.info("[NAVIGATE] Redirect to login requested")
