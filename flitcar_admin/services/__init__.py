"""Сервисы поверх API клиента."""

from flitcar_admin.services.auth_api import AuthAPI

__all__ = ["AuthAPI"]
