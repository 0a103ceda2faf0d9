"""
Централизованная конфигурация приложения
"""

from dataclasses import dataclass
from functools import lru_cache

from pydantic_settings import BaseSettings

from flitcar_admin.constants import DEFAULT_API_TIMEOUT


class Settings(BaseSettings):
    """Настройки админ-панели с валидацией через Pydantic"""

    # Backend API
    api_url: str = "http://localhost:3000/api"
    api_timeout: float = DEFAULT_API_TIMEOUT

    # Хранилище сессии
    storage_dir: str = "~/.flitcar_admin/sessions"
    storage_prefix: str = "admin_"

    # Логирование
    log_level: str = "INFO"
    json_logs: bool = False

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Возвращает синглтон настроек"""
    return Settings()


@dataclass
class PageConfig:
    """Конфигурация страницы Streamlit."""

    title: str
    icon: str
    layout: str = "wide"
    initial_sidebar_state: str = "expanded"


# Конфигурации страниц
PAGE_CONFIGS = {
    "main": PageConfig(
        title="FlitCar Admin",
        icon="🚗",
        layout="wide",
        initial_sidebar_state="collapsed",
    ),
    "login": PageConfig(
        title="Connexion - FlitCar Admin",
        icon="🔐",
        layout="centered",
        initial_sidebar_state="collapsed",
    ),
    "account": PageConfig(
        title="Mon compte - FlitCar Admin",
        icon="👤",
        layout="wide",
        initial_sidebar_state="expanded",
    ),
}
