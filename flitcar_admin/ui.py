"""Связка Streamlit страниц с API клиентом и сессией."""

import asyncio
import logging
import uuid
from typing import Awaitable, Callable, TypeVar

import streamlit as st
import streamlit.components.v1 as components

from flitcar_admin.api_client import APIClient
from flitcar_admin.config import PAGE_CONFIGS, get_settings
from flitcar_admin.constants import (
    CLIENT_ID_COOKIE,
    CLIENT_ID_COOKIE_MAX_AGE,
    PAGE_LOGIN,
    SESSION_CLIENT_ID,
    SESSION_CREDENTIALS,
    SESSION_PENDING_REDIRECT,
)
from flitcar_admin.core import (
    CredentialStore,
    Navigator,
    Notifier,
    create_credential_store,
    is_valid_client_id,
)
from flitcar_admin.logging_config import setup_logging

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StreamlitNotifier(Notifier):
    """Уведомления через st.toast."""

    def error(self, message: str) -> None:
        super().error(message)
        st.toast(message, icon="❌")

    def warning(self, message: str) -> None:
        super().warning(message)
        st.toast(message, icon="⚠️")

    def success(self, message: str) -> None:
        super().success(message)
        st.toast(message, icon="✅")


class StreamlitNavigator(Navigator):
    """
    Откладывает редирект до выхода из event loop.

    st.switch_page прерывает скрипт исключением, поэтому внутри
    asyncio.run его вызывать нельзя: только ставим флаг.
    """

    def redirect_to_login(self) -> None:
        super().redirect_to_login()
        st.session_state[SESSION_PENDING_REDIRECT] = True


@st.cache_resource
def _configure_logging() -> None:
    settings = get_settings()
    setup_logging(level=settings.log_level, json_logs=settings.json_logs)


def configure_page(name: str) -> None:
    """Настройка страницы, логирования и сессии браузера."""
    page_config = PAGE_CONFIGS[name]
    st.set_page_config(
        page_title=page_config.title,
        page_icon=page_config.icon,
        layout=page_config.layout,
        initial_sidebar_state=page_config.initial_sidebar_state,
    )
    _configure_logging()
    init_session_state()


def _save_client_cookie(client_id: str) -> None:
    """Записать идентификатор браузера в cookie через JavaScript."""
    components.html(
        f"""
        <script>
            window.parent.document.cookie =
                '{CLIENT_ID_COOKIE}={client_id}; path=/; max-age={CLIENT_ID_COOKIE_MAX_AGE}; SameSite=Strict';
        </script>
        """,
        height=0,
    )


def get_client_id() -> str:
    """
    Идентификатор текущего браузера.

    Берется из cookie; новому браузеру выдается новый uuid. Cookie видна
    серверу только при следующем подключении, поэтому до тех пор она
    записывается на каждом запуске скрипта.
    """
    client_id = st.session_state.get(SESSION_CLIENT_ID)
    cookie_value = st.context.cookies.get(CLIENT_ID_COOKIE)
    if client_id is None:
        client_id = cookie_value if is_valid_client_id(cookie_value) else uuid.uuid4().hex
        st.session_state[SESSION_CLIENT_ID] = client_id
    if cookie_value != client_id:
        _save_client_cookie(client_id)
    return client_id


def init_session_state() -> None:
    """Синхронизировать cookie браузера и один раз восстановить его сессию."""
    client_id = get_client_id()
    if SESSION_CREDENTIALS not in st.session_state:
        st.session_state[SESSION_CREDENTIALS] = create_credential_store(client_id=client_id)
    if SESSION_PENDING_REDIRECT not in st.session_state:
        st.session_state[SESSION_PENDING_REDIRECT] = False


def get_credentials() -> CredentialStore:
    if SESSION_CREDENTIALS not in st.session_state:
        init_session_state()
    return st.session_state[SESSION_CREDENTIALS]


def check_authentication() -> bool:
    """
    Проверка авторизации пользователя.

    Returns:
        True если есть access token, иначе False
    """
    return get_credentials().is_authenticated


def require_authentication() -> None:
    """Требует авторизацию, иначе перенаправляет на страницу входа."""
    if not check_authentication():
        st.switch_page(PAGE_LOGIN)


def apply_pending_redirect() -> None:
    if st.session_state.get(SESSION_PENDING_REDIRECT):
        st.session_state[SESSION_PENDING_REDIRECT] = False
        st.switch_page(PAGE_LOGIN)


def run_api(operation: Callable[[APIClient], Awaitable[T]]) -> T:
    """
    Выполнить операцию с API клиентом из синхронного кода страницы.

    Args:
        operation: Корутина-функция, получающая клиент

    Returns:
        Результат операции
    """

    async def _run() -> T:
        async with APIClient(
            get_credentials(),
            notifier=StreamlitNotifier(),
            navigator=StreamlitNavigator(),
        ) as client:
            return await operation(client)

    try:
        return asyncio.run(_run())
    finally:
        apply_pending_redirect()
