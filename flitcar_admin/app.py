"""Главная страница - навигация и маршрутизация."""

import streamlit as st

from flitcar_admin.constants import PAGE_ACCOUNT, PAGE_LOGIN
from flitcar_admin.ui import check_authentication, configure_page

# Заодно восстанавливает сессию этого браузера
configure_page("main")

# Проверка авторизации и перенаправление
if not check_authentication():
    st.switch_page(PAGE_LOGIN)
else:
    st.switch_page(PAGE_ACCOUNT)
