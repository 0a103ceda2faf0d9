"""Страница входа администратора."""

import logging

import streamlit as st

from flitcar_admin.constants import (
    MSG_EMPTY_FIELDS,
    MSG_LOGIN_ERROR,
    MSG_LOGIN_SUCCESS,
    PAGE_ACCOUNT,
)
from flitcar_admin.exceptions import APIError
from flitcar_admin.services import AuthAPI
from flitcar_admin.ui import check_authentication, configure_page, get_credentials, run_api

logger = logging.getLogger(__name__)

configure_page("login")

if check_authentication():
    st.switch_page(PAGE_ACCOUNT)

st.title("FlitCar Admin")
st.caption("Connectez-vous à votre espace administrateur")

# Причина блокировки показывается один раз
blocked_reason = get_credentials().pop_blocked_reason()
if blocked_reason:
    st.error(blocked_reason)

with st.form("login_form"):
    email = st.text_input("Email", placeholder="admin@flitcar.com")
    password = st.text_input("Mot de passe", type="password")
    submitted = st.form_submit_button("Se connecter", use_container_width=True)

if submitted:
    if not email or not password:
        st.error(MSG_EMPTY_FIELDS)
    else:
        try:
            session = run_api(lambda client: AuthAPI(client).login(email, password))
        except APIError as e:
            logger.warning(f"[LOGIN] Login failed for {email}: {e.error_code}")
            st.error(e.message or MSG_LOGIN_ERROR)
        else:
            st.toast(MSG_LOGIN_SUCCESS.format(name=session.user.display_name), icon="✅")
            st.switch_page(PAGE_ACCOUNT)
