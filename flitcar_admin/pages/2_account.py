"""Страница профиля администратора."""

import logging

import streamlit as st

from flitcar_admin.constants import (
    MSG_LOGGED_OUT,
    MSG_PASSWORD_CHANGED,
    MSG_PASSWORDS_MISMATCH,
    MSG_PROFILE_UPDATED,
    PAGE_LOGIN,
)
from flitcar_admin.exceptions import APIError
from flitcar_admin.services import AuthAPI
from flitcar_admin.ui import configure_page, get_credentials, require_authentication, run_api

logger = logging.getLogger(__name__)

configure_page("account")
require_authentication()

try:
    user = run_api(lambda client: AuthAPI(client).get_profile())
except APIError as e:
    # Уведомление уже показано клиентом, берем профиль из кэша
    logger.warning(f"[ACCOUNT] Failed to load profile: {e.error_code}")
    user = get_credentials().user

st.title("Mon compte")

if user is not None:
    st.markdown(f"**{user.display_name}** · {user.email} · `{user.role}`")

    with st.form("profile_form"):
        first_name = st.text_input("Prénom", value=user.first_name or "")
        last_name = st.text_input("Nom", value=user.last_name or "")
        phone = st.text_input("Téléphone", value=user.phone or "")
        if st.form_submit_button("Enregistrer"):
            try:
                run_api(
                    lambda client: AuthAPI(client).update_profile(
                        first_name=first_name, last_name=last_name, phone=phone
                    )
                )
            except APIError as e:
                st.error(e.message)
            else:
                st.success(MSG_PROFILE_UPDATED)

with st.form("password_form"):
    current_password = st.text_input("Mot de passe actuel", type="password")
    new_password = st.text_input("Nouveau mot de passe", type="password")
    confirm_password = st.text_input("Confirmer le mot de passe", type="password")
    if st.form_submit_button("Changer le mot de passe"):
        if new_password != confirm_password:
            st.error(MSG_PASSWORDS_MISMATCH)
        else:
            try:
                run_api(lambda client: AuthAPI(client).change_password(current_password, new_password))
            except APIError as e:
                st.error(e.message)
            else:
                st.success(MSG_PASSWORD_CHANGED)

if st.button("Se déconnecter"):
    run_api(lambda client: AuthAPI(client).logout())
    st.toast(MSG_LOGGED_OUT)
    st.switch_page(PAGE_LOGIN)
