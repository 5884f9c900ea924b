import streamlit as st
import logging
from modules.core.firebase_manager import FirebaseManager
from modules.core.error_handler import AppError, log_error
from modules.database.user_db import UserDB
from modules.services.auth_service import AuthService
from modules.services.subscription_service import SubscriptionService
from modules.utils.helpers import setup_page_config, require_login, render_sidebar

logger = logging.getLogger(__name__)

setup_page_config("Settings - Photo Enhance AI")

def main():
    uid = require_login()
    FirebaseManager.initialize()

    render_sidebar(SubscriptionService().get_remaining_credits(uid))
    st.title("Settings")

    user_db = UserDB()
    user = user_db.get_user(uid)
    if not user:
        st.error("Profile not found.")
        return

    st.header("Profile")
    if user.photo_url:
        st.image(user.photo_url, width=96)

    with st.form("profile_form"):
        name = st.text_input("Name", value=user.name or "")
        photo_url = st.text_input("Photo URL", value=user.photo_url or "")
        st.text_input("Email", value=user.email, disabled=True)
        submitted = st.form_submit_button("Save changes", type="primary")

    if submitted:
        try:
            user_db.update_user_profile(uid, name=name.strip(), photo_url=photo_url.strip())
            st.session_state.user = {**(st.session_state.user or {}), 'name': name.strip(),
                                     'photoUrl': photo_url.strip()}
            st.success("Profile updated.")
        except AppError as e:
            error = log_error(e, {'user_id': uid})
            st.error(error['message'])

    st.header("Password")
    if st.button("Send password reset email"):
        result = AuthService().send_password_reset(user.email)
        if result['success']:
            st.success(result['message'])
        else:
            st.error(result['error'])

if __name__ == "__main__":
    main()
