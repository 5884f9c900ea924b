import streamlit as st
import time
import logging
from modules.core.firebase_manager import FirebaseManager
from modules.services.auth_service import AuthService
from modules.utils.helpers import setup_page_config, init_session_state, get_user_id, get_cookie_manager, save_login

logger = logging.getLogger(__name__)

setup_page_config("Sign In - Photo Enhance AI")

def initialize_firebase():
    """Initialize Firebase components."""
    if FirebaseManager.initialize():
        return True
    st.error("Unable to connect to authentication service. Please try again later.")
    return False

def start_session(result):
    st.session_state.user = result['user']
    st.session_state.uid = result['uid']
    save_login(get_cookie_manager(), result)
    st.success("Login successful! Redirecting...")
    time.sleep(1)
    st.switch_page("pages/1_dashboard.py")

def main():
    init_session_state()

    if get_user_id():
        st.switch_page("pages/1_dashboard.py")
        return

    st.title("Sign In to Photo Enhance AI")

    if not initialize_firebase():
        return

    auth_service = AuthService()
    tab1, tab2, tab3 = st.tabs(["Sign In", "Create Account", "Forgot Password"])

    with tab1:
        email = st.text_input("Email Address", placeholder="your@email.com")
        password = st.text_input("Password", type="password", placeholder="••••••••")

        if st.button("Sign In", type="primary", use_container_width=True):
            with st.spinner("Signing in..."):
                result = auth_service.sign_in(email, password)
            if result['success']:
                start_session(result)
            else:
                st.error(f"Login failed: {result['error']}")

    with tab2:
        name = st.text_input("Name", key="signup_name", placeholder="Your Name")
        email = st.text_input("Email Address", key="signup_email", placeholder="your@email.com")
        password = st.text_input("Password", type="password", key="signup_password", placeholder="••••••••")

        if st.button("Create Account", type="primary", use_container_width=True):
            with st.spinner("Creating your account..."):
                result = auth_service.sign_up(email, password, name or None)
            if result['success']:
                start_session(result)
            else:
                st.error(f"Account creation failed: {result['error']}")

    with tab3:
        email = st.text_input("Email Address", key="reset_email", placeholder="your@email.com")
        if st.button("Send Reset Link", use_container_width=True):
            result = auth_service.send_password_reset(email)
            if result['success']:
                st.success(result['message'])
            else:
                st.error(result['error'])

    st.markdown("---")
    if st.button("Try without an account"):
        st.switch_page("pages/3_try_enhance.py")

if __name__ == "__main__":
    main()
