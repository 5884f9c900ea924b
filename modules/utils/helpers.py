import streamlit as st
import time
from datetime import datetime
from typing import Any, Dict, Optional
from config.environment import Environment
from modules.core.error_handler import AppError, log_error
from modules.core.firebase_manager import FirebaseManager
from modules.services.auth_service import AuthService
import logging

logger = logging.getLogger(__name__)

COOKIE_MANAGER_KEY = 'cookie_manager'
LOGIN_COOKIES = ('uid', 'refresh_token', 'last_login')

def setup_page_config(title: str = "Photo Enhance AI"):
    """Set up the Streamlit page configuration."""
    try:
        st.set_page_config(
            page_title=title,
            page_icon="📸",
            layout="wide",
            initial_sidebar_state="expanded"
        )

        st.markdown("""
            <style>
                .main {
                    padding: 2rem;
                }
                .stButton>button {
                    width: 100%;
                }
                .credits-badge {
                    background-color: #f0f2f6;
                    border-radius: 0.5rem;
                    padding: 0.5rem 1rem;
                    font-weight: 600;
                }
            </style>
        """, unsafe_allow_html=True)
    except Exception as e:
        logger.error(f"Error setting up page config: {str(e)}")

def _create_cookie_manager():
    from streamlit_cookies_manager import CookieManager, EncryptedCookieManager

    settings = Environment.COOKIE_SETTINGS
    if settings['password']:
        return EncryptedCookieManager(prefix=settings['prefix'], password=settings['password'])
    logger.warning("COOKIE_PASSWORD is not set; the login cookie is stored unencrypted")
    return CookieManager(prefix=settings['prefix'])

def init_session_state():
    """
    Set up session keys and restore a saved login.

    Call once per script run. The cookie manager is a component rendered
    here; later code reaches it through get_cookie_manager().
    """
    for key in ('user', 'uid'):
        if key not in st.session_state:
            st.session_state[key] = None

    cookies = _create_cookie_manager()
    if not cookies.ready():
        # Browser cookies arrive on the next rerun
        st.stop()
    st.session_state[COOKIE_MANAGER_KEY] = cookies

    if not st.session_state['user']:
        restore_login(cookies)

def get_cookie_manager():
    return st.session_state.get(COOKIE_MANAGER_KEY)

def save_login(cookies, result: Dict[str, Any]) -> None:
    """Keep a signed-in user across page loads, e.g. the Stripe redirect"""
    if cookies is None or not result.get('refresh_token'):
        return
    cookies['uid'] = result['uid']
    cookies['refresh_token'] = result['refresh_token']
    cookies['last_login'] = str(int(time.time()))
    cookies.save()

def forget_login(cookies) -> None:
    if cookies is None:
        return
    for key in LOGIN_COOKIES:
        if key in cookies:
            del cookies[key]
    cookies.save()

def restore_login(cookies, auth_service=None) -> bool:
    """
    Sign the visitor back in from the login cookie.

    Args:
        cookies: Cookie manager of the current run
        auth_service: AuthService to refresh the saved token with

    Returns:
        bool: True if the session now holds a user
    """
    refresh_token = cookies.get('refresh_token')
    last_login = cookies.get('last_login')
    if not refresh_token or not last_login:
        return False

    max_age = Environment.COOKIE_SETTINGS['max_age_days'] * 24 * 60 * 60
    try:
        expired = time.time() - int(last_login) > max_age
    except ValueError:
        expired = True
    if expired:
        forget_login(cookies)
        return False

    if auth_service is None:
        if not FirebaseManager.initialize():
            return False
        auth_service = AuthService()

    try:
        result = auth_service.restore_session(refresh_token)
    except AppError as e:
        log_error(e, {'action': 'restore_login'})
        return False

    if not result['success']:
        forget_login(cookies)
        return False

    st.session_state['user'] = result['user']
    st.session_state['uid'] = result['uid']
    save_login(cookies, result)
    return True

def get_user_id() -> Optional[str]:
    """
    Get the current user's ID from session state.

    Returns:
        str: User ID or None if not logged in
    """
    if not st.session_state.get('user'):
        return None
    return st.session_state.get('uid')

def clear_session():
    forget_login(get_cookie_manager())
    for key in ('user', 'uid', 'enhancement_result', 'guest_result'):
        st.session_state.pop(key, None)

def require_login() -> str:
    """Return the signed-in uid, sending anonymous visitors to the login page."""
    init_session_state()
    uid = get_user_id()
    if not uid:
        # Keep the purchase notice through the login redirect
        if st.query_params.get('success') == 'true':
            st.session_state['payment_success'] = True
        st.switch_page("pages/0_login.py")
        st.stop()
    return uid

def render_sidebar(credits: Optional[int] = None):
    with st.sidebar:
        st.markdown("## 📸 Photo Enhance AI")
        user = st.session_state.get('user') or {}
        if user:
            st.caption(user.get('email', ''))
        if credits is not None:
            st.markdown(f'<div class="credits-badge">Credits: {credits}</div>', unsafe_allow_html=True)
        if user and st.button("Sign Out"):
            clear_session()
            st.switch_page("pages/0_login.py")

def format_date(value) -> str:
    """
    Format a timestamp for display.

    Args:
        value: datetime or ISO string

    Returns:
        str: Formatted date string
    """
    try:
        if isinstance(value, str):
            value = datetime.fromisoformat(value)
        return value.strftime('%Y-%m-%d %H:%M')
    except (TypeError, ValueError, AttributeError):
        return str(value) if value else ''
