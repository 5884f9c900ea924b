import streamlit as st
import logging
from config.environment import Environment
from modules.core.models import PRICING_PLANS
from modules.utils.helpers import setup_page_config, init_session_state, get_user_id, render_sidebar

Environment.configure_logging()
logger = logging.getLogger(__name__)

setup_page_config(Environment.APP_NAME)

def main():
    init_session_state()

    # Signed-in users land on their dashboard
    if get_user_id():
        st.switch_page("pages/1_dashboard.py")
        return

    render_sidebar()

    st.title("📸 Photo Enhance AI")
    st.markdown("### Turn everyday photos into premium advertising shots")
    st.markdown(
        "Upload a photo and our AI improves lighting, framing and detail the way a "
        "professional studio would. Try it for free, then buy credits when you need more."
    )

    col1, col2 = st.columns(2)
    with col1:
        if st.button("Try it free", type="primary", use_container_width=True):
            st.switch_page("pages/3_try_enhance.py")
    with col2:
        if st.button("Sign In", use_container_width=True):
            st.switch_page("pages/0_login.py")

    st.markdown("---")
    st.header("Pricing")
    columns = st.columns(len(PRICING_PLANS))
    for column, plan in zip(columns, PRICING_PLANS.values()):
        with column:
            st.subheader(plan.name)
            st.markdown(f"**{plan.price}**")
            st.caption(plan.description)

if __name__ == "__main__":
    main()
