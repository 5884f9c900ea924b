import streamlit as st
import logging
from modules.core.firebase_manager import FirebaseManager
from modules.core.error_handler import AppError, log_error
from modules.core.models import EnhancementStatus
from modules.database.enhancement_db import EnhancementDB
from modules.services.subscription_service import SubscriptionService
from modules.services.enhancement_flow import EnhancementFlow
from modules.utils.helpers import setup_page_config, require_login, render_sidebar, format_date

logger = logging.getLogger(__name__)

setup_page_config("Dashboard - Photo Enhance AI")

STATUS_LABELS = {
    EnhancementStatus.PROCESSING.value: "⏳ Processing",
    EnhancementStatus.COMPLETED.value: "✅ Completed",
    EnhancementStatus.FAILED.value: "❌ Failed",
}

def main():
    uid = require_login()
    FirebaseManager.initialize()

    subscription_service = SubscriptionService()
    enhancement_db = EnhancementDB()

    # Finish attempts interrupted by a closed tab or a crash
    if not st.session_state.get('reconciled'):
        try:
            EnhancementFlow(subscription_service=subscription_service,
                            enhancement_db=enhancement_db).reconcile(uid)
        except AppError as e:
            log_error(e, {'user_id': uid, 'action': 'reconcile'})
        st.session_state.reconciled = True

    credits = subscription_service.get_remaining_credits(uid)
    render_sidebar(credits)

    st.title("Dashboard")

    if st.query_params.get('success') == 'true' or st.session_state.pop('payment_success', False):
        st.success("Payment received! Your credits will appear in a few moments.")

    col1, col2 = st.columns(2)
    with col1:
        st.metric("Remaining credits", credits)
        if credits <= 0:
            st.warning("You have no credits left. Please purchase a subscription.")
            if st.button("Buy credits", type="primary"):
                st.switch_page("pages/4_pricing.py")
        elif st.button("Enhance a photo", type="primary"):
            st.switch_page("pages/2_enhance.py")

    enhancements = enhancement_db.get_user_photo_enhancements(uid, limit=12)
    with col2:
        st.metric("Enhanced photos", sum(1 for e in enhancements if e.status == EnhancementStatus.COMPLETED.value))

    st.markdown("---")
    st.header("Recent enhancements")
    if not enhancements:
        st.info("You have not enhanced any photos yet.")
        return

    columns = st.columns(3)
    for index, enhancement in enumerate(enhancements):
        with columns[index % 3]:
            st.image(enhancement.enhanced_url or enhancement.original_url, use_container_width=True)
            st.caption(f"{STATUS_LABELS.get(enhancement.status, enhancement.status)} · "
                       f"{format_date(enhancement.created_at)}")
            if enhancement.error:
                st.caption(enhancement.error)

if __name__ == "__main__":
    main()
