import streamlit as st
import logging
from config.feature_flags import FeatureFlags
from modules.core.firebase_manager import FirebaseManager
from modules.core.error_handler import AppError, log_error
from modules.core.models import PRICING_PLANS
from modules.services.payment_service import PaymentService
from modules.services.subscription_service import SubscriptionService
from modules.utils.helpers import setup_page_config, init_session_state, get_user_id, render_sidebar, format_date

logger = logging.getLogger(__name__)

setup_page_config("Pricing - Photo Enhance AI")

def start_checkout(price_id: str, uid: str):
    try:
        session = PaymentService().create_checkout_session(price_id, uid)
        st.link_button("Continue to secure payment", session.url, type="primary", use_container_width=True)
    except AppError as e:
        error = log_error(e, {'user_id': uid, 'price_id': price_id})
        st.error(f"Could not start checkout: {error['message']}")

def main():
    init_session_state()
    uid = get_user_id()

    credits = None
    subscription = None
    if uid:
        FirebaseManager.initialize()
        subscription_service = SubscriptionService()
        subscription = subscription_service.get_active_subscription(uid)
        credits = subscription.remaining_credits if subscription else 0
    render_sidebar(credits)

    st.title("Pricing")

    if st.query_params.get('canceled') == 'true':
        st.warning("Checkout canceled. You have not been charged.")

    if subscription:
        plan = PRICING_PLANS.get(subscription.price_id)
        plan_name = plan.name if plan else subscription.price_id
        st.info(f"Current plan: {plan_name} · {subscription.remaining_credits} credits left · "
                f"valid until {format_date(subscription.period_end)}")

    columns = st.columns(len(PRICING_PLANS))
    for column, plan in zip(columns, PRICING_PLANS.values()):
        with column:
            st.subheader(plan.name)
            st.markdown(f"## {plan.price}")
            st.caption(plan.description)
            if not FeatureFlags.is_feature_enabled('credit_purchase'):
                continue
            if st.button(f"Buy {plan.name}", key=f"buy_{plan.price_id}", use_container_width=True):
                if not uid:
                    st.switch_page("pages/0_login.py")
                else:
                    start_checkout(plan.price_id, uid)

if __name__ == "__main__":
    main()
