import streamlit as st
import logging
from modules.core.firebase_manager import FirebaseManager
from modules.core.error_handler import AppError, NoCreditsError, ValidationError, log_error
from modules.core.models import EnhancementStep
from modules.services.enhancement_flow import EnhancementFlow
from modules.services.image_utils import ImageFile, format_file_size
from modules.services.subscription_service import SubscriptionService
from modules.utils.helpers import setup_page_config, require_login, render_sidebar

logger = logging.getLogger(__name__)

setup_page_config("Enhance - Photo Enhance AI")

STEP_MESSAGES = {
    EnhancementStep.VALIDATING: "Checking your credits and file...",
    EnhancementStep.COMPRESSING: "Optimising image...",
    EnhancementStep.UPLOADING: "Uploading original...",
    EnhancementStep.AWAITING_ENHANCEMENT: "Enhancing with AI, this can take up to a minute...",
    EnhancementStep.SAVING_RESULT: "Saving enhanced image...",
    EnhancementStep.CREDITING: "Updating your credits...",
    EnhancementStep.DONE: "Done!",
}

def show_result(result):
    col1, col2 = st.columns(2)
    with col1:
        st.subheader("Before")
        st.image(result.original_url, use_container_width=True)
    with col2:
        st.subheader("After")
        st.image(result.enhanced_url, use_container_width=True)
        st.link_button("Download enhanced image", result.enhanced_url, use_container_width=True)

    if result.fallback:
        st.warning("The enhancement service was unavailable, so the original image was kept.")
    if result.credit_pending:
        st.info("Your image is saved. The credit will be deducted shortly.")

def main():
    uid = require_login()
    FirebaseManager.initialize()

    subscription_service = SubscriptionService()
    credits = subscription_service.get_remaining_credits(uid)
    render_sidebar(credits)

    st.title("Enhance a Photo")

    if credits <= 0:
        st.warning(NoCreditsError().message)
        if st.button("See plans", type="primary"):
            st.switch_page("pages/4_pricing.py")
        return

    result = st.session_state.get('enhancement_result')
    if result:
        show_result(result)
        if st.button("Enhance another photo"):
            st.session_state.pop('enhancement_result', None)
            st.rerun()
        return

    uploaded_file = st.file_uploader("Choose a photo", type=['jpg', 'jpeg', 'png', 'webp'])
    if not uploaded_file:
        st.caption("Images up to 15MB. Large files are compressed before upload.")
        return

    image = ImageFile.from_upload(uploaded_file)
    st.image(image.data, caption=f"{image.name} ({format_file_size(image.size)})", width=300)

    if st.button("Enhance", type="primary"):
        status = st.empty()

        def show_step(step):
            if step in STEP_MESSAGES:
                status.info(STEP_MESSAGES[step])

        flow = EnhancementFlow(subscription_service=subscription_service, on_state_change=show_step)
        try:
            st.session_state.enhancement_result = flow.run(uid, image)
            flow.reset()
            st.rerun()
        except (NoCreditsError, ValidationError) as e:
            status.error(e.message)
        except AppError as e:
            error = log_error(e, {'user_id': uid, 'step': flow.step.value})
            status.error(f"Enhancement failed: {error['message']}")
            flow.reset()

if __name__ == "__main__":
    main()
