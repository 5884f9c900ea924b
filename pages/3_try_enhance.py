import streamlit as st
import logging
from datetime import datetime
from config.feature_flags import FeatureFlags
from modules.core.error_handler import AppError, ValidationError
from modules.core.models import EnhancementStep
from modules.services.enhancement_flow import EnhancementFlow
from modules.services.image_utils import ImageFile, parse_data_uri
from modules.services.temp_storage import TempImageStore
from modules.utils.helpers import setup_page_config, init_session_state, render_sidebar

logger = logging.getLogger(__name__)

setup_page_config("Try it - Photo Enhance AI")

def show_history(store: TempImageStore):
    images = store.get_stored_images()
    if not images:
        return

    st.markdown("---")
    st.subheader("Your recent tries")
    for item in reversed(images):
        col1, col2, col3 = st.columns([1, 1, 2])
        with col1:
            original = item.get('originalThumbnail') or item.get('originalUrl')
            if original:
                st.image(original, width=100)
        with col2:
            enhanced = item.get('enhancedThumbnail') or item.get('enhancedUrl')
            if enhanced:
                st.image(enhanced, width=100)
        with col3:
            st.caption(datetime.fromtimestamp(item['timestamp'] / 1000).strftime('%Y-%m-%d %H:%M'))

    if st.button("Clear history"):
        store.clear()
        st.rerun()

def show_result(result):
    col1, col2 = st.columns(2)
    with col1:
        st.subheader("Before")
        st.image(result.original_url, use_container_width=True)
    with col2:
        st.subheader("After")
        st.image(result.enhanced_url, use_container_width=True)
        if result.enhanced_url.startswith('data:'):
            content_type, data = parse_data_uri(result.enhanced_url)
            st.download_button("Download enhanced image", data, file_name="enhanced.png", mime=content_type)
        else:
            st.link_button("Download enhanced image", result.enhanced_url)

def main():
    init_session_state()
    render_sidebar()

    st.title("Try Photo Enhance AI")

    if not FeatureFlags.is_feature_enabled('guest_enhancement'):
        st.info("Create a free account to enhance your photos.")
        return

    st.markdown("Enhance a photo without an account. Nothing is stored on our servers.")
    store = TempImageStore(st.session_state)

    result = st.session_state.get('guest_result')
    if result:
        show_result(result)
        st.info("Like the result? Create an account and buy credits to keep your enhanced photos.")
        if st.button("Try another photo"):
            st.session_state.pop('guest_result', None)
            st.rerun()
    else:
        uploaded_file = st.file_uploader("Choose a photo", type=['jpg', 'jpeg', 'png', 'webp'])
        if uploaded_file and st.button("Enhance", type="primary"):
            status = st.empty()

            def show_step(step):
                if step == EnhancementStep.AWAITING_ENHANCEMENT:
                    status.info("Enhancing with AI, this can take up to a minute...")

            flow = EnhancementFlow(on_state_change=show_step)
            try:
                st.session_state.guest_result = flow.run_guest(ImageFile.from_upload(uploaded_file), store)
                st.rerun()
            except ValidationError as e:
                status.error(e.message)
            except AppError as e:
                logger.error(f"Guest enhancement failed: {e.message}")
                status.error(f"Enhancement failed: {e.message}")
            finally:
                flow.reset()

    show_history(store)

if __name__ == "__main__":
    main()
