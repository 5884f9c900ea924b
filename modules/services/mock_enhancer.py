import time
import logging
from config.environment import Environment

logger = logging.getLogger(__name__)

def mock_enhance_image(image_url: str, delay: float = None) -> str:
    """Stand-in enhancer: waits and hands the image back unchanged"""
    if delay is None:
        delay = Environment.ENHANCEMENT_SETTINGS['mock_delay']
    logger.info(f"Mock enhancement, returning input after {delay}s")
    time.sleep(delay)
    return image_url
