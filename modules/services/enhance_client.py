from typing import Optional
import requests
from config.environment import Environment
from modules.core.error_handler import EnhancementError
import logging

class EnhanceAPIClient:
    """Calls POST /api/enhance from the UI"""

    def __init__(self, api_url: Optional[str] = None, timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None):
        settings = Environment.get_enhancement_settings()
        self.api_url = api_url or settings['api_url']
        self.timeout = timeout or settings['timeout']
        self.session = session or requests.Session()
        self.logger = logging.getLogger(__name__)

    def enhance(self, image_url: str, fallback_to_original: bool = False) -> str:
        """
        Request an enhanced version of an image

        Args:
            image_url: Download URL or data URI of the original
            fallback_to_original: Return image_url instead of raising when the
                call times out, fails or yields nothing usable

        Returns:
            str: Enhanced image reference (URL or data URI)
        """
        try:
            return self._request(image_url)
        except EnhancementError as e:
            if fallback_to_original:
                self.logger.warning(f"Enhancement unavailable, using original image: {e.message}")
                return image_url
            raise

    def _request(self, image_url: str) -> str:
        try:
            response = self.session.post(
                self.api_url,
                json={'imageUrl': image_url},
                timeout=self.timeout
            )
        except requests.Timeout as e:
            raise EnhancementError("Request timed out after 60 seconds", error_code="TIMEOUT") from e
        except requests.RequestException as e:
            raise EnhancementError("Could not reach the enhancement service", details=str(e)) from e

        try:
            data = response.json()
        except ValueError as e:
            raise EnhancementError(f"Invalid response from enhancement service ({response.status_code})") from e

        if not isinstance(data, dict):
            raise EnhancementError("Invalid response from enhancement service")

        if not response.ok:
            raise EnhancementError(data.get('error') or f"API error: {response.status_code}")

        enhanced = data.get('enhancedImageUrl')
        if data.get('error'):
            if data.get('fallback') and enhanced:
                self.logger.warning(f"Enhancement service used a fallback: {data['error']}")
            else:
                raise EnhancementError(data['error'])

        if not enhanced or not isinstance(enhanced, str):
            raise EnhancementError("No enhanced image URL returned from API")

        if not (enhanced.startswith('data:image') or enhanced.startswith('http')):
            raise EnhancementError("Enhancement service did not return an image")

        return enhanced
