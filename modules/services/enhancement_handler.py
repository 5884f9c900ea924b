import json
import logging
from typing import Any, Callable, Dict, Optional, Tuple, Union
from config.environment import Environment
from modules.services.mock_enhancer import mock_enhance_image

class EnhanceRequestHandler:
    """
    Request logic behind POST /api/enhance.

    Only a malformed request gets a 400. Once the request is valid the answer is
    always a 200 carrying either the enhanced image or a fallback.
    """

    def __init__(self, adapter=None, mock: Callable[[str], str] = mock_enhance_image,
                 use_mock: Optional[Callable[[], bool]] = None,
                 max_data_uri_length: Optional[int] = None):
        self.adapter = adapter
        self.mock = mock
        self.use_mock = use_mock or Environment.use_mock
        self.max_data_uri_length = (
            max_data_uri_length or Environment.ENHANCEMENT_SETTINGS['max_data_uri_length']
        )
        self.logger = logging.getLogger(__name__)

    def is_mock(self) -> bool:
        return self.use_mock() or self.adapter is None or self.adapter.is_mock

    def handle(self, raw_body: Union[str, bytes, None]) -> Tuple[Dict[str, Any], int]:
        """
        Process one enhancement request

        Args:
            raw_body: Raw JSON request body, expected as {"imageUrl": "..."}

        Returns:
            tuple: (response payload, HTTP status)
        """
        try:
            body = json.loads(raw_body or '')
        except (ValueError, TypeError):
            return {"error": "Invalid request body"}, 400

        if not isinstance(body, dict):
            return {"error": "Invalid request body"}, 400

        image_url = body.get('imageUrl')
        if not image_url or not isinstance(image_url, str):
            return {"error": "Image URL is required"}, 400

        try:
            if image_url.startswith('data:') and len(image_url) > self.max_data_uri_length:
                self.logger.warning(f"Rejected data URI of {len(image_url)} characters")
                return {
                    "error": "Image is too large. Please use an image under 20MB.",
                    "fallback": True,
                    "enhancedImageUrl": image_url
                }, 200

            return self._enhance(image_url), 200
        except Exception as e:
            self.logger.error(f"Unexpected error in enhance handler: {str(e)}")
            return {
                "error": f"Internal server error: {str(e)}",
                "fallback": True,
                "enhancedImageUrl": None
            }, 200

    def _enhance(self, image_url: str) -> Dict[str, Any]:
        use_mock = self.is_mock()
        self.logger.info(f"Enhancing image ({'mock' if use_mock else 'openai'})")
        enhancer = self.mock if use_mock else self.adapter.enhance

        try:
            return {"enhancedImageUrl": enhancer(image_url)}
        except Exception as e:
            self.logger.error(f"Enhancement failed, falling back to mock: {str(e)}")
            try:
                enhanced = self.mock(image_url)
            except Exception as mock_error:
                self.logger.error(f"Mock enhancement failed: {str(mock_error)}")
                return {
                    "enhancedImageUrl": image_url,
                    "error": "Failed to enhance image",
                    "fallback": True
                }

            return {
                "enhancedImageUrl": enhanced,
                "error": str(e) or "Failed to enhance image with AI, using fallback",
                "fallback": True
            }
