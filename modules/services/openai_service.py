from typing import Optional, Callable
from openai import OpenAI, OpenAIError
from config.environment import Environment
from config.feature_flags import FeatureFlags
from modules.services.mock_enhancer import mock_enhance_image
import logging

class EnhancementAdapter:
    """
    Wraps the OpenAI calls that produce an enhanced image.

    Without an API key there is no client and every call goes to the mock
    enhancer. Any failure or empty answer from OpenAI also falls back to the
    mock; there are no retries.
    """

    SYSTEM_PROMPT = (
        "You are an expert in photo enhancement, specialised in high-end advertising "
        "photography. You know how professional studios light, frame and retouch product "
        "and portrait shots for premium campaigns."
    )

    USER_PROMPT = (
        "Improve the lighting, framing and details of this photo as if it were taken in a "
        "premium advertising shoot. Keep a realistic depth of field, balanced contrast, vivid "
        "colours and sharp focus on the subject, with a soft bokeh background like a 50mm "
        "f/1.2 lens."
    )

    DESCRIBE_INSTRUCTION = (
        "Describe in detail the enhanced version of this photo: subject, composition, "
        "lighting, colours, background and lens characteristics."
    )

    MAX_IMAGE_PROMPT_LENGTH = 4000

    def __init__(self, api_key: Optional[str] = None, client=None, strategy: str = 'regenerate',
                 timeout: float = 60, vision_model: str = 'gpt-4o', image_model: str = 'dall-e-3',
                 mock: Callable[[str], str] = mock_enhance_image):
        self.logger = logging.getLogger(__name__)
        self.strategy = strategy
        self.timeout = timeout
        self.vision_model = vision_model
        self.image_model = image_model
        self.mock = mock

        if client is None and api_key:
            client = OpenAI(api_key=api_key, timeout=timeout, max_retries=0)
        self.client = client

        if self.client is None:
            self.logger.warning("No OpenAI credential configured, enhancement will use the mock")

    @classmethod
    def from_settings(cls) -> 'EnhancementAdapter':
        """Build the adapter from ENHANCEMENT_SETTINGS"""
        settings = Environment.get_enhancement_settings()
        return cls(
            api_key=settings['openai_api_key'],
            strategy=settings['strategy'],
            timeout=settings['timeout'],
            vision_model=settings['vision_model'],
            image_model=settings['image_model']
        )

    @property
    def is_mock(self) -> bool:
        return self.client is None

    def enhance(self, image_url: str) -> str:
        """
        Enhance an image

        Args:
            image_url: http(s) URL or data URI of the photo

        Returns:
            str: URL of the generated image (regenerate), the model's text
            (describe), or the mock result when OpenAI is unavailable
        """
        if self.client is None:
            return self.mock(image_url)

        try:
            if self.strategy == 'regenerate' and FeatureFlags.is_feature_enabled('image_regeneration'):
                result = self._regenerate(image_url)
            else:
                result = self._describe(image_url)
        except OpenAIError as e:
            self.logger.error(f"OpenAI enhancement failed, using mock: {str(e)}")
            return self.mock(image_url)

        if not result:
            self.logger.warning("OpenAI returned no usable content, using mock")
            return self.mock(image_url)

        return result

    def _describe(self, image_url: str, instruction: Optional[str] = None) -> Optional[str]:
        text = self.USER_PROMPT if instruction is None else f"{self.USER_PROMPT}\n\n{instruction}"
        response = self.client.chat.completions.create(
            model=self.vision_model,
            messages=[
                {"role": "system", "content": self.SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": text},
                        {"type": "image_url", "image_url": {"url": image_url}}
                    ]
                }
            ],
            max_tokens=1000,
            timeout=self.timeout
        )

        if not response.choices:
            return None
        return response.choices[0].message.content

    def _regenerate(self, image_url: str) -> Optional[str]:
        description = self._describe(image_url, self.DESCRIBE_INSTRUCTION)
        if not description:
            return None

        prompt = f"{self.USER_PROMPT}\n\n{description}"[:self.MAX_IMAGE_PROMPT_LENGTH]
        self.logger.info(f"Generating enhanced image with {self.image_model}")
        response = self.client.images.generate(
            model=self.image_model,
            prompt=prompt,
            n=1,
            size="1024x1024",
            quality="hd",
            timeout=self.timeout
        )

        if not response.data:
            return None
        return response.data[0].url
