import unittest
from unittest.mock import MagicMock, patch
import httpx
from openai import APITimeoutError
from modules.services.openai_service import EnhancementAdapter

def chat_response(content):
    response = MagicMock()
    if content is None:
        response.choices = []
    else:
        choice = MagicMock()
        choice.message.content = content
        response.choices = [choice]
    return response

def image_response(url):
    response = MagicMock()
    item = MagicMock()
    item.url = url
    response.data = [item] if url else []
    return response

@patch.dict('config.feature_flags.FeatureFlags.EXPERIMENTAL_FEATURES', {'image_regeneration': True})
class TestEnhancementAdapter(unittest.TestCase):
    def setUp(self):
        self.client = MagicMock()
        self.mock = MagicMock(side_effect=lambda url: url)
        self.image_url = 'https://example.com/photo.jpg'

    def make_adapter(self, strategy='regenerate'):
        return EnhancementAdapter(client=self.client, strategy=strategy, mock=self.mock)

    def test_without_credential_always_mock(self):
        adapter = EnhancementAdapter(api_key=None, mock=self.mock)
        self.assertTrue(adapter.is_mock)
        self.assertEqual(adapter.enhance(self.image_url), self.image_url)
        self.mock.assert_called_once_with(self.image_url)

    def test_regenerate_strategy(self):
        self.client.chat.completions.create.return_value = chat_response("A sharp product shot")
        self.client.images.generate.return_value = image_response('https://cdn.openai.com/generated.png')

        result = self.make_adapter().enhance(self.image_url)

        self.assertEqual(result, 'https://cdn.openai.com/generated.png')
        chat_kwargs = self.client.chat.completions.create.call_args.kwargs
        self.assertEqual(chat_kwargs['model'], 'gpt-4o')
        self.assertEqual(chat_kwargs['timeout'], 60)
        self.assertEqual(chat_kwargs['messages'][0]['role'], 'system')
        user_content = chat_kwargs['messages'][1]['content']
        self.assertEqual(user_content[1], {'type': 'image_url', 'image_url': {'url': self.image_url}})

        image_kwargs = self.client.images.generate.call_args.kwargs
        self.assertEqual(image_kwargs['model'], 'dall-e-3')
        self.assertIn("A sharp product shot", image_kwargs['prompt'])
        self.mock.assert_not_called()

    def test_describe_strategy_returns_text(self):
        self.client.chat.completions.create.return_value = chat_response("Enhanced description")
        result = self.make_adapter(strategy='describe').enhance(self.image_url)

        self.assertEqual(result, "Enhanced description")
        self.client.images.generate.assert_not_called()

    def test_api_error_falls_back_to_mock(self):
        request = httpx.Request('POST', 'https://api.openai.com/v1/chat/completions')
        self.client.chat.completions.create.side_effect = APITimeoutError(request=request)

        result = self.make_adapter().enhance(self.image_url)

        self.assertEqual(result, self.image_url)
        self.mock.assert_called_once_with(self.image_url)

    def test_empty_response_falls_back_to_mock(self):
        self.client.chat.completions.create.return_value = chat_response(None)
        self.assertEqual(self.make_adapter(strategy='describe').enhance(self.image_url), self.image_url)

        self.client.chat.completions.create.return_value = chat_response("desc")
        self.client.images.generate.return_value = image_response(None)
        self.assertEqual(self.make_adapter().enhance(self.image_url), self.image_url)
        self.assertEqual(self.mock.call_count, 2)

if __name__ == '__main__':
    unittest.main()
