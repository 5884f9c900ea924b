import unittest
from unittest.mock import MagicMock
from modules.api import create_app
from modules.core.error_handler import DatabaseError
from modules.services.enhancement_handler import EnhanceRequestHandler

class TestApiRoutes(unittest.TestCase):
    def setUp(self):
        self.mock = MagicMock(side_effect=lambda url: url)
        self.handler = EnhanceRequestHandler(adapter=None, mock=self.mock, use_mock=lambda: True)
        self.webhook_handler = MagicMock()
        self.app = create_app(enhancement_handler=self.handler, webhook_handler=self.webhook_handler)
        self.client = self.app.test_client()

    def test_health(self):
        response = self.client.get('/api/health')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json(), {'status': 'ok', 'mock': True})

    def test_enhance_mock_mode(self):
        response = self.client.post('/api/enhance', json={'imageUrl': 'data:image/png;base64,AAAA'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json(), {'enhancedImageUrl': 'data:image/png;base64,AAAA'})

    def test_enhance_invalid_body(self):
        response = self.client.post('/api/enhance', data='nope', content_type='application/json')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json(), {'error': 'Invalid request body'})

    def test_enhance_missing_url(self):
        response = self.client.post('/api/enhance', json={})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json(), {'error': 'Image URL is required'})

    def test_enhance_oversized_data_uri_returns_fallback(self):
        image_url = 'data:image/png;base64,' + 'A' * (33 * 1024 * 1024)

        response = self.client.post('/api/enhance', json={'imageUrl': image_url})
        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertTrue(body['fallback'])
        self.assertIn('error', body)
        self.assertEqual(body['enhancedImageUrl'], image_url)
        self.mock.assert_not_called()

    def test_enhance_internal_error_returns_null_url(self):
        self.handler._enhance = MagicMock(side_effect=RuntimeError('boom'))

        response = self.client.post('/api/enhance', json={'imageUrl': 'https://example.com/a.jpg'})
        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertIsNone(body['enhancedImageUrl'])
        self.assertTrue(body['fallback'])

    def test_webhook_passes_raw_body_and_signature(self):
        self.webhook_handler.handle_event.return_value = ({'received': True}, 200)
        response = self.client.post('/api/webhook', data=b'{"id": "evt_1"}',
                                    headers={'Stripe-Signature': 't=1,v1=abc'})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json(), {'received': True})
        self.webhook_handler.handle_event.assert_called_once_with(b'{"id": "evt_1"}', 't=1,v1=abc')

    def test_webhook_rejection_status(self):
        self.webhook_handler.handle_event.return_value = ({'error': 'Webhook Error: bad signature'}, 400)
        response = self.client.post('/api/webhook', data=b'{}')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()['error'], 'Webhook Error: bad signature')

    def test_app_error_returns_json(self):
        self.webhook_handler.handle_event.side_effect = DatabaseError("Failed to read from the database")
        response = self.client.post('/api/webhook', data=b'{}', headers={'Stripe-Signature': 't=1,v1=abc'})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.get_json()['code'], 'DATABASE_ERROR')

    def test_http_errors_return_json(self):
        response = self.client.get('/api/missing')
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()['code'], 'NOT_FOUND')

        response = self.client.get('/api/enhance')
        self.assertEqual(response.status_code, 405)
        self.assertEqual(response.get_json()['code'], 'METHOD_NOT_ALLOWED')

if __name__ == '__main__':
    unittest.main()
