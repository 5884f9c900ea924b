import unittest
from unittest.mock import MagicMock, patch
import stripe
from modules.core.error_handler import ValidationError, PaymentError
from modules.services.payment_service import PaymentService

class TestPaymentService(unittest.TestCase):
    def setUp(self):
        self.env_patcher = patch.dict('os.environ', {'STRIPE_SECRET_KEY': 'sk_test_123'})
        self.env_patcher.start()
        self.service = PaymentService(api_key='sk_test_123')
        self.test_user_id = "test_user_123"

    def tearDown(self):
        self.env_patcher.stop()

    @patch('modules.services.payment_service.Environment.PUBLIC_URL', 'https://photos.example.com')
    @patch('stripe.checkout.Session.create')
    def test_create_checkout_session(self, mock_create):
        mock_create.return_value = MagicMock(id='cs_test_1', url='https://checkout.stripe.com/c/cs_test_1')

        session = self.service.create_checkout_session('price_standard', self.test_user_id)

        self.assertEqual(session.id, 'cs_test_1')
        kwargs = mock_create.call_args.kwargs
        self.assertEqual(kwargs['mode'], 'payment')
        self.assertEqual(kwargs['line_items'], [{'price': 'price_standard', 'quantity': 1}])
        self.assertEqual(kwargs['metadata'], {'userId': self.test_user_id, 'priceId': 'price_standard'})
        self.assertEqual(kwargs['success_url'], 'https://photos.example.com/dashboard?success=true')
        self.assertEqual(kwargs['cancel_url'], 'https://photos.example.com/pricing?canceled=true')

    @patch('stripe.checkout.Session.create')
    def test_configured_stripe_price(self, mock_create):
        with patch.dict('os.environ', {'STRIPE_PRO_PRICE_ID': 'price_1ProLive'}):
            self.service.create_checkout_session('price_pro', self.test_user_id)
            self.assertEqual(PaymentService.plan_for_stripe_price('price_1ProLive'), 'price_pro')

        self.assertEqual(mock_create.call_args.kwargs['line_items'][0]['price'], 'price_1ProLive')
        self.assertEqual(mock_create.call_args.kwargs['metadata']['priceId'], 'price_pro')

    @patch('stripe.checkout.Session.create')
    def test_unknown_plan(self, mock_create):
        with self.assertRaises(ValidationError):
            self.service.create_checkout_session('price_enterprise', self.test_user_id)
        mock_create.assert_not_called()

    @patch('stripe.checkout.Session.create')
    def test_stripe_failure(self, mock_create):
        mock_create.side_effect = stripe.InvalidRequestError("No such price", param='line_items')
        with self.assertRaises(PaymentError):
            self.service.create_checkout_session('price_basic', self.test_user_id)

    @patch('stripe.checkout.Session.list_line_items')
    def test_get_session_price_id(self, mock_list):
        item = MagicMock()
        item.price.id = 'price_premium'
        mock_list.return_value = MagicMock(data=[item])

        self.assertEqual(self.service.get_session_price_id('cs_test_1'), 'price_premium')
        mock_list.assert_called_once_with('cs_test_1', limit=1)

if __name__ == '__main__':
    unittest.main()
