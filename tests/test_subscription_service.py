import unittest
from datetime import timedelta
from modules.core.models import utcnow
from modules.database.subscription_db import SubscriptionDB
from modules.services.subscription_service import SubscriptionService
from tests.mocks.firestore import MockFirestore

class TestSubscriptionService(unittest.TestCase):
    def setUp(self):
        self.firestore = MockFirestore()
        self.service = SubscriptionService(SubscriptionDB(db=self.firestore))
        self.test_user_id = "test_user_123"

    def test_no_subscription_means_no_credits(self):
        self.assertEqual(self.service.get_remaining_credits(self.test_user_id), 0)
        self.assertFalse(self.service.has_credits(self.test_user_id))

    def test_grant_credits_standard_plan(self):
        subscription = self.service.grant_credits(self.test_user_id, 'price_standard')

        self.assertEqual(subscription.remaining_credits, 10)
        self.assertEqual(subscription.status, 'active')
        self.assertEqual(subscription.price_id, 'price_standard')
        delta = subscription.period_end - (utcnow() + timedelta(days=30))
        self.assertLess(abs(delta.total_seconds()), 60)

        self.assertEqual(self.service.get_remaining_credits(self.test_user_id), 10)
        self.assertTrue(self.service.has_credits(self.test_user_id))

    def test_grant_credits_per_plan(self):
        expected = {'price_basic': 5, 'price_standard': 10, 'price_premium': 15, 'price_pro': 20}
        for price_id, credits in expected.items():
            subscription = self.service.grant_credits(f'user_{price_id}', price_id)
            self.assertEqual(subscription.remaining_credits, credits)

    def test_grant_credits_unknown_price(self):
        self.assertIsNone(self.service.grant_credits(self.test_user_id, 'price_unknown'))
        self.assertNotIn('subscriptions', self.firestore.data)

    def test_grant_credits_quantity(self):
        subscription = self.service.grant_credits(self.test_user_id, 'price_basic', quantity=3)
        self.assertEqual(subscription.remaining_credits, 15)
        self.assertEqual(len(self.firestore.data['subscriptions']), 1)

    def test_consume_credit(self):
        subscription = self.service.grant_credits(self.test_user_id, 'price_basic')
        self.service.consume_credit(subscription.id)
        self.assertEqual(self.service.get_remaining_credits(self.test_user_id), 4)

if __name__ == '__main__':
    unittest.main()
