import os
import tempfile
import unittest
from unittest.mock import MagicMock, patch
from scripts.setup_stripe import unit_amount, create_products_and_prices, update_env_file

class TestSetupStripe(unittest.TestCase):
    def test_unit_amount(self):
        self.assertEqual(unit_amount('R$ 47.90'), 4790)
        self.assertEqual(unit_amount('R$ 111.70'), 11170)

    @patch('stripe.Price.create')
    @patch('stripe.Product.create')
    def test_creates_one_time_price_per_plan(self, mock_product, mock_price):
        mock_product.side_effect = lambda **kwargs: MagicMock(id=f"prod_{kwargs['metadata']['price_id']}")
        mock_price.side_effect = lambda **kwargs: MagicMock(id=f"{kwargs['product']}_live")

        created = create_products_and_prices()

        self.assertEqual(created['price_basic'], 'prod_price_basic_live')
        self.assertEqual(len(created), 4)
        for call in mock_price.call_args_list:
            self.assertNotIn('recurring', call.kwargs)
            self.assertEqual(call.kwargs['currency'], 'brl')

    def test_update_env_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, '.env')
            with open(path, 'w') as f:
                f.write("STRIPE_SECRET_KEY=sk_test\nSTRIPE_BASIC_PRICE_ID=price_old")

            update_env_file({'price_basic': 'price_1Basic', 'price_pro': 'price_1Pro'}, path)

            with open(path) as f:
                lines = f.read().splitlines()

        self.assertEqual(lines, [
            'STRIPE_SECRET_KEY=sk_test',
            'STRIPE_BASIC_PRICE_ID=price_1Basic',
            'STRIPE_PRO_PRICE_ID=price_1Pro'
        ])

if __name__ == '__main__':
    unittest.main()
