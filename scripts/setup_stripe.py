"""
Create the Stripe products and prices of the credit plans.
Run from the project root: python -m scripts.setup_stripe
"""
import os
import stripe
import sys
from decimal import Decimal
from dotenv import load_dotenv

from modules.core.models import PRICING_PLANS
from modules.services.payment_service import PaymentService

# Load environment variables
load_dotenv()

CURRENCY = "brl"

def unit_amount(price: str) -> int:
    """'R$ 47.90' -> 4790"""
    return int(Decimal(price.replace('R$', '').strip()) * 100)

def create_products_and_prices():
    """Create one product and one-time price per credit plan in Stripe"""
    created = {}
    for price_id, plan in PRICING_PLANS.items():
        product = stripe.Product.create(
            name=f"{plan.name} Plan",
            description=plan.description,
            metadata={"price_id": price_id, "credits": str(plan.credits)}
        )
        price = stripe.Price.create(
            product=product.id,
            unit_amount=unit_amount(plan.price),
            currency=CURRENCY,
            metadata={"price_id": price_id}
        )
        created[price_id] = price.id
        print(f"{plan.name} ({plan.price}, {plan.credits} credits): {price.id}")
    return created

def update_env_file(created, path='.env'):
    """Write STRIPE_<PLAN>_PRICE_ID lines, replacing existing ones"""
    lines = []
    if os.path.exists(path):
        with open(path, 'r') as f:
            lines = f.readlines()
        if lines and not lines[-1].endswith('\n'):
            lines[-1] += '\n'

    remaining = {PaymentService.price_env_key(price_id): stripe_price for price_id, stripe_price in created.items()}
    with open(path, 'w') as f:
        for line in lines:
            key = line.split('=', 1)[0]
            if key in remaining:
                f.write(f"{key}={remaining.pop(key)}\n")
            else:
                f.write(line)
        for key, value in remaining.items():
            f.write(f"{key}={value}\n")

if __name__ == "__main__":
    stripe.api_key = os.getenv('STRIPE_SECRET_KEY')
    try:
        prices = create_products_and_prices()
        update_env_file(prices)
        print("\n✅ .env file updated with new price IDs")
    except stripe.StripeError as e:
        print(f"❌ Error creating products and prices: {str(e)}")
        sys.exit(1)
