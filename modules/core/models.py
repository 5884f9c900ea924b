from typing import Optional, Dict, Any
from datetime import datetime, timezone
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    CANCELED = "canceled"
    PAST_DUE = "past_due"

class EnhancementStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

class EnhancementStep(str, Enum):
    """Steps of one enhancement attempt, in order"""
    IDLE = "idle"
    VALIDATING = "validating"
    COMPRESSING = "compressing"
    UPLOADING = "uploading"
    AWAITING_ENHANCEMENT = "awaiting_enhancement"
    SAVING_RESULT = "saving_result"
    CREDITING = "crediting"
    DONE = "done"
    ERROR = "error"

class FirestoreModel(BaseModel):
    """Base model for documents stored in Firestore (camelCase field names)"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, use_enum_values=True,
                              validate_default=True)

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to a Firestore document"""
        return self.model_dump(by_alias=True, exclude_none=True)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FirestoreModel':
        """Create model from a Firestore document"""
        return cls.model_validate(data)

class User(FirestoreModel):
    """Application user, keyed by the identity provider uid"""
    id: str
    email: str
    name: Optional[str] = None
    photo_url: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

class Subscription(FirestoreModel):
    """One purchase of enhancement credits"""
    id: Optional[str] = None
    user_id: str
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE
    price_id: Optional[str] = None
    quantity: int = 1
    created_at: datetime = Field(default_factory=utcnow)
    period_end: Optional[datetime] = None
    remaining_credits: int = 0

class PhotoEnhancement(FirestoreModel):
    """One enhancement attempt; step/credit_charged act as the persisted cursor"""
    id: Optional[str] = None
    user_id: str
    original_url: str
    enhanced_url: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None
    status: EnhancementStatus = EnhancementStatus.PROCESSING
    step: EnhancementStep = EnhancementStep.AWAITING_ENHANCEMENT
    credit_charged: bool = False
    error: Optional[str] = None

class ProcessedEvent(FirestoreModel):
    """Stripe event already applied by the webhook"""
    id: str
    type: str
    processed_at: datetime = Field(default_factory=utcnow)

class PricingPlan(BaseModel):
    price_id: str
    name: str
    price: str
    description: str
    credits: int

PRICING_PLANS: Dict[str, PricingPlan] = {
    'price_basic': PricingPlan(price_id='price_basic', name='Basic', price='R$ 47.90',
                               description='5 enhanced photos', credits=5),
    'price_standard': PricingPlan(price_id='price_standard', name='Standard', price='R$ 77.90',
                                  description='10 enhanced photos', credits=10),
    'price_premium': PricingPlan(price_id='price_premium', name='Premium', price='R$ 111.70',
                                 description='15 enhanced photos', credits=15),
    'price_pro': PricingPlan(price_id='price_pro', name='Pro', price='R$ 137.90',
                             description='20 enhanced photos', credits=20),
}

def credits_for_price(price_id: Optional[str]) -> int:
    """Credits granted by a purchase of the given price, 0 if unknown"""
    plan = PRICING_PLANS.get(price_id) if price_id else None
    return plan.credits if plan else 0
