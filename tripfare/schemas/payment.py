from typing import Any, Optional, Union
from pydantic import BaseModel, Field

from tripfare.schemas.pricing import PricingBreakdown, RawAmount


class PaymentIntentCreate(BaseModel):
    offer_id: Optional[str] = None
    base_amount: RawAmount = None
    passengers: Union[int, float, str, None] = None
    currency: Optional[str] = None
    ancillary_selection: Optional[dict[str, Any]] = None
    payment_intent_id: Optional[str] = None
    metadata: dict[str, str] = Field(default_factory=dict)


class PaymentIntentOut(BaseModel):
    payment_intent_id: str
    client_token: Optional[str] = None
    amount: str
    currency: str
    breakdown: PricingBreakdown
