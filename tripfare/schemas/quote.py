from decimal import Decimal
from typing import Any, Optional
from pydantic import BaseModel, Field

from tripfare.schemas.booking import ServiceSelection
from tripfare.schemas.offer import NormalizedOffer
from tripfare.schemas.pricing import AncillaryRow, PricingBreakdown


class OfferQuoteOut(BaseModel):
    offer: NormalizedOffer
    breakdown: PricingBreakdown
    amount_due: str
    currency: str


class ServicePriceRequest(BaseModel):
    offer_id: str
    services: list[ServiceSelection] = Field(min_length=1)
    markup: Optional[Decimal] = Field(default=None, ge=0)


class SelectionBreakdownRequest(BaseModel):
    selection: dict[str, Any]


class AncillaryPriceOut(BaseModel):
    offer_id: Optional[str] = None
    rows: list[AncillaryRow] = Field(default_factory=list)
    total: str
    currency: str
