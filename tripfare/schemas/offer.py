from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field

from tripfare.core.enums import OfferKind, Provider


class Segment(BaseModel):
    origin: str = ""
    destination: str = ""
    departing_at: Optional[str] = None
    arriving_at: Optional[str] = None
    carrier: str = ""
    flight_number: str = ""


class NormalizedOffer(BaseModel):
    """Provider-independent view of a priced flight or stay."""

    id: str
    provider: Provider
    kind: OfferKind
    total_amount: Decimal
    currency: str
    passengers: int = 1
    expires_at: Optional[datetime] = None
    owner: str = ""
    segments: list[Segment] = Field(default_factory=list)
    check_in_date: Optional[str] = None
    check_out_date: Optional[str] = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and now > self.expires_at
