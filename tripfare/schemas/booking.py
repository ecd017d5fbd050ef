from pydantic import BaseModel, Field
from typing import Optional
from tripfare.core.enums import BookingStatus
from tripfare.schemas.pricing import RawAmount


class PassengerIn(BaseModel):
    id: Optional[str] = None
    title: str = "mr"
    first_name: str
    last_name: str
    date_of_birth: str
    gender: Optional[str] = None
    email: str
    phone: Optional[str] = None
    document_type: str = "passport"
    document_number: Optional[str] = None
    document_issuing_country_code: Optional[str] = None
    document_expiry_date: Optional[str] = None


class ServiceSelection(BaseModel):
    id: str
    quantity: int = 1


class BookingConfirm(BaseModel):
    payment_intent_id: str
    offer_id: str
    amount: RawAmount
    currency: Optional[str] = None
    passengers: list[PassengerIn] = Field(min_length=1)
    services: list[ServiceSelection] = Field(default_factory=list)
    metadata: dict[str, str] = Field(default_factory=dict)


class BookingResult(BaseModel):
    success: bool
    status: BookingStatus
    error: Optional[str] = None
    order_id: Optional[str] = None
    booking_reference: Optional[str] = None
    payment_intent_id: Optional[str] = None
    amount: Optional[str] = None
    currency: Optional[str] = None
