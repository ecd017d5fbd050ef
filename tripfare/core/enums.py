from enum import Enum


class AncillaryType(str, Enum):
    BAGS = "bags"
    SEATS = "seats"
    CANCEL_FOR_ANY_REASON = "cancel_for_any_reason"
    OTHER = "ancillary"

    def __str__(self):
        return self.value

    @classmethod
    def from_raw(cls, raw: str | None) -> "AncillaryType":
        value = (raw or "").lower()
        if "bag" in value:
            return cls.BAGS
        if "seat" in value:
            return cls.SEATS
        if "cancel" in value:
            return cls.CANCEL_FOR_ANY_REASON
        return cls.OTHER


class OfferKind(str, Enum):
    FLIGHT = "flight"
    STAY = "stay"

    def __str__(self):
        return self.value


class Provider(str, Enum):
    AMADEUS = "amadeus"
    DUFFEL = "duffel"

    def __str__(self):
        return self.value


class BookingStatus(str, Enum):
    COMPLETED = "completed"
    AMOUNT_MISMATCH = "amount_mismatch"
    INTENT_UNKNOWN = "intent_unknown"
    OFFER_INVALID = "offer_invalid"
    OFFER_EXPIRED = "offer_expired"
    PAYMENT_FAILED = "payment_failed"
    REQUIRES_ACTION = "requires_action"
    ORDER_CREATION_FAILED = "order_creation_failed"

    def __str__(self):
        return self.value


class WebhookEvent(str, Enum):
    PAYMENT_INTENT_CREATED = "payment_intent.created"
    BOOKING_CONFIRMED = "booking.confirmed"
    BOOKING_FAILED = "booking.failed"

    def __str__(self):
        return self.value
