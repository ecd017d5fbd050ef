"""Booking confirmation: charge exactly what the payment intent promised, then order."""
import logging
from datetime import datetime, timezone

from tripfare.core.enums import BookingStatus, WebhookEvent
from tripfare.core.metrics import bookings
from tripfare.providers.base import ProviderError
from tripfare.providers.duffel import DuffelClient
from tripfare.schemas.booking import BookingConfirm, BookingResult
from tripfare.services.passengers import to_duffel_passenger
from tripfare.services.payments import load_intent_breakdown
from tripfare.services.pricing import verify_amount
from tripfare.services.webhook import send_webhook
from tripfare.utils.money import format_amount, normalize_currency

logger = logging.getLogger(__name__)


def _fail(status: BookingStatus, error: str, req: BookingConfirm) -> BookingResult:
    bookings.labels(status=str(status)).inc()
    logger.warning(f"Booking for intent {req.payment_intent_id} failed: {status} ({error})")
    return BookingResult(
        success=False,
        status=status,
        error=error,
        payment_intent_id=req.payment_intent_id,
    )


async def confirm_booking(client: DuffelClient, req: BookingConfirm) -> BookingResult:
    breakdown = await load_intent_breakdown(req.payment_intent_id)
    if breakdown is None:
        return _fail(BookingStatus.INTENT_UNKNOWN, "No pricing recorded for this payment intent", req)

    currency = normalize_currency(req.currency, breakdown.currency)
    if currency != breakdown.currency or not verify_amount(breakdown, req.amount):
        return _fail(
            BookingStatus.AMOUNT_MISMATCH,
            f"Amount {req.amount} {currency} does not match {breakdown.amount_due()} {breakdown.currency}",
            req,
        )

    try:
        offer = await client.get_offer(req.offer_id)
    except ProviderError as e:
        if e.status_code in (400, 404, 422):
            return _fail(BookingStatus.OFFER_INVALID, "The selected offer is no longer available", req)
        raise
    if offer.is_expired(datetime.now(timezone.utc)):
        return _fail(BookingStatus.OFFER_EXPIRED, "The selected offer has expired", req)

    try:
        intent = await client.confirm_payment_intent(req.payment_intent_id)
    except ProviderError as e:
        return _fail(BookingStatus.PAYMENT_FAILED, e.message, req)

    intent_status = intent.get("status")
    if intent_status == "requires_action":
        return _fail(BookingStatus.REQUIRES_ACTION, "Additional authentication required", req)
    if intent_status != "succeeded":
        return _fail(BookingStatus.PAYMENT_FAILED, f"Payment intent status is {intent_status}", req)

    provider_amount = offer.total_amount + sum(row.provider_amount for row in breakdown.ancillary_rows)
    try:
        order = await client.create_order(
            offer.id,
            [to_duffel_passenger(p) for p in req.passengers],
            amount=format_amount(provider_amount),
            currency=offer.currency,
            metadata={
                **req.metadata,
                "payment_intent_id": req.payment_intent_id,
                "amount": breakdown.amount_due(),
                "currency": breakdown.currency,
            },
            services=[s.model_dump() for s in req.services],
        )
    except ProviderError as e:
        logger.error(f"Payment {req.payment_intent_id} captured but order creation failed: {e.message}")
        await send_webhook(WebhookEvent.BOOKING_FAILED, {
            "payment_intent_id": req.payment_intent_id,
            "offer_id": offer.id,
            "error": e.message,
        })
        return _fail(BookingStatus.ORDER_CREATION_FAILED, e.message, req)

    result = BookingResult(
        success=True,
        status=BookingStatus.COMPLETED,
        order_id=order.get("id"),
        booking_reference=order.get("booking_reference"),
        payment_intent_id=req.payment_intent_id,
        amount=breakdown.amount_due(),
        currency=breakdown.currency,
    )
    bookings.labels(status=str(result.status)).inc()
    logger.info(f"Order {result.order_id} created for intent {req.payment_intent_id}")

    await send_webhook(WebhookEvent.BOOKING_CONFIRMED, {
        "order_id": result.order_id,
        "booking_reference": result.booking_reference,
        "payment_intent_id": req.payment_intent_id,
        "amount": result.amount,
        "currency": result.currency,
    })
    return result
