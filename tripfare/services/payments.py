import logging
from decimal import Decimal
from typing import Optional

from tripfare.core.config import settings
from tripfare.core.enums import WebhookEvent
from tripfare.core.metrics import payment_intents
from tripfare.core.redis import get_redis
from tripfare.providers.duffel import DuffelClient
from tripfare.schemas.payment import PaymentIntentOut
from tripfare.schemas.pricing import PricingBreakdown
from tripfare.services.webhook import send_webhook
from tripfare.utils.money import format_amount

logger = logging.getLogger(__name__)


class PaymentLimitError(Exception):
    def __init__(self, amount: str, currency: str):
        super().__init__(
            f"Amount {amount} {currency} exceeds the maximum of "
            f"{settings.PAYMENT_LIMIT_GBP} GBP (or equivalent in {currency})"
        )
        self.amount = amount
        self.currency = currency


def exceeds_payment_limit(amount: Decimal, currency: str) -> bool:
    rates = settings.EXCHANGE_RATES_GBP
    rate = rates.get(currency.upper(), rates.get(settings.DEFAULT_CURRENCY, Decimal("1")))
    return amount * rate > settings.PAYMENT_LIMIT_GBP


def intent_metadata(breakdown: PricingBreakdown, extra: Optional[dict[str, str]] = None) -> dict[str, str]:
    metadata = dict(extra or {})
    metadata.update({
        "base_amount": format_amount(breakdown.base),
        "ancillary_amount": format_amount(breakdown.ancillary_total),
        "markup_total": format_amount(breakdown.markup_total),
        "service_total": format_amount(breakdown.service_total),
        "passengers": str(breakdown.passengers),
    })
    return metadata


async def store_intent_breakdown(intent_id: str, breakdown: PricingBreakdown) -> None:
    redis = get_redis()
    if redis is None:
        logger.warning(f"Redis unavailable, breakdown for intent {intent_id} not stored")
        return
    try:
        await redis.set(f"intent:{intent_id}", breakdown.model_dump_json(), ex=settings.INTENT_TTL)
    except Exception as e:
        logger.warning(f"Storing breakdown for intent {intent_id} failed: {e}")


async def load_intent_breakdown(intent_id: str) -> Optional[PricingBreakdown]:
    redis = get_redis()
    if redis is None:
        return None
    try:
        cached = await redis.get(f"intent:{intent_id}")
    except Exception as e:
        logger.warning(f"Loading breakdown for intent {intent_id} failed: {e}")
        return None
    if not cached:
        return None
    return PricingBreakdown.model_validate_json(cached)


async def create_payment_intent(
    client: DuffelClient,
    breakdown: PricingBreakdown,
    metadata: Optional[dict[str, str]] = None,
    intent_id: Optional[str] = None,
) -> PaymentIntentOut:
    """Create, or update when ``intent_id`` is given, an intent for exactly the breakdown total."""
    amount = breakdown.amount_due()
    if exceeds_payment_limit(breakdown.total, breakdown.currency):
        raise PaymentLimitError(amount, breakdown.currency)

    meta = intent_metadata(breakdown, metadata)
    if intent_id:
        data = await client.update_payment_intent(intent_id, amount, breakdown.currency, meta)
        operation = "update"
    else:
        data = await client.create_payment_intent(amount, breakdown.currency, meta)
        operation = "create"

    intent = PaymentIntentOut(
        payment_intent_id=data.get("id") or intent_id or "",
        client_token=data.get("client_token") or data.get("client_secret"),
        amount=amount,
        currency=breakdown.currency,
        breakdown=breakdown,
    )
    payment_intents.labels(operation=operation, currency=breakdown.currency).inc()
    logger.info(f"Payment intent {intent.payment_intent_id} {operation}d for {amount} {breakdown.currency}")

    await store_intent_breakdown(intent.payment_intent_id, breakdown)
    if operation == "create":
        await send_webhook(WebhookEvent.PAYMENT_INTENT_CREATED, {
            "payment_intent_id": intent.payment_intent_id,
            "amount": amount,
            "currency": breakdown.currency,
        })
    return intent
