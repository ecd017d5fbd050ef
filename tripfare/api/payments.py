import logging
from typing import Optional
from fastapi import APIRouter, Depends, Header, HTTPException

from tripfare.api.deps import get_duffel_client
from tripfare.core.config import settings
from tripfare.core.rate_limit import check_rate_limit
from tripfare.core.response_builders import provider_http_error
from tripfare.providers.base import ProviderError
from tripfare.providers.duffel import DuffelClient
from tripfare.schemas.payment import PaymentIntentCreate, PaymentIntentOut
from tripfare.services.checkout import build_checkout_breakdown
from tripfare.services.payments import PaymentLimitError, create_payment_intent
from tripfare.utils.idempotency import get_idempotent, set_idempotent

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/payments", tags=["payments"], dependencies=[Depends(check_rate_limit)])


@router.post("/intents", response_model=PaymentIntentOut)
async def create_intent(
    payload: PaymentIntentCreate,
    idempotency_key: Optional[str] = Header(None),
    client: DuffelClient = Depends(get_duffel_client),
):
    if idempotency_key:
        prev = await get_idempotent(idempotency_key, scope="payments")
        if prev:
            return prev

    try:
        breakdown = await build_checkout_breakdown(client, payload)
        intent = await create_payment_intent(
            client,
            breakdown,
            metadata=payload.metadata,
            intent_id=payload.payment_intent_id,
        )
    except PaymentLimitError as e:
        raise HTTPException(status_code=400, detail={
            "error": str(e),
            "code": "amount_exceeds_maximum",
            "limit": str(settings.PAYMENT_LIMIT_GBP),
            "currency": "GBP",
        })
    except ProviderError as e:
        raise provider_http_error(e, "OFFER_INVALID", "The selected offer is no longer available.")

    if idempotency_key:
        await set_idempotent(idempotency_key, intent.model_dump(mode="json"), scope="payments")
    return intent
