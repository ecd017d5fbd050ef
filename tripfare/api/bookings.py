from fastapi import APIRouter, Depends, Header
from typing import Optional

from tripfare.api.deps import get_duffel_client
from tripfare.core.rate_limit import check_rate_limit
from tripfare.core.response_builders import provider_http_error
from tripfare.providers.base import ProviderError
from tripfare.providers.duffel import DuffelClient
from tripfare.schemas.booking import BookingConfirm, BookingResult
from tripfare.services.bookings import confirm_booking
from tripfare.utils.idempotency import get_idempotent, set_idempotent

router = APIRouter(prefix="/bookings", tags=["bookings"], dependencies=[Depends(check_rate_limit)])


@router.post("/confirm", response_model=BookingResult)
async def confirm(
    payload: BookingConfirm,
    idempotency_key: Optional[str] = Header(None),
    client: DuffelClient = Depends(get_duffel_client),
):
    if idempotency_key:
        prev = await get_idempotent(idempotency_key, scope="bookings")
        if prev:
            return prev

    try:
        result = await confirm_booking(client, payload)
    except ProviderError as e:
        raise provider_http_error(e)

    if idempotency_key and result.success:
        await set_idempotent(idempotency_key, result.model_dump(mode="json"), scope="bookings")
    return result


@router.get("/orders/{order_id}")
async def get_order(order_id: str, client: DuffelClient = Depends(get_duffel_client)):
    try:
        return await client.get_order(order_id)
    except ProviderError as e:
        raise provider_http_error(e, "ORDER_NOT_FOUND", f"Order {order_id} not found")
