from fastapi import APIRouter, Depends, HTTPException

from tripfare.api.deps import get_duffel_client
from tripfare.core.rate_limit import check_rate_limit
from tripfare.core.response_builders import build_offer_quote, provider_http_error
from tripfare.providers.base import ProviderError
from tripfare.providers.duffel import DuffelClient
from tripfare.schemas.quote import OfferQuoteOut
from tripfare.services.checkout import breakdown_for_offer

router = APIRouter(prefix="/hotels", tags=["hotels"], dependencies=[Depends(check_rate_limit)])


@router.get("/quotes/{rate_id}", response_model=OfferQuoteOut)
async def quote_rate(rate_id: str, client: DuffelClient = Depends(get_duffel_client)):
    if not rate_id.startswith("rate_"):
        raise HTTPException(status_code=400, detail={"error": "Invalid rate ID format", "code": "INVALID_RATE_ID"})

    try:
        quote = await client.create_stay_quote(rate_id)
    except ProviderError as e:
        raise provider_http_error(
            e, "RATE_EXPIRED", "This rate is no longer available. Please search for rooms again."
        )

    return build_offer_quote(quote, breakdown_for_offer(quote))
