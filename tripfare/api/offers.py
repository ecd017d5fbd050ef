import logging
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, Query

from tripfare.api.deps import get_amadeus_client, get_duffel_client
from tripfare.core.rate_limit import check_rate_limit
from tripfare.core.response_builders import build_offer_quote, provider_http_error
from tripfare.providers.amadeus import AmadeusClient
from tripfare.providers.base import ProviderError
from tripfare.providers.duffel import DuffelClient
from tripfare.schemas.quote import OfferQuoteOut
from tripfare.services.checkout import breakdown_for_offer

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/offers", tags=["offers"], dependencies=[Depends(check_rate_limit)])


@router.get("/search", response_model=List[OfferQuoteOut])
async def search_offers(
    origin: str = Query(..., min_length=3, max_length=3),
    destination: str = Query(..., min_length=3, max_length=3),
    departure_date: date = Query(...),
    return_date: Optional[date] = Query(None),
    adults: int = Query(1, ge=1, le=9),
    currency: Optional[str] = Query(None, min_length=3, max_length=3),
    limit: int = Query(5, ge=1, le=50),
    client: AmadeusClient = Depends(get_amadeus_client),
):
    try:
        offers = await client.search_flight_offers(
            origin.upper(),
            destination.upper(),
            departure_date,
            return_date=return_date,
            adults=adults,
            currency=currency,
            max_results=limit,
        )
    except ProviderError as e:
        raise provider_http_error(e)

    logger.info(f"{len(offers)} offers found for {origin}-{destination} on {departure_date}")
    return [build_offer_quote(offer, breakdown_for_offer(offer)) for offer in offers]


@router.get("/{offer_id}/quote", response_model=OfferQuoteOut)
async def quote_offer(offer_id: str, client: DuffelClient = Depends(get_duffel_client)):
    try:
        offer = await client.get_offer(offer_id)
    except ProviderError as e:
        raise provider_http_error(e, "OFFER_INVALID", "This offer is no longer available. Please search again.")

    return build_offer_quote(offer, breakdown_for_offer(offer))
