"""Amadeus Self-Service adapter: OAuth2 client credentials and flight offer search."""
import logging
from datetime import date
from typing import Optional

import httpx

from tripfare.core.config import settings
from tripfare.core.enums import OfferKind, Provider
from tripfare.core.metrics import token_refreshes
from tripfare.core.token_cache import TokenCache
from tripfare.providers.base import ProviderError, send
from tripfare.schemas.offer import NormalizedOffer, Segment
from tripfare.utils.money import normalize_currency, to_amount

logger = logging.getLogger(__name__)

TOKEN_PATH = "/v1/security/oauth2/token"
FLIGHT_OFFERS_PATH = "/v2/shopping/flight-offers"
DEFAULT_EXPIRES_IN = 1800


def normalize_flight_offer(raw: dict) -> NormalizedOffer:
    """Map one item of an Amadeus flight-offers response."""
    price = raw.get("price") or {}
    segments = []
    for itinerary in raw.get("itineraries") or []:
        for seg in itinerary.get("segments") or []:
            departure = seg.get("departure") or {}
            arrival = seg.get("arrival") or {}
            segments.append(Segment(
                origin=departure.get("iataCode", ""),
                destination=arrival.get("iataCode", ""),
                departing_at=departure.get("at"),
                arriving_at=arrival.get("at"),
                carrier=seg.get("carrierCode", ""),
                flight_number=f"{seg.get('carrierCode', '')}{seg.get('number', '')}",
            ))

    validating = raw.get("validatingAirlineCodes") or []
    return NormalizedOffer(
        id=str(raw.get("id", "")),
        provider=Provider.AMADEUS,
        kind=OfferKind.FLIGHT,
        total_amount=to_amount(price.get("grandTotal", price.get("total"))),
        currency=normalize_currency(price.get("currency"), settings.DEFAULT_CURRENCY),
        passengers=len(raw.get("travelerPricings") or []) or 1,
        owner=validating[0] if validating else "",
        segments=segments,
    )


class AmadeusClient:
    def __init__(self, client: Optional[httpx.AsyncClient] = None, token_cache: Optional[TokenCache] = None):
        self._client = client
        self._token_cache = token_cache or TokenCache(skew=settings.TOKEN_REFRESH_SKEW)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=settings.AMADEUS_BASE_URL,
                timeout=settings.PROVIDER_TIMEOUT,
            )
        return self._client

    async def get_access_token(self) -> str:
        cached = self._token_cache.get()
        if cached:
            return cached

        if not settings.AMADEUS_CLIENT_ID:
            raise ProviderError("Amadeus credentials are not configured", status_code=500, code="NOT_CONFIGURED")

        data = await send(
            self._get_client(),
            str(Provider.AMADEUS),
            "POST",
            TOKEN_PATH,
            data={
                "grant_type": "client_credentials",
                "client_id": settings.AMADEUS_CLIENT_ID,
                "client_secret": settings.AMADEUS_CLIENT_SECRET,
            },
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        token = data.get("access_token")
        if not token:
            raise ProviderError("No access token received from Amadeus", code="AUTH_FAILED")

        self._token_cache.store(token, float(data.get("expires_in") or DEFAULT_EXPIRES_IN))
        token_refreshes.labels(provider=str(Provider.AMADEUS)).inc()
        logger.info("Amadeus token refreshed")
        return token

    async def search_flight_offers(
        self,
        origin: str,
        destination: str,
        departure_date: date,
        return_date: Optional[date] = None,
        adults: int = 1,
        currency: Optional[str] = None,
        max_results: int = 5,
    ) -> list[NormalizedOffer]:
        token = await self.get_access_token()
        params = {
            "originLocationCode": origin,
            "destinationLocationCode": destination,
            "departureDate": departure_date.isoformat(),
            "adults": adults,
            "max": max_results,
            "currencyCode": currency or settings.DEFAULT_CURRENCY,
            "nonStop": "false",
        }
        if return_date:
            params["returnDate"] = return_date.isoformat()

        data = await send(
            self._get_client(),
            str(Provider.AMADEUS),
            "GET",
            FLIGHT_OFFERS_PATH,
            params=params,
            headers={"Authorization": f"Bearer {token}"},
        )
        return [normalize_flight_offer(offer) for offer in data.get("data") or []]

    async def close(self):
        if self._client:
            await self._client.aclose()
            self._client = None


amadeus_client = AmadeusClient()
