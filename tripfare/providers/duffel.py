"""Duffel adapter: air offers, offer services, orders, stays quotes and payment intents."""
import logging
from typing import Any, Optional

import httpx

from tripfare.core.config import settings
from tripfare.core.enums import AncillaryType, OfferKind, Provider
from tripfare.providers.base import ProviderError, parse_timestamp, send
from tripfare.schemas.offer import NormalizedOffer, Segment
from tripfare.schemas.pricing import AncillaryRow
from tripfare.utils.money import normalize_currency, to_amount, to_count

logger = logging.getLogger(__name__)

ANCILLARY_TITLES = {
    AncillaryType.BAGS: "Checked Bag",
    AncillaryType.SEATS: "Seat Selection",
    AncillaryType.CANCEL_FOR_ANY_REASON: "Cancellation Protection",
}


def _unwrap(payload: dict) -> dict:
    data = payload.get("data") if isinstance(payload, dict) else None
    return data if isinstance(data, dict) else payload


def normalize_offer(raw: dict) -> NormalizedOffer:
    """Map a Duffel air offer."""
    raw = _unwrap(raw)
    segments = []
    for sl in raw.get("slices") or []:
        for seg in sl.get("segments") or []:
            carrier = (seg.get("marketing_carrier") or {}).get("iata_code", "")
            segments.append(Segment(
                origin=(seg.get("origin") or {}).get("iata_code", ""),
                destination=(seg.get("destination") or {}).get("iata_code", ""),
                departing_at=seg.get("departing_at"),
                arriving_at=seg.get("arriving_at"),
                carrier=carrier,
                flight_number=f"{carrier}{seg.get('marketing_carrier_flight_number', '')}",
            ))

    return NormalizedOffer(
        id=str(raw.get("id", "")),
        provider=Provider.DUFFEL,
        kind=OfferKind.FLIGHT,
        total_amount=to_amount(raw.get("total_amount")),
        currency=normalize_currency(raw.get("total_currency"), settings.DEFAULT_CURRENCY),
        passengers=len(raw.get("passengers") or []) or 1,
        expires_at=parse_timestamp(raw.get("expires_at")),
        owner=(raw.get("owner") or {}).get("name", ""),
        segments=segments,
    )


def normalize_stay_quote(raw: dict) -> NormalizedOffer:
    """Map a Duffel stays quote. Guests take the place of passengers."""
    raw = _unwrap(raw)
    guests = raw.get("guests")
    if isinstance(guests, list):
        guest_count = len(guests) or 1
    else:
        guest_count = to_count(raw.get("adults"))

    return NormalizedOffer(
        id=str(raw.get("id", "")),
        provider=Provider.DUFFEL,
        kind=OfferKind.STAY,
        total_amount=to_amount(raw.get("total_amount")),
        currency=normalize_currency(raw.get("total_currency"), settings.DEFAULT_CURRENCY),
        passengers=guest_count,
        expires_at=parse_timestamp(raw.get("expires_at")),
        owner=(raw.get("accommodation") or {}).get("name", ""),
        check_in_date=raw.get("check_in_date"),
        check_out_date=raw.get("check_out_date"),
    )


def normalize_offer_service(raw: dict) -> AncillaryRow:
    """Map a Duffel offer service (bag, seat, cancel for any reason) to an ancillary row."""
    raw = _unwrap(raw)
    kind = AncillaryType.from_raw(raw.get("type"))
    metadata = raw.get("metadata") or {}

    if kind == AncillaryType.BAGS and metadata.get("maximum_weight_kg"):
        details = f"{metadata['maximum_weight_kg']}kg bag"
    elif kind == AncillaryType.SEATS and metadata.get("designator"):
        details = f"Seat {metadata['designator']}"
    else:
        details = raw.get("name") or ""

    passenger_ids = raw.get("passenger_ids") or []
    return AncillaryRow(
        id=str(raw.get("id", "")),
        title=ANCILLARY_TITLES.get(kind, raw.get("name") or str(raw.get("type") or "Extra")),
        amount=raw.get("total_amount"),
        currency=normalize_currency(raw.get("total_currency"), settings.DEFAULT_CURRENCY),
        passenger_id=passenger_ids[0] if passenger_ids else None,
        segment_ids=tuple(raw.get("segment_ids") or ()),
        details=details,
        type=kind,
        quantity=to_count(raw.get("quantity")),
    )


class DuffelClient:
    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            if not settings.DUFFEL_API_TOKEN:
                raise ProviderError("Duffel access token is not configured", status_code=500, code="NOT_CONFIGURED")
            self._client = httpx.AsyncClient(
                base_url=settings.DUFFEL_BASE_URL,
                timeout=settings.PROVIDER_TIMEOUT,
                headers={
                    "Authorization": f"Bearer {settings.DUFFEL_API_TOKEN}",
                    "Duffel-Version": settings.DUFFEL_VERSION,
                    "Accept": "application/json",
                    "Content-Type": "application/json",
                },
            )
        return self._client

    async def _request(self, method: str, path: str, **kwargs) -> dict:
        body = await send(self._get_client(), str(Provider.DUFFEL), method, path, **kwargs)
        return _unwrap(body)

    async def get_offer(self, offer_id: str) -> NormalizedOffer:
        data = await self._request("GET", f"/air/offers/{offer_id}")
        if not data.get("id"):
            raise ProviderError("Invalid offer response from Duffel", status_code=404, code="OFFER_INVALID")
        return normalize_offer(data)

    async def get_offer_service(self, service_id: str) -> AncillaryRow:
        return normalize_offer_service(await self._request("GET", f"/air/offer_services/{service_id}"))

    async def create_stay_quote(self, rate_id: str) -> NormalizedOffer:
        data = await self._request("POST", "/stays/quotes", json={"data": {"rate_id": rate_id}})
        return normalize_stay_quote(data)

    async def create_payment_intent(self, amount: str, currency: str, metadata: dict[str, Any]) -> dict:
        return await self._request("POST", "/payments/payment_intents", json={
            "data": {
                "amount": amount,
                "currency": currency,
                "payment": {"type": "card", "card": {"capture_now": True}},
                "metadata": metadata,
                "return_url": settings.PAYMENT_RETURN_URL,
            }
        })

    async def update_payment_intent(self, intent_id: str, amount: str, currency: str, metadata: dict[str, Any]) -> dict:
        return await self._request("PATCH", f"/payments/payment_intents/{intent_id}", json={
            "data": {"amount": amount, "currency": currency, "metadata": metadata}
        })

    async def confirm_payment_intent(self, intent_id: str) -> dict:
        return await self._request("POST", f"/payments/payment_intents/{intent_id}/actions/confirm")

    async def create_order(
        self,
        offer_id: str,
        passengers: list[dict],
        amount: str,
        currency: str,
        metadata: dict[str, Any],
        services: Optional[list[dict]] = None,
    ) -> dict:
        data = {
            "type": "instant",
            "selected_offers": [offer_id],
            "passengers": passengers,
            "payments": [{"type": "balance", "amount": amount, "currency": currency}],
            "metadata": metadata,
        }
        if services:
            data["services"] = services
        return await self._request("POST", "/air/orders", json={"data": data})

    async def get_order(self, order_id: str) -> dict:
        return await self._request("GET", f"/air/orders/{order_id}", params={"return_available_services": "true"})

    async def close(self):
        if self._client:
            await self._client.aclose()
            self._client = None


duffel_client = DuffelClient()
