import json
import pytest

from tripfare.core.config import settings


@pytest.mark.pricing
class TestQuoteEndpoint:

    @pytest.mark.asyncio
    async def test_calc_quote(self, test_client):
        response = await test_client.post("/quotes/calc", json={
            "base_amount": 200, "passengers": 2, "currency": "EUR", "ancillary_total": 50,
        })

        assert response.status_code == 200
        data = response.json()
        assert data["amount_due"] == "256.00"
        assert data["currency"] == "EUR"
        assert data["breakdown"]["markup_total"] == "2.00"
        assert data["breakdown"]["service_total"] == "4.00"

    @pytest.mark.asyncio
    async def test_malformed_input_still_quotes(self, test_client):
        response = await test_client.post("/quotes/calc", json={"base_amount": "abc", "passengers": 0})

        assert response.status_code == 200
        assert response.json()["amount_due"] == "3.00"
        assert response.json()["breakdown"]["passengers"] == 1

    @pytest.mark.asyncio
    async def test_quote_cached(self, test_client, fake_redis):
        payload = {"base_amount": "99.90", "passengers": 1, "currency": "GBP"}

        first = await test_client.post("/quotes/calc", json=payload)
        cached_keys = [k for k in fake_redis.store if k.startswith("price:")]
        second = await test_client.post("/quotes/calc", json=payload)

        assert len(cached_keys) == 1
        assert fake_redis.ttls[cached_keys[0]] == settings.PRICE_CACHE_TTL
        assert first.json() == second.json()


class TestOfferEndpoints:

    @pytest.mark.asyncio
    async def test_offer_quote(self, test_client, duffel_stub, duffel_offer):
        duffel_stub({("GET", "/air/offers/off_123"): (200, duffel_offer)})

        response = await test_client.get("/offers/off_123/quote")

        assert response.status_code == 200
        data = response.json()
        assert data["offer"]["id"] == "off_123"
        assert data["offer"]["segments"][0]["flight_number"] == "ZZ101"
        assert data["amount_due"] == "206.00"

    @pytest.mark.asyncio
    async def test_offer_not_found(self, test_client, duffel_stub):
        duffel_stub({})

        response = await test_client.get("/offers/off_gone/quote")

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "OFFER_INVALID"

    @pytest.mark.asyncio
    async def test_upstream_client_error_is_bad_gateway(self, test_client, duffel_stub):
        duffel_stub({("GET", "/air/offers/off_bad"): (422, {"errors": [{"message": "Malformed id"}]})})

        response = await test_client.get("/offers/off_bad/quote")

        assert response.status_code == 502
        assert response.json()["detail"]["error"] == "Malformed id"

    @pytest.mark.asyncio
    async def test_search(self, test_client, amadeus_stub):
        offer = {
            "id": "1",
            "price": {"currency": "EUR", "grandTotal": "355.34"},
            "travelerPricings": [{"travelerId": "1"}, {"travelerId": "2"}],
        }
        amadeus_stub({
            ("POST", "/v1/security/oauth2/token"): (200, {"access_token": "tok", "expires_in": 1799}),
            ("GET", "/v2/shopping/flight-offers"): (200, {"data": [offer]}),
        })

        response = await test_client.get("/offers/search", params={
            "origin": "lis", "destination": "cdg", "departure_date": "2026-12-01", "adults": 2,
        })

        assert response.status_code == 200
        offers = response.json()
        assert len(offers) == 1
        # 355.34 + 2 * (1.00 + 2.00)
        assert offers[0]["amount_due"] == "361.34"

    @pytest.mark.asyncio
    async def test_search_validates_codes(self, test_client):
        response = await test_client.get("/offers/search", params={
            "origin": "LISBON", "destination": "CDG", "departure_date": "2026-12-01",
        })
        assert response.status_code == 422


class TestHotelEndpoints:

    @pytest.mark.asyncio
    async def test_rate_quote(self, test_client, duffel_stub):
        duffel_stub({("POST", "/stays/quotes"): (200, {"data": {
            "id": "quo_1", "total_amount": "300.00", "total_currency": "EUR", "adults": 2,
        }})})

        response = await test_client.get("/hotels/quotes/rate_abc")

        assert response.status_code == 200
        assert response.json()["amount_due"] == "306.00"
        assert response.json()["offer"]["kind"] == "stay"

    @pytest.mark.asyncio
    async def test_invalid_rate_id(self, test_client):
        response = await test_client.get("/hotels/quotes/abc")

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_RATE_ID"

    @pytest.mark.asyncio
    async def test_rate_expired(self, test_client, duffel_stub):
        duffel_stub({})

        response = await test_client.get("/hotels/quotes/rate_old")

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "RATE_EXPIRED"


class TestAncillaryEndpoints:

    @pytest.mark.asyncio
    async def test_price_services(self, test_client, duffel_stub, bag_service):
        duffel_stub({("GET", "/air/offer_services/ase_bag"): (200, bag_service)})

        response = await test_client.post("/ancillaries/price", json={
            "offer_id": "off_123",
            "services": [{"id": "ase_bag"}, {"id": "ase_missing"}],
        })

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == "41.80"
        assert len(data["rows"]) == 1
        assert data["rows"][0]["original_amount"] == "40.00"

    @pytest.mark.asyncio
    async def test_nothing_priced(self, test_client, duffel_stub):
        duffel_stub({})

        response = await test_client.post("/ancillaries/price", json={
            "offer_id": "off_123", "services": [{"id": "ase_missing"}],
        })
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_selection_breakdown(self, test_client):
        response = await test_client.post("/ancillaries/breakdown", json={"selection": {
            "baggageSelectedServices": [{"id": "a", "total_amount": "41.80", "total_currency": "EUR"}],
            "seatSelectedServices": [{"id": "b", "total_amount": "17.00", "total_currency": "EUR"}],
        }})

        assert response.status_code == 200
        assert response.json()["total"] == "58.80"
        assert [r["type"] for r in response.json()["rows"]] == ["bags", "seats"]

    @pytest.mark.asyncio
    async def test_malformed_selection_breakdown(self, test_client):
        response = await test_client.post("/ancillaries/breakdown", json={"selection": {
            "baggageSelectedServices": ["ase_bag"],
        }})

        assert response.status_code == 200
        assert response.json()["rows"] == []


@pytest.mark.payments
class TestPaymentEndpoints:

    def _routes(self, duffel_offer, calls):
        def create(request):
            calls.append(json.loads(request.content))
            return {"data": {"id": f"pit_{len(calls)}", "client_token": "tok"}}

        return {
            ("GET", "/air/offers/off_123"): (200, duffel_offer),
            ("POST", "/payments/payment_intents"): (200, create),
        }

    @pytest.mark.asyncio
    async def test_create_intent(self, test_client, fake_redis, duffel_stub, duffel_offer):
        calls = []
        duffel_stub(self._routes(duffel_offer, calls))

        response = await test_client.post("/payments/intents", json={
            "offer_id": "off_123",
            "ancillary_selection": {"services": [{"id": "ase_bag", "type": "bags", "total_amount": "41.80"}]},
        })

        assert response.status_code == 200
        data = response.json()
        assert data["payment_intent_id"] == "pit_1"
        assert data["amount"] == "247.80"
        assert data["amount"] == data["breakdown"]["total"]
        assert calls[0]["data"]["amount"] == "247.80"
        assert "intent:pit_1" in fake_redis.store

    @pytest.mark.asyncio
    async def test_idempotent_intent(self, test_client, fake_redis, duffel_stub, duffel_offer):
        calls = []
        duffel_stub(self._routes(duffel_offer, calls))
        headers = {"Idempotency-Key": "checkout-1"}

        first = await test_client.post("/payments/intents", json={"offer_id": "off_123"}, headers=headers)
        second = await test_client.post("/payments/intents", json={"offer_id": "off_123"}, headers=headers)

        assert first.status_code == second.status_code == 200
        assert first.json() == second.json()
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_limit_exceeded(self, test_client, duffel_stub, duffel_offer):
        calls = []
        duffel_stub(self._routes(duffel_offer, calls))

        response = await test_client.post("/payments/intents", json={"base_amount": "7000", "currency": "GBP"})

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "amount_exceeds_maximum"
        assert calls == []

    @pytest.mark.asyncio
    async def test_offer_gone(self, test_client, duffel_stub):
        duffel_stub({})

        response = await test_client.post("/payments/intents", json={"offer_id": "off_gone"})

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "OFFER_INVALID"

    @pytest.mark.asyncio
    async def test_malformed_selection_and_passengers(self, test_client, duffel_stub, duffel_offer):
        calls = []
        duffel_stub(self._routes(duffel_offer, calls))

        response = await test_client.post("/payments/intents", json={
            "base_amount": "100",
            "passengers": "abc",
            "currency": "EUR",
            "ancillary_selection": {"baggageSelectedServices": ["ase_bag"]},
        })

        assert response.status_code == 200
        assert response.json()["amount"] == "103.00"
        assert response.json()["breakdown"]["passengers"] == 1


@pytest.mark.bookings
class TestBookingEndpoints:

    @pytest.mark.asyncio
    async def test_confirm_flow(self, test_client, fake_redis, duffel_stub, duffel_offer, passenger_data):
        duffel_stub({
            ("GET", "/air/offers/off_123"): (200, duffel_offer),
            ("POST", "/payments/payment_intents"): (200, {"data": {"id": "pit_9", "client_token": "tok"}}),
            ("POST", "/payments/payment_intents/pit_9/actions/confirm"): (200, {"data": {"status": "succeeded"}}),
            ("POST", "/air/orders"): (201, {"data": {"id": "ord_9", "booking_reference": "QWERTY"}}),
        })

        intent = (await test_client.post("/payments/intents", json={"offer_id": "off_123"})).json()
        response = await test_client.post("/bookings/confirm", json={
            "payment_intent_id": intent["payment_intent_id"],
            "offer_id": "off_123",
            "amount": intent["amount"],
            "currency": intent["currency"],
            "passengers": [passenger_data],
        })

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["order_id"] == "ord_9"
        assert response.json()["amount"] == "206.00"

    @pytest.mark.asyncio
    async def test_confirm_requires_passengers(self, test_client):
        response = await test_client.post("/bookings/confirm", json={
            "payment_intent_id": "pit_1", "offer_id": "off_123", "amount": "10", "passengers": [],
        })
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_confirm_without_stored_intent(self, test_client, duffel_stub, passenger_data):
        duffel_stub({})

        response = await test_client.post("/bookings/confirm", json={
            "payment_intent_id": "pit_x", "offer_id": "off_123", "amount": "10", "passengers": [passenger_data],
        })

        assert response.status_code == 200
        assert response.json()["status"] == "intent_unknown"

    @pytest.mark.asyncio
    async def test_get_order(self, test_client, duffel_stub):
        duffel_stub({("GET", "/air/orders/ord_1"): (200, {"data": {"id": "ord_1", "booking_reference": "ABC"}})})

        response = await test_client.get("/bookings/orders/ord_1")

        assert response.status_code == 200
        assert response.json()["booking_reference"] == "ABC"

    @pytest.mark.asyncio
    async def test_get_order_missing(self, test_client, duffel_stub):
        duffel_stub({})

        response = await test_client.get("/bookings/orders/ord_x")

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "ORDER_NOT_FOUND"


class TestMonitoring:

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_readiness_without_redis(self, test_client):
        response = await test_client.get("/readiness")

        assert response.status_code == 503
        assert response.json()["ready"] is False

    @pytest.mark.asyncio
    async def test_readiness_with_redis(self, test_client, fake_redis):
        response = await test_client.get("/readiness")
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_metrics(self, test_client):
        await test_client.get("/health")
        response = await test_client.get("/metrics")

        assert response.status_code == 200
        assert "http_requests_total" in response.text
