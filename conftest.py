import inspect
from datetime import datetime, timedelta, timezone

import httpx
import pytest
from httpx import AsyncClient, ASGITransport

from tripfare.main import app
from tripfare.api.deps import get_amadeus_client, get_duffel_client
from tripfare.core import redis as redis_module
from tripfare.core.config import settings
from tripfare.providers.amadeus import AmadeusClient
from tripfare.providers.duffel import DuffelClient


class FakeRedis:
    """In-memory stand-in for the handful of redis.asyncio calls the service makes."""

    def __init__(self):
        self.store = {}
        self.ttls = {}

    @staticmethod
    def _encode(value):
        if isinstance(value, bytes):
            return value
        return str(value).encode()

    async def ping(self):
        return True

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = self._encode(value)
        if ex is not None:
            self.ttls[key] = ex
        return True

    async def incr(self, key):
        value = int(self.store.get(key, b"0")) + 1
        self.store[key] = self._encode(value)
        return value

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    async def aclose(self):
        self.store.clear()


@pytest.fixture
def fake_redis(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(redis_module, "redis", fake)
    return fake


@pytest.fixture
async def test_client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


def json_handler(routes):
    """MockTransport handler answering ``(METHOD, path)`` with ``(status, body)``.

    A callable body receives the request, which lets tests assert on what was sent.
    Unknown routes answer 404 in Duffel's error shape.
    """
    def handler(request: httpx.Request) -> httpx.Response:
        route = routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"errors": [{"message": "Not found", "code": "not_found"}]})
        status, body = route
        if callable(body):
            body = body(request)
        return httpx.Response(status, json=body)
    return handler


@pytest.fixture
def mock_transport():
    def _transport(routes):
        return httpx.MockTransport(json_handler(routes))
    return _transport


@pytest.fixture
def duffel_stub(mock_transport):
    """Build a DuffelClient backed by a MockTransport and install it as the app dependency."""
    def _stub(routes):
        client = DuffelClient(client=httpx.AsyncClient(
            transport=mock_transport(routes),
            base_url="https://duffel.test",
        ))
        app.dependency_overrides[get_duffel_client] = lambda: client
        return client

    yield _stub
    app.dependency_overrides.pop(get_duffel_client, None)


@pytest.fixture
def amadeus_credentials(monkeypatch):
    monkeypatch.setattr(settings, "AMADEUS_CLIENT_ID", "test-client")
    monkeypatch.setattr(settings, "AMADEUS_CLIENT_SECRET", "test-secret")


@pytest.fixture
def amadeus_stub(amadeus_credentials, mock_transport):
    def _stub(routes):
        client = AmadeusClient(client=httpx.AsyncClient(
            transport=mock_transport(routes),
            base_url="https://amadeus.test",
        ))
        app.dependency_overrides[get_amadeus_client] = lambda: client
        return client

    yield _stub
    app.dependency_overrides.pop(get_amadeus_client, None)


@pytest.fixture
def duffel_offer():
    expires_at = (datetime.now(timezone.utc) + timedelta(minutes=30)).isoformat().replace("+00:00", "Z")
    return {
        "data": {
            "id": "off_123",
            "total_amount": "200.00",
            "total_currency": "EUR",
            "expires_at": expires_at,
            "owner": {"name": "Duffel Airways", "iata_code": "ZZ"},
            "passengers": [{"id": "pas_1"}, {"id": "pas_2"}],
            "slices": [{
                "segments": [{
                    "origin": {"iata_code": "LHR"},
                    "destination": {"iata_code": "JFK"},
                    "departing_at": "2026-12-01T10:00:00",
                    "arriving_at": "2026-12-01T13:00:00",
                    "marketing_carrier": {"iata_code": "ZZ"},
                    "marketing_carrier_flight_number": "101",
                }]
            }],
        }
    }


@pytest.fixture
def bag_service():
    return {
        "data": {
            "id": "ase_bag",
            "type": "baggage",
            "total_amount": "40.00",
            "total_currency": "EUR",
            "passenger_ids": ["pas_1"],
            "segment_ids": ["seg_1"],
            "metadata": {"maximum_weight_kg": 23, "type": "checked"},
        }
    }


@pytest.fixture
def passenger_data():
    return {
        "id": "pas_1",
        "title": "ms",
        "first_name": "Ada",
        "last_name": "Lovelace",
        "date_of_birth": "1990-12-10",
        "gender": "female",
        "email": "ada@example.com",
        "phone": "07700900123",
    }


@pytest.fixture
def app_settings():
    return settings


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
    config.addinivalue_line(
        "markers", "pricing: marks tests related to pricing"
    )
    config.addinivalue_line(
        "markers", "providers: marks tests related to upstream providers"
    )
    config.addinivalue_line(
        "markers", "payments: marks tests related to payment intents"
    )
    config.addinivalue_line(
        "markers", "bookings: marks tests related to booking confirmation"
    )
    config.addinivalue_line(
        "markers", "webhooks: marks tests related to webhooks"
    )
    config.addinivalue_line(
        "markers", "rate_limit: marks tests related to rate limiting"
    )
    config.addinivalue_line(
        "markers", "idempotency: marks tests related to idempotency"
    )


def pytest_collection_modifyitems(config, items):
    for item in items:
        if inspect.iscoroutinefunction(getattr(item, "function", None)):
            item.add_marker(pytest.mark.asyncio)
