"""Shared pieces of the upstream API clients."""
import logging
import time
from datetime import datetime, timezone
from typing import Any, Optional

import httpx

from tripfare.core.metrics import provider_request_duration, provider_requests

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    def __init__(self, message, status_code=502, code="PROVIDER_ERROR", details=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details or {}


def first_error_message(body: Any, default: str) -> str:
    """Pull the first human readable message out of a provider error body."""
    if isinstance(body, dict):
        errors = body.get("errors")
        if isinstance(errors, list) and errors and isinstance(errors[0], dict):
            return errors[0].get("message") or errors[0].get("detail") or errors[0].get("title") or default
    return default


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO 8601 provider timestamp. Values without an offset are taken as UTC."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, TypeError, ValueError):
        logger.warning(f"Unparseable provider timestamp: {value!r}")
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


async def send(client: httpx.AsyncClient, provider: str, method: str, path: str, **kwargs) -> dict:
    """Issue a request and return the decoded JSON body, raising ProviderError on failure."""
    start_time = time.time()
    try:
        response = await client.request(method, path, **kwargs)
    except httpx.TimeoutException as e:
        provider_requests.labels(provider=provider, method=method, status="timeout").inc()
        raise ProviderError(f"{provider} request timed out", status_code=504, code="TIMEOUT") from e
    except httpx.RequestError as e:
        provider_requests.labels(provider=provider, method=method, status="error").inc()
        raise ProviderError(f"{provider} request failed: {e}", status_code=502, code="UNREACHABLE") from e
    finally:
        provider_request_duration.labels(provider=provider, method=method).observe(time.time() - start_time)

    provider_requests.labels(provider=provider, method=method, status=response.status_code).inc()

    try:
        body = response.json()
    except ValueError:
        body = {"raw": response.text}

    if response.status_code >= 400:
        message = first_error_message(body, f"{provider} returned {response.status_code}")
        logger.error(f"{provider} {method} {path} failed with {response.status_code}: {message}")
        raise ProviderError(
            message,
            status_code=response.status_code,
            code="NOT_FOUND" if response.status_code == 404 else "UPSTREAM_ERROR",
            details=body,
        )
    return body
