import hashlib
import json


def cache_key(prefix: str, payload: dict) -> str:
    """Stable key for a JSON-serialisable payload, independent of key order."""
    body = json.dumps(payload, sort_keys=True, default=str)
    return f"{prefix}:{hashlib.sha256(body.encode()).hexdigest()}"
