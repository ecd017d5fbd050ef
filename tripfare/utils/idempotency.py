import json
import logging
from typing import Optional
from tripfare.core.redis import get_redis
from tripfare.core.config import settings

logger = logging.getLogger(__name__)


def _key(key: str, scope: Optional[str]) -> str:
    # scoped so one client key can't replay another endpoint's response
    return f"idemp:{scope}:{key}" if scope else f"idemp:{key}"


async def get_idempotent(key: str, scope: Optional[str] = None):
    if not key:
        return None
    redis = get_redis()
    if redis is None:
        return None
    v = await redis.get(_key(key, scope))
    return json.loads(v) if v else None


async def set_idempotent(key: str, value: dict, scope: Optional[str] = None):
    redis = get_redis()
    if redis is None:
        logger.debug(f"Redis unavailable, response for idempotency key {key} not stored")
        return
    await redis.set(_key(key, scope), json.dumps(value, default=str), ex=settings.IDEMPOTENCY_TTL)
