from fastapi import HTTPException, Request
from tripfare.core.redis import get_redis
from tripfare.core.config import settings
from tripfare.core.metrics import rate_limit_exceeded

async def check_rate_limit(request: Request):
    redis = get_redis()
    if redis is None:
        return
    client = request.client.host if request.client else "anonymous"
    key = f"rl:{client}"
    current = await redis.get(key)
    if current is None:
        await redis.set(key, "1", ex=settings.RATE_LIMIT_WINDOW)
        return
    count = int(current)
    if count >= settings.RATE_LIMIT:
        rate_limit_exceeded.labels(client=client).inc()
        raise HTTPException(status_code=429, detail="Rate limit exceeded")
    await redis.incr(key)
