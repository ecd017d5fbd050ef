"""Pricing quote endpoint with Redis caching"""
import logging
from fastapi import APIRouter

from tripfare.schemas.pricing import PricingBreakdown, PricingInput, QuoteResponse
from tripfare.services.pricing import compute_pricing
from tripfare.core.redis import get_redis
from tripfare.core.config import settings
from tripfare.core.metrics import cache_hits, cache_misses
from tripfare.core.response_builders import build_quote_response
from tripfare.utils.hashing import cache_key

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/quotes", tags=["quotes"])


@router.post("/calc", response_model=QuoteResponse)
async def calc_quote(req: PricingInput):

    key = cache_key("price", req.model_dump(mode="json"))
    redis = get_redis()

    if redis is not None:
        try:
            cached = await redis.get(key)
            if cached:
                cache_hits.labels(cache_key="price").inc()
                return build_quote_response(PricingBreakdown.model_validate_json(cached))
        except Exception as e:
            logger.warning(f"Cache retrieval failed: {e}")
        cache_misses.labels(cache_key="price").inc()

    breakdown = compute_pricing(req)

    if redis is not None:
        try:
            await redis.set(key, breakdown.model_dump_json(), ex=settings.PRICE_CACHE_TTL)
        except Exception as e:
            logger.warning(f"Cache write failed: {e}")

    return build_quote_response(breakdown)
