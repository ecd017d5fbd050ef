from typing import Optional
from fastapi import HTTPException
from tripfare.providers.base import ProviderError
from tripfare.schemas.offer import NormalizedOffer
from tripfare.schemas.pricing import PricingBreakdown, QuoteResponse
from tripfare.schemas.quote import OfferQuoteOut


def build_quote_response(breakdown: PricingBreakdown) -> QuoteResponse:
    return QuoteResponse(
        breakdown=breakdown,
        amount_due=breakdown.amount_due(),
        currency=breakdown.currency,
    )


def build_offer_quote(offer: NormalizedOffer, breakdown: PricingBreakdown) -> OfferQuoteOut:
    return OfferQuoteOut(
        offer=offer,
        breakdown=breakdown,
        amount_due=breakdown.amount_due(),
        currency=breakdown.currency,
    )


def provider_http_error(e: ProviderError, not_found_code: Optional[str] = None, not_found_detail: Optional[str] = None) -> HTTPException:
    if e.status_code == 404 and not_found_code:
        return HTTPException(
            status_code=404,
            detail={"error": not_found_detail or e.message, "code": not_found_code},
        )
    # upstream client errors are our gateway's failure, not the caller's
    status_code = e.status_code if e.status_code == 404 or 500 <= e.status_code < 600 else 502
    return HTTPException(status_code=status_code, detail={"error": e.message, "code": e.code})
