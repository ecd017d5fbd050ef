"""Build the one breakdown a checkout carries from quote to confirmation."""
import logging
from typing import Iterable

from tripfare.providers.duffel import DuffelClient
from tripfare.schemas.offer import NormalizedOffer
from tripfare.schemas.payment import PaymentIntentCreate
from tripfare.schemas.pricing import AncillaryRow, PricingBreakdown, PricingInput
from tripfare.services.ancillaries import rows_from_selection
from tripfare.services.pricing import compute_pricing

logger = logging.getLogger(__name__)


def breakdown_for_offer(offer: NormalizedOffer, rows: Iterable[AncillaryRow] = ()) -> PricingBreakdown:
    return compute_pricing(PricingInput(
        base_amount=offer.total_amount,
        passengers=offer.passengers,
        currency=offer.currency,
        ancillary_rows=list(rows),
    ))


async def build_checkout_breakdown(client: DuffelClient, req: PaymentIntentCreate) -> PricingBreakdown:
    """Price a checkout request.

    When an offer id is given the base fare, currency and passenger count come
    from the provider, not from the client.
    """
    rows = rows_from_selection(req.ancillary_selection)

    if req.offer_id:
        offer = await client.get_offer(req.offer_id)
        logger.info(f"Pricing checkout for offer {offer.id}: {offer.total_amount} {offer.currency}")
        return breakdown_for_offer(offer, rows)

    return compute_pricing(PricingInput(
        base_amount=req.base_amount,
        passengers=req.passengers,
        currency=req.currency,
        ancillary_rows=rows,
    ))
