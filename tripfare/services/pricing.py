import logging
from decimal import Decimal
from typing import Iterable

from tripfare.core.config import settings
from tripfare.schemas.pricing import AncillaryRow, PricingBreakdown, PricingInput
from tripfare.utils.money import ZERO, normalize_currency, parse_amount, to_amount, to_count

logger = logging.getLogger(__name__)

AMOUNT_TOLERANCE = Decimal("0.01")


def _fee(value, default: Decimal) -> Decimal:
    if value is None:
        return default
    return to_amount(value)


def sum_rows(rows: Iterable[AncillaryRow]) -> Decimal:
    return sum((row.amount for row in rows), ZERO)


def compute_pricing(req: PricingInput) -> PricingBreakdown:
    """Build the price breakdown shown at quote time, charged by the payment
    intent and re-checked at confirmation.

    Never raises: malformed or negative amounts resolve to 0, passenger counts
    below 1 resolve to 1 and a missing currency falls back to the configured
    default.
    """
    raw_base = parse_amount(req.base_amount)
    if raw_base is None or raw_base < ZERO:
        logger.warning(f"Base amount {req.base_amount!r} is not a valid price, using 0")
        base = ZERO
    else:
        base = raw_base

    rows = tuple(req.ancillary_rows)
    if req.ancillary_total is None:
        ancillary_total = sum_rows(rows)
    else:
        ancillary_total = to_amount(req.ancillary_total)

    return PricingBreakdown(
        passengers=to_count(req.passengers),
        base=base,
        markup_per_passenger=_fee(req.markup_per_passenger, settings.MARKUP_PER_PASSENGER),
        service_per_passenger=_fee(req.service_per_passenger, settings.SERVICE_FEE_PER_PASSENGER),
        ancillary_total=ancillary_total,
        currency=normalize_currency(req.currency, settings.DEFAULT_CURRENCY),
        ancillary_rows=rows,
    )


def verify_amount(breakdown: PricingBreakdown, amount) -> bool:
    """True when a client-supplied amount matches the breakdown within one cent."""
    parsed = parse_amount(amount)
    if parsed is None:
        return False
    return abs(parsed - breakdown.total) <= AMOUNT_TOLERANCE
