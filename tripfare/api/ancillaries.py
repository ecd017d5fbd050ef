import logging
from fastapi import APIRouter, Depends, HTTPException

from tripfare.api.deps import get_duffel_client
from tripfare.core.config import settings
from tripfare.core.rate_limit import check_rate_limit
from tripfare.providers.duffel import DuffelClient
from tripfare.schemas.quote import AncillaryPriceOut, SelectionBreakdownRequest, ServicePriceRequest
from tripfare.services.ancillaries import price_offer_services, rows_from_selection
from tripfare.services.pricing import sum_rows
from tripfare.utils.money import format_amount

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/ancillaries", tags=["ancillaries"], dependencies=[Depends(check_rate_limit)])


@router.post("/price", response_model=AncillaryPriceOut)
async def price_services(payload: ServicePriceRequest, client: DuffelClient = Depends(get_duffel_client)):
    rows = await price_offer_services(
        client,
        [(s.id, s.quantity) for s in payload.services],
        markup=payload.markup,
    )
    if not rows:
        raise HTTPException(status_code=404, detail="None of the selected services could be priced")

    currency = rows[-1].currency or settings.DEFAULT_CURRENCY
    logger.info(f"Priced {len(rows)}/{len(payload.services)} services for offer {payload.offer_id}")
    return AncillaryPriceOut(
        offer_id=payload.offer_id,
        rows=rows,
        total=format_amount(sum_rows(rows)),
        currency=currency,
    )


@router.post("/breakdown", response_model=AncillaryPriceOut)
async def selection_breakdown(payload: SelectionBreakdownRequest):
    rows = rows_from_selection(payload.selection)
    currency = rows[0].currency if rows else settings.DEFAULT_CURRENCY
    return AncillaryPriceOut(
        rows=rows,
        total=format_amount(sum_rows(rows)),
        currency=currency,
    )
