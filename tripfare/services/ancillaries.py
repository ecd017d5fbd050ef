"""Ancillary rows: markup per type and normalisation of selection payloads."""
import logging
from decimal import Decimal
from typing import Iterable, Optional

from tripfare.core.config import settings
from tripfare.core.enums import AncillaryType
from tripfare.providers.base import ProviderError
from tripfare.providers.duffel import ANCILLARY_TITLES, DuffelClient
from tripfare.schemas.pricing import AncillaryRow
from tripfare.utils.money import normalize_currency, to_amount, to_count

logger = logging.getLogger(__name__)

ANCILLARY_MARKUP = {
    AncillaryType.BAGS: (settings.BAG_MARKUP_AMOUNT, settings.BAG_MARKUP_RATE),
    AncillaryType.SEATS: (settings.SEAT_MARKUP_AMOUNT, settings.SEAT_MARKUP_RATE),
    AncillaryType.CANCEL_FOR_ANY_REASON: (settings.CFAR_MARKUP_AMOUNT, settings.CFAR_MARKUP_RATE),
}

DEFAULT_DETAILS = {
    AncillaryType.BAGS: "Checked baggage",
    AncillaryType.SEATS: "Seat selection",
    AncillaryType.CANCEL_FOR_ANY_REASON: "Trip cancellation protection",
}


def apply_ancillary_markup(row: AncillaryRow, rate: Optional[Decimal] = None) -> AncillaryRow:
    """Return a copy of the row with our markup included in its amount.

    With an explicit rate the markup is ``amount * rate``; otherwise the fixed
    amount and rate configured for the row type apply. Rows that already carry
    an original amount are returned as is.
    """
    if row.original_amount is not None:
        return row
    if rate is not None:
        markup = row.amount * rate
    else:
        fixed, pct = ANCILLARY_MARKUP.get(row.type, (Decimal("0"), Decimal("0")))
        markup = fixed + row.amount * pct
    return row.model_copy(update={"amount": row.amount + markup, "original_amount": row.amount})


def _details(item: dict, kind: AncillaryType) -> str:
    if kind == AncillaryType.BAGS and item.get("maximum_weight_kg"):
        return f"{item['maximum_weight_kg']}kg bag"
    if kind == AncillaryType.SEATS and item.get("designator"):
        return f"Seat {item['designator']}"
    return str(item.get("description") or DEFAULT_DETAILS.get(kind, ""))


def _row(item: dict, kind: Optional[AncillaryType] = None, title: Optional[str] = None) -> AncillaryRow:
    if kind is None:
        kind = AncillaryType.from_raw(item.get("type"))
    price = item.get("price") if isinstance(item.get("price"), dict) else {}
    passenger_ids = _as_list(item.get("passenger_ids") or None)
    segment_ids = item.get("segment_ids") or []
    if not isinstance(segment_ids, list):
        segment_ids = [segment_ids]
    if not segment_ids and item.get("segment_id"):
        segment_ids = [item["segment_id"]]
    passenger_id = item.get("passenger_id") or (passenger_ids[0] if passenger_ids else None)
    return AncillaryRow(
        id=str(item.get("id", "")),
        title=str(title or item.get("name") or ANCILLARY_TITLES.get(kind, item.get("type") or "Extra")),
        amount=item.get("total_amount", price.get("amount")),
        currency=normalize_currency(item.get("total_currency", price.get("currency")), settings.DEFAULT_CURRENCY),
        passenger_id=str(passenger_id) if passenger_id is not None else None,
        segment_ids=tuple(str(s) for s in segment_ids),
        details=_details(item, kind),
        type=kind,
        quantity=to_count(item.get("quantity")),
    )


def _as_list(value) -> list:
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


def _dicts(value) -> list[dict]:
    items = _as_list(value)
    dropped = len(items) - sum(isinstance(i, dict) for i in items)
    if dropped:
        logger.warning(f"Ignoring {dropped} malformed ancillary item(s)")
    return [i for i in items if isinstance(i, dict)]


def rows_from_selection(selection: Optional[dict]) -> list[AncillaryRow]:
    """Normalize an ancillary selection into ordered rows.

    Accepts the selection component's state (``*SelectedServices`` lists), a flat
    ``services`` array, or a ``metadata`` map keyed by ancillary type.
    """
    if not selection:
        return []

    state_keys = (
        ("baggageSelectedServices", AncillaryType.BAGS),
        ("seatSelectedServices", AncillaryType.SEATS),
        ("cfarSelectedServices", AncillaryType.CANCEL_FOR_ANY_REASON),
    )
    if any(key in selection for key, _ in state_keys):
        rows = []
        for key, kind in state_keys:
            for item in _dicts(selection.get(key)):
                rows.append(_row(item, kind, ANCILLARY_TITLES[kind]))
        return rows

    if isinstance(selection.get("services"), list):
        return [_row(item) for item in _dicts(selection["services"])]

    metadata = selection.get("metadata")
    if isinstance(metadata, dict):
        rows = []
        for kind, key in ((AncillaryType.BAGS, "bags"), (AncillaryType.SEATS, "seats")):
            groups = metadata.get(key) or {}
            for items in (groups.values() if isinstance(groups, dict) else [groups]):
                for item in _dicts(items):
                    rows.append(_row(item, kind, ANCILLARY_TITLES[kind]))
        for item in _dicts(metadata.get("cancel_for_any_reason")):
            kind = AncillaryType.CANCEL_FOR_ANY_REASON
            rows.append(_row(item, kind, ANCILLARY_TITLES[kind]))
        return rows

    logger.info("Ancillary selection has no recognised structure")
    return []


async def price_offer_services(
    client: DuffelClient,
    services: Iterable[tuple[str, int]],
    markup: Optional[Decimal] = None,
) -> list[AncillaryRow]:
    """Fetch each selected offer service and price it with markup.

    Services that cannot be fetched or have no price are skipped.
    """
    rows = []
    for service_id, quantity in services:
        try:
            row = await client.get_offer_service(service_id)
        except ProviderError as e:
            logger.error(f"Offer service {service_id} could not be fetched: {e.message}")
            continue
        if not row.amount:
            logger.warning(f"Offer service {service_id} has no price, skipping")
            continue
        quantity = max(1, quantity)
        if quantity > 1:
            row = row.model_copy(update={"amount": row.amount * quantity, "quantity": quantity})
        rows.append(apply_ancillary_markup(row, rate=markup))
    return rows
