"""Lenient parsing of upstream amounts and presentation rounding."""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Any, Optional

ZERO = Decimal("0")
CENT = Decimal("0.01")
# anything larger is not a real fare
MAX_AMOUNT = Decimal("1e12")


def parse_amount(value: Any) -> Optional[Decimal]:
    """Parse a provider amount. Returns None when the value is not a finite number
    or is beyond ``MAX_AMOUNT`` in magnitude."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return None
    if not amount.is_finite() or abs(amount) > MAX_AMOUNT:
        return None
    return amount


def to_amount(value: Any) -> Decimal:
    """Parse an amount, resolving missing, malformed and negative values to 0."""
    amount = parse_amount(value)
    if amount is None or amount < ZERO:
        return ZERO
    return amount


def to_count(value: Any, minimum: int = 1) -> int:
    amount = parse_amount(value)
    if amount is None:
        return minimum
    return max(minimum, int(amount))


def normalize_currency(value: Any, default: str) -> str:
    code = str(value).strip().upper() if value is not None else ""
    return code or default


def format_amount(amount: Decimal) -> str:
    """Two-decimal string used wherever an amount leaves the service."""
    with localcontext() as ctx:
        # products of bounded amounts can still outgrow the default 28 digits
        ctx.prec = max(ctx.prec, amount.adjusted() + 3)
        return str(amount.quantize(CENT, rounding=ROUND_HALF_UP))
