from decimal import Decimal
from typing import Optional, Union
from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from tripfare.core.enums import AncillaryType
from tripfare.utils.money import format_amount, to_amount

# Upstream prices arrive as numbers or numeric strings; the engine parses them.
RawAmount = Union[Decimal, int, float, str, None]


class AncillaryRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = ""
    title: str
    amount: Decimal = Decimal("0")
    # provider price before our markup, None when no markup was applied
    original_amount: Optional[Decimal] = None
    currency: str = ""
    passenger_id: Optional[str] = None
    passenger_name: Optional[str] = None
    segment_ids: tuple[str, ...] = ()
    details: str = ""
    type: AncillaryType = AncillaryType.OTHER
    quantity: int = 1

    @field_validator("amount", mode="before")
    @classmethod
    def _lenient_amount(cls, v):
        return to_amount(v)

    @property
    def provider_amount(self) -> Decimal:
        return self.amount if self.original_amount is None else self.original_amount

    @field_validator("type", mode="before")
    @classmethod
    def _lenient_type(cls, v):
        if isinstance(v, AncillaryType):
            return v
        return AncillaryType.from_raw(v)


class PricingInput(BaseModel):
    base_amount: RawAmount = None
    passengers: Union[int, float, str, None] = 1
    currency: Optional[str] = None
    ancillary_total: RawAmount = None
    markup_per_passenger: RawAmount = None
    service_per_passenger: RawAmount = None
    ancillary_rows: list[AncillaryRow] = Field(default_factory=list)


class PricingBreakdown(BaseModel):
    """Itemized price. Totals are derived from the stored components on every read."""

    model_config = ConfigDict(frozen=True)

    passengers: int
    base: Decimal
    markup_per_passenger: Decimal
    service_per_passenger: Decimal
    ancillary_total: Decimal
    currency: str
    ancillary_rows: tuple[AncillaryRow, ...] = ()

    @computed_field
    @property
    def markup_total(self) -> Decimal:
        return self.markup_per_passenger * self.passengers

    @computed_field
    @property
    def service_total(self) -> Decimal:
        return self.service_per_passenger * self.passengers

    @computed_field
    @property
    def total(self) -> Decimal:
        return self.base + self.markup_total + self.service_total + self.ancillary_total

    def amount_due(self) -> str:
        return format_amount(self.total)


class QuoteResponse(BaseModel):
    breakdown: PricingBreakdown
    amount_due: str
    currency: str
