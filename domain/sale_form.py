"""
Domain: validated sale form variants.

A sale form is a tagged variant keyed by channel. Both variants share
SaleFormBase; each one maps itself to the storage columns of its own
channel, so exactly one channel's field set ends up on the sale row.

Field validation (required fields, CPF length, IATA codes) happens upstream
in the API request models. These types assume already-valid input.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, ClassVar, Dict, List, Optional, Union

from .sale import SaleChannel, TripType


@dataclass(frozen=True, slots=True)
class FlightSegmentInput:
    """One itinerary leg as entered on the form."""

    origin: str
    destination: str
    date: Optional[str] = None  # free text; parsed leniently by the pipeline
    airline: Optional[str] = None  # flight / airline identifier
    miles: Optional[int] = None

    @property
    def route(self) -> str:
        return f"{self.origin}-{self.destination}"


@dataclass(frozen=True, slots=True, kw_only=True)
class SaleFormBase:
    """Fields shared by every sales channel."""

    channel: ClassVar[SaleChannel]
    sale_source: ClassVar[str]

    customer_name: str
    customer_cpf: str  # stored opaque (client_cpf_encrypted)
    passengers: int
    trip_type: TripType
    flight_segments: List[FlightSegmentInput]
    customer_phone: Optional[str] = None
    payment_method: Optional[str] = None
    notes: Optional[str] = None

    # Financials. price_total is the pre-interest price charged to the customer;
    # miles_used and boarding_fee are totals for the whole sale.
    price_total: Decimal = Decimal("0")
    boarding_fee: Decimal = Decimal("0")
    miles_used: Optional[int] = None
    price_per_passenger: Optional[Decimal] = None

    locator_code: Optional[str] = None
    airline_program: Optional[str] = None
    passenger_cpfs: List[Dict[str, str]] = field(default_factory=list)
    sale_date: Optional[datetime] = None  # bulk import: overrides created_at

    @property
    def total_miles(self) -> int:
        """Miles from the form, else the sum of per-segment miles."""

        if self.miles_used is not None:
            return int(self.miles_used)
        return sum(int(s.miles or 0) for s in self.flight_segments)

    @property
    def route_text(self) -> str:
        return ", ".join(segment.route for segment in self.flight_segments)

    def channel_row(self) -> Dict[str, Any]:
        """Storage columns specific to this form's channel."""

        raise NotImplementedError


@dataclass(frozen=True, slots=True, kw_only=True)
class InternalSaleForm(SaleFormBase):
    """Sale sourced from one of the agency's own mileage accounts."""

    channel: ClassVar[SaleChannel] = SaleChannel.INTERNAL
    sale_source: ClassVar[str] = "internal_account"

    program_id: str
    account_id: str

    def channel_row(self) -> Dict[str, Any]:
        return {
            "program_id": self.program_id,
            "mileage_account_id": self.account_id,
            "sale_source": self.sale_source,
        }


@dataclass(frozen=True, slots=True, kw_only=True)
class BalcaoSaleForm(SaleFormBase):
    """Counter sale: miles bought ad hoc from a third-party seller."""

    channel: ClassVar[SaleChannel] = SaleChannel.BALCAO
    sale_source: ClassVar[str] = "mileage_counter"

    seller_name: str
    seller_contact: str
    counter_cost_per_thousand: Decimal

    def channel_row(self) -> Dict[str, Any]:
        return {
            "seller_name": self.seller_name,
            "seller_contact": self.seller_contact,
            "counter_cost_per_thousand": str(self.counter_cost_per_thousand),
            "sale_source": self.sale_source,
        }


SaleForm = Union[InternalSaleForm, BalcaoSaleForm]

__all__ = [
    "FlightSegmentInput",
    "SaleFormBase",
    "InternalSaleForm",
    "BalcaoSaleForm",
    "SaleForm",
]
