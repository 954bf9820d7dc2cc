"""
Domain: Sale aggregate and flight segments.

Contract rules captured here:
- A Sale exclusively owns its FlightSegments; segments cannot be reparented.
- Segment positions are contiguous from 0, in submission order.
- Every segment of one sale carries the same direction, derived from the
  sale's trip type.
- A sale is created once, in `draft` status. Payments later move
  paid_amount / payment_status; see domain/payment.py.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Sequence
from uuid import UUID

from .payment import PaymentStatus
from .time import require_utc_timestamp


class SaleChannel(str, Enum):
    INTERNAL = "internal"  # agency's own mileage account
    BALCAO = "balcao"  # counter: miles bought ad hoc from a seller


class TripType(str, Enum):
    ONE_WAY = "one_way"
    ROUND_TRIP = "round_trip"
    MULTI_CITY = "multi_city"


class SegmentDirection(str, Enum):
    ONEWAY = "oneway"
    ROUNDTRIP = "roundtrip"
    MULTICITY = "multicity"

    @staticmethod
    def for_trip_type(trip_type: TripType | str) -> "SegmentDirection":
        """
        Resolve the direction tag stamped on every segment of a sale.

        Anything other than one-way or round-trip is multi-city.
        """

        value = trip_type.value if isinstance(trip_type, TripType) else trip_type
        if value == TripType.ONE_WAY.value:
            return SegmentDirection.ONEWAY
        if value == TripType.ROUND_TRIP.value:
            return SegmentDirection.ROUNDTRIP
        return SegmentDirection.MULTICITY


class SaleStatus(str, Enum):
    DRAFT = "draft"


@dataclass(frozen=True, slots=True)
class FlightSegment:
    """One persisted leg of a sale's itinerary."""

    sale_id: UUID
    position: int
    origin: str
    destination: str
    direction: SegmentDirection
    travel_date: Optional[datetime] = None  # None when the entered date was unparseable
    flight_number: Optional[str] = None

    def __post_init__(self) -> None:
        if self.position < 0:
            raise ValueError("position must be >= 0")
        if self.travel_date is not None:
            require_utc_timestamp("travel_date", self.travel_date)


@dataclass(frozen=True, slots=True)
class SaleRecord:
    """
    Read model of a persisted sale, limited to what the engine uses.

    paid_amount / payment_status are a cache of the payment ledger.
    """

    sale_id: UUID
    supplier_id: str
    channel: SaleChannel
    customer_name: str
    passengers: int
    trip_type: TripType
    total_amount: Decimal
    paid_amount: Decimal = Decimal("0")
    payment_status: PaymentStatus = PaymentStatus.PENDING
    status: SaleStatus | str = SaleStatus.DRAFT
    route_text: Optional[str] = None
    paid_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.paid_at is not None:
            require_utc_timestamp("paid_at", self.paid_at)
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)

    @property
    def outstanding_amount(self) -> Decimal:
        remaining = self.total_amount - self.paid_amount
        return remaining if remaining > 0 else Decimal("0")


def check_segment_positions(segments: Sequence[FlightSegment]) -> None:
    """
    Verify segments of one sale are gapless from 0 and share one direction.

    Raises ValueError on the first violation.
    """

    for expected, segment in enumerate(segments):
        if segment.position != expected:
            raise ValueError(
                f"segment positions must be contiguous from 0; "
                f"expected {expected}, got {segment.position}"
            )

    directions = {segment.direction for segment in segments}
    if len(directions) > 1:
        raise ValueError("all segments of a sale must share one direction")

    owners = {segment.sale_id for segment in segments}
    if len(owners) > 1:
        raise ValueError("segments belong to more than one sale")


__all__ = [
    "SaleChannel",
    "TripType",
    "SegmentDirection",
    "SaleStatus",
    "FlightSegment",
    "SaleRecord",
    "check_segment_positions",
]
