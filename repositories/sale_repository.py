"""
Sale repository (persistence).

This module provides *only* persistence operations for sales and their
flight segments. It does not enforce business rules (channel shaping,
partial-failure policy, payment thresholds); it only writes and reads rows.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, List, Mapping, Optional, Sequence
from uuid import UUID

from domain.errors import StorageError
from domain.payment import PaymentStatus
from domain.sale import (
    FlightSegment,
    SaleChannel,
    SaleRecord,
    SegmentDirection,
    TripType,
)
from domain.time import parse_utc_datetime, to_iso_utc
from repositories.storage import Row, Storage

# Supabase table names.
# Keep these aligned with your database schema.
_SALES_TABLE: str = "sales"
_SEGMENTS_TABLE: str = "sale_segments"
_ACCOUNTS_TABLE: str = "mileage_accounts"

_UPDATE_BALANCE_RPC: str = "update_account_balance"


def _row_to_sale(row: Mapping[str, Any]) -> SaleRecord:
    """Convert a Supabase row into a SaleRecord."""

    total = row.get("price_total")
    if total is None:
        total = row.get("sale_price") or 0

    return SaleRecord(
        sale_id=UUID(str(row["id"])),
        supplier_id=str(row["supplier_id"]),
        channel=SaleChannel(str(row["channel"])),
        customer_name=str(row.get("client_name") or ""),
        passengers=int(row.get("passengers") or 1),
        trip_type=TripType(str(row["trip_type"])),
        total_amount=Decimal(str(total)),
        paid_amount=Decimal(str(row.get("paid_amount") or 0)),
        payment_status=PaymentStatus(str(row.get("payment_status") or "pending")),
        status=str(row.get("status") or "draft"),
        route_text=row.get("route_text"),
        paid_at=parse_utc_datetime(row["paid_at"]) if row.get("paid_at") else None,
        created_at=parse_utc_datetime(row["created_at"]) if row.get("created_at") else None,
    )


def _row_to_segment(row: Mapping[str, Any]) -> FlightSegment:
    return FlightSegment(
        sale_id=UUID(str(row["sale_id"])),
        position=int(row["position"]),
        origin=str(row["from_code"]),
        destination=str(row["to_code"]),
        direction=SegmentDirection(str(row["direction"])),
        travel_date=parse_utc_datetime(row["date"]) if row.get("date") else None,
        flight_number=row.get("flight_number"),
    )


def segment_to_row(segment: FlightSegment) -> Row:
    """Serialize a FlightSegment to its `sale_segments` row."""

    return {
        "sale_id": str(segment.sale_id),
        "direction": segment.direction.value,
        "from_code": segment.origin,
        "to_code": segment.destination,
        "date": to_iso_utc(segment.travel_date, name="travel_date") if segment.travel_date else None,
        "flight_number": segment.flight_number,
        "position": segment.position,
    }


async def insert_sale(storage: Storage, payload: Mapping[str, Any]) -> Row:
    """
    Insert one sale row.

    Returns:
        The inserted row as echoed by storage (or the payload if storage
        returns nothing)

    Raises:
        StorageError: If storage rejects the insert
    """

    rows = await storage.insert(_SALES_TABLE, payload)
    return rows[0] if rows else dict(payload)


async def insert_segments(storage: Storage, segments: Sequence[FlightSegment]) -> None:
    """
    Insert all segments of one sale as a single batch.

    Raises:
        StorageError: If storage rejects the batch
    """

    if not segments:
        return
    await storage.insert(_SEGMENTS_TABLE, [segment_to_row(s) for s in segments])


async def get_sale_by_id(storage: Storage, sale_id: UUID) -> Optional[SaleRecord]:
    """
    Retrieve a single sale by its ID.

    Returns:
        SaleRecord or None if not found
    """

    rows = await storage.select(_SALES_TABLE, {"id": str(sale_id)}, limit=1)
    if not rows:
        return None
    return _row_to_sale(rows[0])


async def list_segments(storage: Storage, sale_id: UUID) -> List[FlightSegment]:
    """Retrieve a sale's segments in position order."""

    rows = await storage.select(_SEGMENTS_TABLE, {"sale_id": str(sale_id)}, order_by="position")
    return [_row_to_segment(row) for row in rows]


async def update_payment_fields(
    storage: Storage,
    sale_id: UUID,
    paid_amount: Decimal,
    payment_status: PaymentStatus,
    paid_at: Optional[datetime] = None,
) -> None:
    """
    Write the cached payment state on a sale.

    paid_at is only written when provided, so an earlier completion
    timestamp is never cleared.
    """

    payload: dict[str, Any] = {
        "paid_amount": str(paid_amount),
        "payment_status": payment_status.value,
    }
    if paid_at is not None:
        payload["paid_at"] = to_iso_utc(paid_at, name="paid_at")

    await storage.update(_SALES_TABLE, {"id": str(sale_id)}, payload)


async def get_account_cost_per_mile(storage: Storage, account_id: str) -> Optional[Decimal]:
    """Cost per single mile recorded on a mileage account, if any."""

    rows = await storage.select(_ACCOUNTS_TABLE, {"id": account_id}, limit=1)
    if not rows or rows[0].get("cost_per_mile") in (None, ""):
        return None
    return Decimal(str(rows[0]["cost_per_mile"]))


async def debit_account_miles(storage: Storage, account_id: str, miles: int) -> None:
    """
    Subtract miles from a mileage account balance.

    Raises:
        StorageError: If the balance function fails
    """

    if miles <= 0:
        raise StorageError(f"miles to debit must be positive, got {miles}")
    await storage.rpc(_UPDATE_BALANCE_RPC, {"account_id": account_id, "miles_delta": -miles})


__all__ = [
    "segment_to_row",
    "insert_sale",
    "insert_segments",
    "get_sale_by_id",
    "list_segments",
    "update_payment_fields",
    "get_account_cost_per_mile",
    "debit_account_miles",
]
