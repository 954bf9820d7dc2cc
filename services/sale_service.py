"""
Sale creation service.

Turns a validated, channel-tagged sale form into a persisted sale plus its
ordered flight segments.

Process:
1. Fetch the acting user (fresh, every call)
2. Shape the sale row (shared fields, channel fields, route text, financials)
   and its segments. All shaping happens before anything is written.
3. Insert the sale. Failure here aborts the whole operation; once it
   succeeds, the call reports the sale id whatever happens next.
4. Debit miles from the mileage account (internal channel only, non-fatal)
5. Insert every segment as one batch. Failure here is logged and does NOT
   roll the sale back: the call still reports success with the sale id.

The public functions never raise past their boundary; every failure is
returned in CreateSaleResult.error. Cancellation (asyncio.CancelledError) is
not an Exception and propagates to the caller unchanged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from domain.errors import (
    PersistenceError,
    ProvisioningFailed,
    SegmentPersistenceWarning,
    StorageError,
    Unauthenticated,
)
from domain.payment import PaymentStatus
from domain.pricing import PricingInputs, PricingResult, calculate_pricing
from domain.sale import FlightSegment, SaleStatus, SegmentDirection
from domain.sale_form import BalcaoSaleForm, InternalSaleForm, SaleForm
from domain.time import parse_segment_date, to_iso_utc
from repositories.identity import CurrentUser, IdentityProvider
from repositories.sale_repository import (
    debit_account_miles,
    get_account_cost_per_mile,
    insert_sale,
    insert_segments,
)
from repositories.storage import Storage
from repositories.supplier_repository import SupplierProvisioner
from services.supplier_service import resolve_supplier_id

logger = logging.getLogger(__name__)

_THOUSAND = Decimal("1000")


@dataclass(frozen=True, slots=True)
class CreateSaleResult:
    """
    Result of a sale creation attempt.

    sale_id: the new sale's id; None when the sale was not created
    error: human-readable reason (None on success)
    """

    sale_id: Optional[UUID]
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.sale_id is not None and self.error is None


def build_segments(form: SaleForm, sale_id: UUID) -> List[FlightSegment]:
    """
    Build one FlightSegment per form segment, in submission order.

    Direction is derived once from the trip type and stamped on every
    segment; position is the zero-based index.
    """

    direction = SegmentDirection.for_trip_type(form.trip_type)

    return [
        FlightSegment(
            sale_id=sale_id,
            position=index,
            origin=segment.origin,
            destination=segment.destination,
            direction=direction,
            travel_date=parse_segment_date(segment.date),
            flight_number=segment.airline or None,
        )
        for index, segment in enumerate(form.flight_segments)
    ]


def compute_sale_financials(form: SaleForm, cost_per_thousand: Decimal) -> PricingResult:
    """
    Cost, profit and margin for the price entered on the form.

    miles_used and boarding_fee on the form are totals for the whole sale,
    so the calculator runs with a single "passenger".
    """

    return calculate_pricing(
        PricingInputs(
            miles_used=form.total_miles,
            cost_per_thousand=cost_per_thousand,
            boarding_fee=form.boarding_fee,
            passengers=1,
            manual_price=form.price_total,
        )
    )


def build_sale_payload(
    form: SaleForm,
    *,
    sale_id: UUID,
    supplier_id: str,
    actor: CurrentUser,
    cost_per_thousand: Decimal,
) -> Dict[str, Any]:
    """
    Shape the `sales` row for a form.

    Pure mapping: shared columns, then exactly one channel's columns via
    the form variant's channel_row().
    """

    pricing = compute_sale_financials(form, cost_per_thousand)

    payload: Dict[str, Any] = {
        "id": str(sale_id),
        "supplier_id": supplier_id,
        "channel": form.channel.value,
        "client_name": form.customer_name,
        "client_cpf_encrypted": form.customer_cpf,
        "client_contact": form.customer_phone or None,
        "passengers": form.passengers,
        "trip_type": form.trip_type.value,
        "route_text": form.route_text,
        "status": SaleStatus.DRAFT.value,
        "payment_method": form.payment_method or None,
        "notes": form.notes or None,
        "created_by": actor.id,
        "user_id": actor.id,
        # Money / miles
        "miles_used": form.total_miles,
        "boarding_fee": str(form.boarding_fee),
        "cost_per_thousand": str(cost_per_thousand) if cost_per_thousand > 0 else None,
        "total_cost": str(pricing.total_cost),
        "price_total": str(form.price_total),
        "sale_price": str(form.price_total),
        "price_per_passenger": (
            str(form.price_per_passenger) if form.price_per_passenger is not None else None
        ),
        "profit": str(pricing.profit),
        "profit_margin": str(pricing.profit_margin),
        "paid_amount": "0",
        "payment_status": PaymentStatus.PENDING.value,
        # Details screen
        "airline_program": form.airline_program,
        "locator_code": form.locator_code,
        "passenger_cpfs": list(form.passenger_cpfs),
    }

    if form.sale_date is not None:
        payload["created_at"] = to_iso_utc(form.sale_date.astimezone(timezone.utc), name="sale_date")

    payload.update(form.channel_row())
    return payload


async def _resolve_cost_per_thousand(storage: Storage, form: SaleForm) -> Decimal:
    if isinstance(form, BalcaoSaleForm):
        return form.counter_cost_per_thousand

    try:
        cost_per_mile = await get_account_cost_per_mile(storage, form.account_id)
    except StorageError as e:
        logger.warning(
            "Could not read account cost; sale financials will use zero mile cost",
            extra={"account_id": form.account_id, "error": str(e)},
        )
        return Decimal("0")

    return cost_per_mile * _THOUSAND if cost_per_mile else Decimal("0")


async def _persist_sale(storage: Storage, payload: Dict[str, Any]) -> UUID:
    """Insert the sale row; raises PersistenceError with the storage message."""

    try:
        row = await insert_sale(storage, payload)
    except StorageError as e:
        raise PersistenceError(f"Failed to create sale: {e}") from e

    return UUID(str(row.get("id") or payload["id"]))


async def _debit_miles(storage: Storage, form: InternalSaleForm, sale_id: UUID) -> None:
    miles = form.total_miles
    if miles <= 0:
        return

    try:
        await debit_account_miles(storage, form.account_id, miles)
    except Exception as e:
        logger.warning(
            "Failed to debit miles from account; sale was created",
            extra={"sale_id": str(sale_id), "account_id": form.account_id, "miles": miles, "error": str(e)},
        )


async def _persist_segments(storage: Storage, segments: List[FlightSegment], sale_id: UUID) -> None:
    """Insert the segment batch. Failures are logged, never raised."""

    if not segments:
        logger.info("Sale has no flight segments; skipping segment insert", extra={"sale_id": str(sale_id)})
        return

    try:
        await insert_segments(storage, segments)
    except Exception as e:
        # No rollback: the sale stays, segments can be backfilled.
        warning = SegmentPersistenceWarning(
            f"Failed to create flight segments for sale {sale_id}, but the sale was created: {e}"
        )
        logger.warning(
            str(warning),
            extra={"sale_id": str(sale_id), "segment_count": len(segments), "error": str(e)},
        )


async def create_sale_with_segments(
    form: SaleForm,
    supplier_id: str,
    *,
    identity: IdentityProvider,
    storage: Storage,
) -> CreateSaleResult:
    """
    Create a sale and its flight segments.

    Args:
        form: Validated InternalSaleForm or BalcaoSaleForm
        supplier_id: Supplier resolved for the caller
        identity: Provider for the acting user (queried fresh)
        storage: Storage collaborator

    Returns:
        CreateSaleResult with the new sale id, or sale_id=None and an error

    Example:
        result = await create_sale_with_segments(form, supplier_id, identity=identity, storage=storage)
        if not result.success:
            print(f"Sale failed: {result.error}")
    """

    try:
        if not supplier_id or not supplier_id.strip():
            raise ProvisioningFailed("Supplier id not provided")

        actor = await identity.get_current_user()
        if actor is None:
            raise Unauthenticated("User not authenticated")

        cost_per_thousand = await _resolve_cost_per_thousand(storage, form)

        new_sale_id = uuid4()
        segments = build_segments(form, new_sale_id)
        payload = build_sale_payload(
            form,
            sale_id=new_sale_id,
            supplier_id=supplier_id,
            actor=actor,
            cost_per_thousand=cost_per_thousand,
        )

        sale_id = await _persist_sale(storage, payload)

        if isinstance(form, InternalSaleForm):
            await _debit_miles(storage, form, sale_id)

        await _persist_segments(storage, segments, sale_id)

    except (Unauthenticated, ProvisioningFailed, PersistenceError) as e:
        logger.error("Create sale failed", extra={"supplier_id": supplier_id, "error": str(e)})
        return CreateSaleResult(sale_id=None, error=str(e))
    except Exception as e:
        logger.exception("Unexpected error creating sale", extra={"supplier_id": supplier_id})
        return CreateSaleResult(sale_id=None, error=str(e) or "Unknown error creating sale")

    logger.info(
        "Sale created",
        extra={
            "sale_id": str(sale_id),
            "supplier_id": supplier_id,
            "channel": form.channel.value,
            "segment_count": len(form.flight_segments),
        },
    )
    return CreateSaleResult(sale_id=sale_id)


async def create_sale_for_current_user(
    form: SaleForm,
    *,
    identity: IdentityProvider,
    provisioner: SupplierProvisioner,
    storage: Storage,
) -> CreateSaleResult:
    """
    Resolve the caller's supplier, then create the sale.

    Identity and provisioning failures abort before anything is written and
    are returned as an error result.
    """

    try:
        supplier_id = await resolve_supplier_id(identity, provisioner)
    except (Unauthenticated, ProvisioningFailed) as e:
        return CreateSaleResult(sale_id=None, error=str(e))

    return await create_sale_with_segments(form, supplier_id, identity=identity, storage=storage)


__all__ = [
    "CreateSaleResult",
    "build_segments",
    "build_sale_payload",
    "compute_sale_financials",
    "create_sale_with_segments",
    "create_sale_for_current_user",
]
