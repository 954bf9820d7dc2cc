"""
Sales API Endpoints.

Endpoints for creating sales and registering partial payments.
"""

from typing import Union
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_identity, get_provisioner, get_storage, require_access
from api.models import (
    BalcaoSaleRequest,
    CreateSaleRequest,
    CreateSaleResponse,
    InternalSaleRequest,
    PaymentRequest,
    PaymentResponse,
    PaymentSummaryResponse,
    PaymentTransactionResponse,
)
from domain.errors import InvalidAmount, PersistenceError, StorageError, Unauthenticated
from domain.sale import TripType
from domain.sale_form import (
    BalcaoSaleForm,
    FlightSegmentInput,
    InternalSaleForm,
    SaleForm,
)
from repositories.identity import IdentityProvider
from repositories.storage import Storage
from repositories.supplier_repository import SupplierProvisioner
from services.payment_service import SaleNotFound, get_payment_summary, register_payment
from services.sale_service import create_sale_for_current_user

router = APIRouter(dependencies=[Depends(require_access)])


def to_sale_form(request: Union[InternalSaleRequest, BalcaoSaleRequest]) -> SaleForm:
    """Map a validated API request onto its domain form variant."""

    shared = dict(
        customer_name=request.customer_name,
        customer_cpf=request.customer_cpf,
        customer_phone=request.customer_phone,
        passengers=request.passengers,
        trip_type=TripType(request.trip_type),
        flight_segments=[
            FlightSegmentInput(
                origin=s.from_code.upper(),
                destination=s.to_code.upper(),
                date=s.date,
                airline=s.airline,
                miles=s.miles,
            )
            for s in request.flight_segments
        ],
        payment_method=request.payment_method,
        notes=request.notes,
        price_total=request.price_total,
        boarding_fee=request.boarding_fee,
        miles_used=request.miles_used,
        locator_code=request.locator_code,
        airline_program=request.airline_program,
    )

    if isinstance(request, InternalSaleRequest):
        return InternalSaleForm(
            program_id=str(request.program_id),
            account_id=str(request.account_id),
            **shared,
        )

    return BalcaoSaleForm(
        seller_name=request.seller_name,
        seller_contact=request.seller_contact,
        counter_cost_per_thousand=request.counter_cost_per_thousand,
        **shared,
    )


@router.post(
    "/sales",
    response_model=CreateSaleResponse,
    summary="Create Sale",
    description="Create a sale and its flight segments for the caller's supplier."
)
async def create_sale(
    request: CreateSaleRequest,
    identity: IdentityProvider = Depends(get_identity),
    provisioner: SupplierProvisioner = Depends(get_provisioner),
    storage: Storage = Depends(get_storage),
):
    """
    Create a sale.

    **Process:**
    1. Resolves (or provisions) the caller's supplier
    2. Inserts the sale in `draft` status
    3. Inserts all flight segments as one batch

    **Partial failure:**
    If the segment batch fails after the sale was inserted, the sale is kept
    and the response still reports success with its id.

    **Example request:**
    ```json
    {
      "channel": "balcao",
      "customer_name": "Maria Souza",
      "customer_cpf": "12345678900",
      "passengers": 1,
      "trip_type": "round_trip",
      "flight_segments": [
        {"from": "GRU", "to": "GIG", "date": "2024-01-01"},
        {"from": "GIG", "to": "GRU", "date": "2024-01-08"}
      ],
      "seller_name": "João",
      "seller_contact": "11999999999",
      "counter_cost_per_thousand": "18.50",
      "price_total": "1875.00"
    }
    ```
    """
    result = await create_sale_for_current_user(
        to_sale_form(request),
        identity=identity,
        provisioner=provisioner,
        storage=storage,
    )

    return CreateSaleResponse(
        success=result.success,
        sale_id=result.sale_id,
        error=result.error,
    )


@router.post(
    "/sales/{sale_id}/payments",
    response_model=PaymentResponse,
    summary="Register Payment",
    description="Record a partial payment and update the sale's payment status."
)
async def create_payment(
    sale_id: UUID,
    request: PaymentRequest,
    identity: IdentityProvider = Depends(get_identity),
    storage: Storage = Depends(get_storage),
):
    """
    Register a partial payment.

    Status becomes `partial` while the paid total is below the sale price and
    `paid` once it reaches it; `paid_at` is stamped on that transition only.
    """
    try:
        result = await register_payment(
            storage,
            identity,
            sale_id,
            request.amount,
            request.payment_method,
            payment_date=request.payment_date,
            notes=request.notes,
        )
    except Unauthenticated as e:
        raise HTTPException(status_code=401, detail=str(e))
    except SaleNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidAmount as e:
        raise HTTPException(status_code=422, detail=str(e))
    except (PersistenceError, StorageError) as e:
        raise HTTPException(status_code=500, detail=f"Failed to register payment: {e}")

    return PaymentResponse(
        transaction_id=result.transaction.transaction_id,
        sale_id=sale_id,
        amount=result.transaction.amount,
        paid_amount=result.transition.paid_amount,
        payment_status=result.transition.payment_status.value,
        paid_at=result.transition.paid_at,
    )


@router.get(
    "/sales/{sale_id}/payments",
    response_model=PaymentSummaryResponse,
    summary="Payment Summary",
    description="Payment state recomputed from the sale's payment ledger."
)
async def get_sale_payments(
    sale_id: UUID,
    storage: Storage = Depends(get_storage),
):
    try:
        summary = await get_payment_summary(storage, sale_id)
    except SaleNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StorageError as e:
        raise HTTPException(status_code=500, detail=f"Failed to load payments: {e}")

    return PaymentSummaryResponse(
        sale_id=summary.sale_id,
        total_amount=summary.total_amount,
        paid_amount=summary.paid_amount,
        outstanding_amount=summary.outstanding_amount,
        payment_status=summary.payment_status.value,
        transactions=[
            PaymentTransactionResponse(
                transaction_id=t.transaction_id,
                amount=t.amount,
                payment_date=t.payment_date,
                payment_method=t.payment_method,
                notes=t.notes,
            )
            for t in summary.transactions
        ],
    )
