"""
Pricing API Endpoints.

Advisory calculations that feed the price fields of the sale form.
"""

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_identity, get_provisioner, get_storage, require_access
from api.models import (
    InstallmentQuoteRequest,
    InstallmentQuoteResponse,
    PricingRequest,
    PricingResponse,
)
from domain.errors import ProvisioningFailed, StorageError, Unauthenticated
from domain.pricing import PricingInputs, calculate_pricing
from repositories.identity import IdentityProvider
from repositories.storage import Storage
from repositories.supplier_repository import SupplierProvisioner
from services.installment_service import quote_installments
from services.supplier_service import resolve_supplier_id

router = APIRouter()


@router.post(
    "/pricing/calculate",
    response_model=PricingResponse,
    summary="Calculate Sale Pricing",
    description="Derive cost, suggested price, margin and per-mile figures for a sale."
)
def calculate_sale_pricing(request: PricingRequest):
    """
    Run the pricing calculator.

    A target margin outside (0, 100) prices at cost; a manual price > 0
    overrides the suggestion.

    **Example request:**
    ```json
    {"miles_used": 50000, "cost_per_thousand": "29", "boarding_fee": "50", "passengers": 1, "target_margin": "20"}
    ```

    **Response (excerpt):**
    ```json
    {"total_cost": "1500", "suggested_price": "1875", "profit": "375", "profit_margin": "20"}
    ```
    """
    result = calculate_pricing(
        PricingInputs(
            miles_used=request.miles_used,
            cost_per_thousand=request.cost_per_thousand,
            boarding_fee=request.boarding_fee,
            passengers=request.passengers,
            target_margin=request.target_margin,
            manual_price=request.manual_price,
        )
    )

    return PricingResponse(
        cost_per_passenger=result.cost_per_passenger,
        total_cost=result.total_cost,
        suggested_price=result.suggested_price,
        final_price=result.final_price,
        profit=result.profit,
        profit_margin=result.profit_margin,
        effective_cost_per_mile=result.effective_cost_per_mile,
        price_per_thousand=result.price_per_thousand,
    )


@router.post(
    "/pricing/installments",
    response_model=InstallmentQuoteResponse,
    summary="Quote Installment Plan",
    description="Apply the caller's credit interest table to a price split into installments.",
    dependencies=[Depends(require_access)],
)
async def quote_installment_plan(
    request: InstallmentQuoteRequest,
    identity: IdentityProvider = Depends(get_identity),
    provisioner: SupplierProvisioner = Depends(get_provisioner),
    storage: Storage = Depends(get_storage),
):
    """
    Quote an installment plan.

    Installment counts without a configured rate (or with rate 0) are
    interest-free.
    """
    try:
        supplier_id = await resolve_supplier_id(identity, provisioner)
        quote = await quote_installments(
            storage,
            supplier_id,
            request.total_price,
            request.installments,
        )
    except Unauthenticated as e:
        raise HTTPException(status_code=401, detail=str(e))
    except ProvisioningFailed as e:
        raise HTTPException(status_code=500, detail=str(e))
    except StorageError as e:
        raise HTTPException(status_code=500, detail=f"Failed to load interest configuration: {e}")

    return InstallmentQuoteResponse(
        installments=quote.installments,
        installment_value=quote.installment_value,
        final_price=quote.final_price,
        interest_rate=quote.interest_rate,
    )
