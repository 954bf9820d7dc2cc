"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
Sale requests are a discriminated union on `channel`; a request that fails
validation here never reaches the sale pipeline.
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, List, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field


# ============================================================================
# Pricing Models
# ============================================================================

class PricingRequest(BaseModel):
    """Inputs for the sale pricing calculator."""
    miles_used: int = Field(..., ge=0, description="Miles spent per passenger")
    cost_per_thousand: Decimal = Field(..., ge=0, description="Cost per 1,000 miles")
    boarding_fee: Decimal = Field(Decimal("0"), ge=0, description="Boarding fee per passenger")
    passengers: int = Field(1, ge=1)
    target_margin: Optional[Decimal] = Field(None, ge=0, description="Desired margin, percent")
    manual_price: Optional[Decimal] = Field(None, ge=0, description="Overrides the suggested price")

    class Config:
        json_schema_extra = {
            "example": {
                "miles_used": 50000,
                "cost_per_thousand": "29.00",
                "boarding_fee": "50.00",
                "passengers": 1,
                "target_margin": "20"
            }
        }


class PricingResponse(BaseModel):
    cost_per_passenger: Decimal
    total_cost: Decimal
    suggested_price: Decimal
    final_price: Decimal
    profit: Decimal
    profit_margin: Decimal
    effective_cost_per_mile: Decimal
    price_per_thousand: Decimal


class InstallmentQuoteRequest(BaseModel):
    """Request to quote an installment plan against the caller's interest table."""
    total_price: Decimal = Field(..., ge=0)
    installments: int = Field(..., ge=1)


class InstallmentQuoteResponse(BaseModel):
    installments: int
    installment_value: Decimal
    final_price: Decimal
    interest_rate: Decimal


# ============================================================================
# Sale Models
# ============================================================================

class FlightSegmentRequest(BaseModel):
    """One itinerary leg."""
    from_code: str = Field(..., alias="from", min_length=3, max_length=3)
    to_code: str = Field(..., alias="to", min_length=3, max_length=3)
    date: str = Field(..., min_length=1)
    airline: Optional[str] = None
    miles: Optional[int] = Field(None, ge=0)

    class Config:
        populate_by_name = True


class SaleRequestBase(BaseModel):
    """Fields shared by every sales channel."""
    customer_name: str = Field(..., min_length=1)
    customer_cpf: str = Field(..., min_length=11)
    customer_phone: Optional[str] = None
    passengers: int = Field(..., ge=1)
    trip_type: Literal["one_way", "round_trip", "multi_city"]
    flight_segments: List[FlightSegmentRequest] = Field(..., min_length=1)
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    price_total: Decimal = Field(Decimal("0"), ge=0)
    boarding_fee: Decimal = Field(Decimal("0"), ge=0)
    miles_used: Optional[int] = Field(None, ge=0)
    locator_code: Optional[str] = None
    airline_program: Optional[str] = None


class InternalSaleRequest(SaleRequestBase):
    channel: Literal["internal"]
    program_id: UUID
    account_id: UUID


class BalcaoSaleRequest(SaleRequestBase):
    channel: Literal["balcao"]
    seller_name: str = Field(..., min_length=1)
    seller_contact: str = Field(..., min_length=1)
    counter_cost_per_thousand: Decimal = Field(..., ge=0)


CreateSaleRequest = Annotated[
    Union[InternalSaleRequest, BalcaoSaleRequest],
    Field(discriminator="channel"),
]


class CreateSaleResponse(BaseModel):
    """Response after sale creation."""
    success: bool
    sale_id: Optional[UUID] = None
    error: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "success": True,
                "sale_id": "123e4567-e89b-12d3-a456-426614174003",
                "error": None
            }
        }


# ============================================================================
# Payment Models
# ============================================================================

class PaymentRequest(BaseModel):
    """Request to register a partial payment."""
    amount: Decimal
    payment_method: str = Field(..., min_length=1)
    payment_date: Optional[datetime] = None
    notes: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "amount": "500.00",
                "payment_method": "pix",
                "payment_date": "2025-01-10T12:00:00Z",
                "notes": "Entrada"
            }
        }


class PaymentResponse(BaseModel):
    transaction_id: UUID
    sale_id: UUID
    amount: Decimal
    paid_amount: Decimal
    payment_status: str
    paid_at: Optional[datetime] = None


class PaymentTransactionResponse(BaseModel):
    transaction_id: UUID
    amount: Decimal
    payment_date: datetime
    payment_method: str
    notes: Optional[str] = None


class PaymentSummaryResponse(BaseModel):
    sale_id: UUID
    total_amount: Decimal
    paid_amount: Decimal
    outstanding_amount: Decimal
    payment_status: str
    transactions: List[PaymentTransactionResponse]
