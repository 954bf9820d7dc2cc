"""
Domain: sale pricing calculator (pure).

Derives passenger cost, suggested sale price, margin and per-mile economics
from the miles spent on a ticket.

Rules implemented here:
- cost_per_passenger = (miles_used / 1000) * cost_per_thousand + boarding_fee
- total_cost = cost_per_passenger * passengers
- A target margin strictly between 0 and 100 marks the cost up to
  total_cost / (1 - margin / 100). Any other margin prices at cost.
- A manual price > 0 always replaces the suggested price.
- Every division is guarded: zero denominators yield 0, never an error.

No I/O, no clocks, no shared state: same inputs always give same outputs.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")
_THOUSAND = Decimal("1000")


def to_decimal(value: Any) -> Decimal:
    """Coerce a numeric input to Decimal; None counts as zero."""

    if value is None:
        return _ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass(frozen=True, slots=True)
class PricingInputs:
    """
    Inputs to the pricing calculator.

    cost_per_thousand is the price paid per 1,000 miles; boarding_fee is per
    passenger.
    """

    miles_used: int
    cost_per_thousand: Decimal
    boarding_fee: Decimal
    passengers: int
    target_margin: Optional[Decimal] = None  # percentage, 0-100 exclusive
    manual_price: Optional[Decimal] = None


@dataclass(frozen=True, slots=True)
class PricingResult:
    cost_per_passenger: Decimal
    total_cost: Decimal
    suggested_price: Decimal
    final_price: Decimal
    profit: Decimal
    profit_margin: Decimal  # percentage of final_price
    effective_cost_per_mile: Decimal
    price_per_thousand: Decimal


def calculate_pricing(inputs: PricingInputs) -> PricingResult:
    """
    Run the pricing calculation.

    Example:
        calculate_pricing(PricingInputs(
            miles_used=50000,
            cost_per_thousand=Decimal("29"),
            boarding_fee=Decimal("50"),
            passengers=1,
            target_margin=Decimal("20"),
        ))
        # total_cost=1500, suggested_price=1875, profit=375, profit_margin=20
    """

    miles = to_decimal(inputs.miles_used)
    cost_per_thousand = to_decimal(inputs.cost_per_thousand)
    boarding_fee = to_decimal(inputs.boarding_fee)
    passengers = to_decimal(inputs.passengers)
    target_margin = to_decimal(inputs.target_margin)
    manual_price = to_decimal(inputs.manual_price)

    cost_per_passenger = (miles / _THOUSAND) * cost_per_thousand + boarding_fee
    total_cost = cost_per_passenger * passengers

    if _ZERO < target_margin < _HUNDRED:
        suggested_price = total_cost / (1 - target_margin / _HUNDRED)
    else:
        suggested_price = total_cost

    final_price = manual_price if manual_price > _ZERO else suggested_price

    profit = final_price - total_cost
    profit_margin = profit / final_price * _HUNDRED if final_price > _ZERO else _ZERO

    if miles > _ZERO:
        effective_cost_per_mile = total_cost / miles
        price_per_thousand = final_price / miles * _THOUSAND
    else:
        effective_cost_per_mile = _ZERO
        price_per_thousand = _ZERO

    return PricingResult(
        cost_per_passenger=cost_per_passenger,
        total_cost=total_cost,
        suggested_price=suggested_price,
        final_price=final_price,
        profit=profit,
        profit_margin=profit_margin,
        effective_cost_per_mile=effective_cost_per_mile,
        price_per_thousand=price_per_thousand,
    )


__all__ = [
    "PricingInputs",
    "PricingResult",
    "calculate_pricing",
    "to_decimal",
]
