"""
Domain: installment interest engine (pure).

Combines a supplier's credit interest table with a requested installment
count.

Rules:
- Look up the row whose installment count equals the request.
- Missing row, or a rate of exactly 0: no interest, the total is split evenly.
- Otherwise the rate marks the whole total up once:
  final_price = total_price * (1 + rate / 100), then split evenly.

Installments must be >= 1. That is validated by callers; the engine does not
guard against a zero count.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


@dataclass(frozen=True, slots=True)
class InterestConfig:
    """One row of a supplier's credit interest table."""

    supplier_id: str
    installments: int
    interest_rate: Decimal  # percentage applied to the whole price
    is_active: bool = True
    config_id: Optional[str] = None


@dataclass(frozen=True, slots=True)
class InstallmentQuote:
    installments: int
    installment_value: Decimal
    final_price: Decimal
    interest_rate: Decimal


def build_rate_table(configs: Iterable[InterestConfig]) -> Dict[int, Decimal]:
    """Map installment count -> rate, keeping only active rows."""

    return {c.installments: c.interest_rate for c in configs if c.is_active}


def calculate_installment_value(
    rate_table: Mapping[int, Decimal],
    total_price: Decimal,
    installments: int,
) -> InstallmentQuote:
    """
    Quote a sale price paid in the given number of installments.

    Example:
        calculate_installment_value({3: Decimal("10")}, Decimal("300"), 3)
        # final_price=330, installment_value=110, interest_rate=10
    """

    rate = rate_table.get(installments)

    if rate is None or rate == _ZERO:
        return InstallmentQuote(
            installments=installments,
            installment_value=total_price / installments,
            final_price=total_price,
            interest_rate=_ZERO,
        )

    final_price = total_price * (1 + rate / _HUNDRED)
    return InstallmentQuote(
        installments=installments,
        installment_value=final_price / installments,
        final_price=final_price,
        interest_rate=rate,
    )


def installment_options(
    rate_table: Mapping[int, Decimal],
    total_price: Decimal,
    max_installments: int,
) -> List[InstallmentQuote]:
    """Quotes for 1..max_installments, in order (feeds the checkout picker)."""

    return [
        calculate_installment_value(rate_table, total_price, n)
        for n in range(1, max_installments + 1)
    ]


__all__ = [
    "InterestConfig",
    "InstallmentQuote",
    "build_rate_table",
    "calculate_installment_value",
    "installment_options",
]
