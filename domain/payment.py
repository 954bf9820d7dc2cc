"""
Domain: payment status state machine (pure).

A sale's payment status is derived from its cumulative paid amount:

- pending: paid_amount == 0
- partial: 0 < paid_amount < total_amount
- paid:    paid_amount >= total_amount

Payments only ever add to paid_amount. Refunds are a separate flow and are
not modelled here. The completion timestamp is stamped once, on the
transition into `paid`, and is never cleared by this module.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Iterable, Optional

from .errors import InvalidAmount
from .time import require_utc_timestamp

_ZERO = Decimal("0")


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"


@dataclass(frozen=True, slots=True)
class PaymentTransition:
    """
    Outcome of applying one payment.

    paid_at is set only when this payment moved the sale into `paid`;
    None means "leave the stored completion timestamp as it is".
    """

    previous_status: PaymentStatus
    payment_status: PaymentStatus
    paid_amount: Decimal
    paid_at: Optional[datetime] = None

    @property
    def completed(self) -> bool:
        return self.paid_at is not None


def classify_payment_status(paid_amount: Decimal, total_amount: Decimal) -> PaymentStatus:
    if paid_amount <= _ZERO:
        return PaymentStatus.PENDING
    if paid_amount < total_amount:
        return PaymentStatus.PARTIAL
    return PaymentStatus.PAID


def parse_payment_amount(value: Any) -> Decimal:
    """
    Validate an incoming payment increment.

    Raises InvalidAmount for booleans, non-numeric text, NaN/infinity and
    anything <= 0.
    """

    if isinstance(value, bool) or value is None:
        raise InvalidAmount(f"Payment amount must be a number, got {value!r}")

    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidAmount(f"Payment amount must be a number, got {value!r}") from None

    if not amount.is_finite():
        raise InvalidAmount(f"Payment amount must be finite, got {value!r}")
    if amount <= _ZERO:
        raise InvalidAmount(f"Payment amount must be greater than 0, got {amount}")

    return amount


def apply_payment(
    current_paid_amount: Decimal,
    incoming_amount: Any,
    total_amount: Decimal,
    *,
    now: Optional[datetime] = None,
) -> PaymentTransition:
    """
    Apply one payment increment.

    Args:
        current_paid_amount: Amount already paid before this payment
        incoming_amount: The new payment; validated with parse_payment_amount
        total_amount: Total sale price
        now: UTC timestamp stamped on completion (default: current time)

    Raises:
        InvalidAmount: If incoming_amount is not a positive number
    """

    amount = parse_payment_amount(incoming_amount)

    previous_status = classify_payment_status(current_paid_amount, total_amount)
    new_paid = current_paid_amount + amount
    new_status = classify_payment_status(new_paid, total_amount)

    paid_at: Optional[datetime] = None
    if new_status is PaymentStatus.PAID and previous_status is not PaymentStatus.PAID:
        paid_at = now if now is not None else datetime.now(timezone.utc)
        require_utc_timestamp("paid_at", paid_at)

    return PaymentTransition(
        previous_status=previous_status,
        payment_status=new_status,
        paid_amount=new_paid,
        paid_at=paid_at,
    )


def fold_ledger(amounts: Iterable[Decimal]) -> Decimal:
    """Sum a payment ledger into the cumulative paid amount."""

    total = _ZERO
    for amount in amounts:
        total += amount
    return total


__all__ = [
    "PaymentStatus",
    "PaymentTransition",
    "classify_payment_status",
    "parse_payment_amount",
    "apply_payment",
    "fold_ledger",
]
