"""
Payment service for recording partial payments on a sale.

The payment_transactions ledger is the source of truth. The sale's
paid_amount / payment_status / paid_at columns are a cache rewritten after
every payment from the ledger sum, so concurrent payment paths cannot drift
the cached total by double-counting.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, List, Optional
from uuid import UUID

from domain.errors import PersistenceError, StorageError, Unauthenticated
from domain.payment import (
    PaymentStatus,
    PaymentTransition,
    apply_payment,
    classify_payment_status,
    fold_ledger,
)
from domain.sale import SaleRecord
from repositories.identity import IdentityProvider
from repositories.payment_repository import (
    PaymentTransaction,
    insert_transaction,
    list_transactions,
)
from repositories.sale_repository import get_sale_by_id, update_payment_fields
from repositories.storage import Storage

logger = logging.getLogger(__name__)


class SaleNotFound(LookupError):
    """Raised when a payment targets a sale that does not exist."""


@dataclass(frozen=True, slots=True)
class PaymentSummary:
    """Payment state of a sale recomputed from its ledger."""

    sale_id: UUID
    total_amount: Decimal
    paid_amount: Decimal
    payment_status: PaymentStatus
    transactions: List[PaymentTransaction]

    @property
    def outstanding_amount(self) -> Decimal:
        remaining = self.total_amount - self.paid_amount
        return remaining if remaining > 0 else Decimal("0")


@dataclass(frozen=True, slots=True)
class PaymentResult:
    transaction: PaymentTransaction
    transition: PaymentTransition


async def _load_sale(storage: Storage, sale_id: UUID) -> SaleRecord:
    sale = await get_sale_by_id(storage, sale_id)
    if sale is None:
        raise SaleNotFound(f"Sale not found: {sale_id}")
    return sale


async def get_payment_summary(storage: Storage, sale_id: UUID) -> PaymentSummary:
    """
    Recompute a sale's payment state from its ledger.

    Raises:
        SaleNotFound: If the sale does not exist
    """

    sale = await _load_sale(storage, sale_id)
    transactions = await list_transactions(storage, sale_id)
    paid = fold_ledger(t.amount for t in transactions)

    return PaymentSummary(
        sale_id=sale_id,
        total_amount=sale.total_amount,
        paid_amount=paid,
        payment_status=classify_payment_status(paid, sale.total_amount),
        transactions=transactions,
    )


async def list_payments(storage: Storage, sale_id: UUID) -> List[PaymentTransaction]:
    """A sale's payments, newest first."""

    return await list_transactions(storage, sale_id)


async def register_payment(
    storage: Storage,
    identity: IdentityProvider,
    sale_id: UUID,
    amount: Any,
    payment_method: str,
    payment_date: Optional[datetime] = None,
    notes: Optional[str] = None,
) -> PaymentResult:
    """
    Record a partial payment and refresh the sale's cached payment state.

    Process:
    1. Require an authenticated actor
    2. Fold the existing ledger into the current paid amount
    3. Apply the payment through the state machine (rejects bad amounts
       before anything is written)
    4. Append the ledger row
    5. Write paid_amount / payment_status (and paid_at on completion)

    Raises:
        Unauthenticated: If there is no active session
        SaleNotFound: If the sale does not exist
        InvalidAmount: If amount is not a positive number
        PersistenceError: If the ledger insert fails
    """

    actor = await identity.get_current_user()
    if actor is None:
        raise Unauthenticated("User not authenticated")

    sale = await _load_sale(storage, sale_id)
    existing = await list_transactions(storage, sale_id)
    current_paid = fold_ledger(t.amount for t in existing)

    now = datetime.now(timezone.utc)
    transition = apply_payment(current_paid, amount, sale.total_amount, now=now)
    increment = transition.paid_amount - current_paid

    try:
        transaction = await insert_transaction(
            storage,
            sale_id=sale_id,
            amount=increment,
            payment_date=payment_date.astimezone(timezone.utc) if payment_date else now,
            payment_method=payment_method,
            created_by=actor.id,
            notes=notes or None,
        )
    except StorageError as e:
        raise PersistenceError(f"Failed to record payment: {e}") from e

    try:
        await update_payment_fields(
            storage,
            sale_id,
            paid_amount=transition.paid_amount,
            payment_status=transition.payment_status,
            paid_at=transition.paid_at,
        )
    except StorageError as e:
        # Ledger row exists; the cache is rebuilt from it on the next read.
        logger.warning(
            "Payment recorded but sale payment cache not updated",
            extra={"sale_id": str(sale_id), "transaction_id": str(transaction.transaction_id), "error": str(e)},
        )

    if sale.paid_amount != current_paid:
        logger.warning(
            "Sale paid_amount cache disagreed with ledger; ledger wins",
            extra={"sale_id": str(sale_id), "cached": str(sale.paid_amount), "ledger": str(current_paid)},
        )

    logger.info(
        "Payment registered",
        extra={
            "sale_id": str(sale_id),
            "amount": str(increment),
            "payment_status": transition.payment_status.value,
        },
    )
    return PaymentResult(transaction=transaction, transition=transition)


__all__ = [
    "SaleNotFound",
    "PaymentSummary",
    "PaymentResult",
    "get_payment_summary",
    "list_payments",
    "register_payment",
]
