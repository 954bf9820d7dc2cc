"""
Payment transaction repository.

`payment_transactions` is an append-only ledger: rows are inserted and read,
never updated or deleted here.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Mapping, Optional
from uuid import UUID, uuid4

from domain.time import parse_utc_datetime, require_utc_timestamp, to_iso_utc
from repositories.storage import Storage

_TRANSACTIONS_TABLE: str = "payment_transactions"


@dataclass(frozen=True, slots=True)
class PaymentTransaction:
    """One recorded partial payment. Immutable once written."""

    transaction_id: UUID
    sale_id: UUID
    amount: Decimal
    payment_date: datetime
    payment_method: str
    created_by: str
    notes: Optional[str] = None

    def __post_init__(self) -> None:
        require_utc_timestamp("payment_date", self.payment_date)


def _row_to_transaction(row: Mapping[str, Any]) -> PaymentTransaction:
    return PaymentTransaction(
        transaction_id=UUID(str(row["id"])),
        sale_id=UUID(str(row["sale_id"])),
        amount=Decimal(str(row["amount"])),
        payment_date=parse_utc_datetime(row["payment_date"]),
        payment_method=str(row.get("payment_method") or ""),
        created_by=str(row.get("created_by") or ""),
        notes=row.get("notes"),
    )


async def insert_transaction(
    storage: Storage,
    sale_id: UUID,
    amount: Decimal,
    payment_date: datetime,
    payment_method: str,
    created_by: str,
    notes: Optional[str] = None,
) -> PaymentTransaction:
    """
    Append a payment to the ledger.

    Raises:
        StorageError: If storage rejects the insert
    """

    transaction = PaymentTransaction(
        transaction_id=uuid4(),
        sale_id=sale_id,
        amount=amount,
        payment_date=payment_date,
        payment_method=payment_method,
        created_by=created_by,
        notes=notes,
    )

    await storage.insert(
        _TRANSACTIONS_TABLE,
        {
            "id": str(transaction.transaction_id),
            "sale_id": str(sale_id),
            "amount": str(amount),
            "payment_date": to_iso_utc(payment_date, name="payment_date"),
            "payment_method": payment_method,
            "notes": notes,
            "created_by": created_by,
        },
    )
    return transaction


async def list_transactions(storage: Storage, sale_id: UUID) -> List[PaymentTransaction]:
    """A sale's ledger, newest payment first."""

    rows = await storage.select(
        _TRANSACTIONS_TABLE,
        {"sale_id": str(sale_id)},
        order_by="payment_date",
        descending=True,
    )
    return [_row_to_transaction(row) for row in rows]


__all__ = ["PaymentTransaction", "insert_transaction", "list_transactions"]
