"""
Credit interest configuration repository.

Reads and writes a supplier's installment interest table
(`credit_interest_config`), unique per (supplier_id, installments).
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, List, Mapping, Optional

from domain.installments import InterestConfig
from repositories.storage import Storage

_CONFIG_TABLE: str = "credit_interest_config"


def _parse_rate(value: Any) -> Decimal:
    """
    Normalize a stored rate to Decimal.

    Rates typed in the settings screen may come back as strings using a comma
    decimal separator (e.g. "12,5").
    """

    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, str):
        value = value.strip().replace(",", ".")
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Invalid interest rate: {value!r}") from None


def _row_to_config(row: Mapping[str, Any]) -> InterestConfig:
    return InterestConfig(
        supplier_id=str(row["supplier_id"]),
        installments=int(row["installments"]),
        interest_rate=_parse_rate(row.get("interest_rate")),
        is_active=bool(row.get("is_active", True)),
        config_id=str(row["id"]) if row.get("id") is not None else None,
    )


async def list_active_configs(storage: Storage, supplier_id: str) -> List[InterestConfig]:
    """Active interest rows for a supplier, ordered by installment count."""

    rows = await storage.select(
        _CONFIG_TABLE,
        {"supplier_id": supplier_id, "is_active": True},
        order_by="installments",
    )
    return [_row_to_config(row) for row in rows]


async def get_config(storage: Storage, supplier_id: str, installments: int) -> Optional[InterestConfig]:
    rows = await storage.select(
        _CONFIG_TABLE,
        {"supplier_id": supplier_id, "installments": installments},
        limit=1,
    )
    return _row_to_config(rows[0]) if rows else None


async def insert_config(
    storage: Storage,
    supplier_id: str,
    installments: int,
    interest_rate: Decimal,
) -> InterestConfig:
    rows = await storage.insert(
        _CONFIG_TABLE,
        {
            "supplier_id": supplier_id,
            "installments": installments,
            "interest_rate": str(interest_rate),
            "is_active": True,
        },
    )
    if rows:
        return _row_to_config(rows[0])
    return InterestConfig(
        supplier_id=supplier_id,
        installments=installments,
        interest_rate=interest_rate,
    )


async def update_config_rate(storage: Storage, config_id: str, interest_rate: Decimal) -> None:
    await storage.update(
        _CONFIG_TABLE,
        {"id": config_id},
        {"interest_rate": str(interest_rate), "is_active": True},
    )


async def delete_config(storage: Storage, supplier_id: str, config_id: str) -> None:
    await storage.delete(_CONFIG_TABLE, {"id": config_id, "supplier_id": supplier_id})


__all__ = [
    "list_active_configs",
    "get_config",
    "insert_config",
    "update_config_rate",
    "delete_config",
]
