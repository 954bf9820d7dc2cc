"""
Installment service.

Manages a supplier's credit interest table and quotes installment plans
against it.
"""

from __future__ import annotations

from decimal import Decimal
from typing import List

from domain.installments import (
    InstallmentQuote,
    InterestConfig,
    build_rate_table,
    calculate_installment_value,
    installment_options,
)
from repositories.interest_config_repository import (
    delete_config,
    get_config,
    insert_config,
    list_active_configs,
    update_config_rate,
)
from repositories.storage import Storage


async def quote_installments(
    storage: Storage,
    supplier_id: str,
    total_price: Decimal,
    installments: int,
) -> InstallmentQuote:
    """
    Quote one installment plan using the supplier's active interest table.

    Raises:
        ValueError: If installments < 1
    """

    if installments < 1:
        raise ValueError("installments must be >= 1")

    configs = await list_active_configs(storage, supplier_id)
    return calculate_installment_value(build_rate_table(configs), total_price, installments)


async def list_installment_options(
    storage: Storage,
    supplier_id: str,
    total_price: Decimal,
    max_installments: int = 12,
) -> List[InstallmentQuote]:
    configs = await list_active_configs(storage, supplier_id)
    return installment_options(build_rate_table(configs), total_price, max_installments)


async def save_interest_config(
    storage: Storage,
    supplier_id: str,
    installments: int,
    interest_rate: Decimal,
) -> InterestConfig:
    """
    Set the rate for an installment count.

    Updates the existing (supplier, installments) row when there is one, so
    the table stays unique per installment count.
    """

    if installments < 1:
        raise ValueError("installments must be >= 1")
    if interest_rate < 0:
        raise ValueError("interest_rate must be >= 0")

    existing = await get_config(storage, supplier_id, installments)
    if existing is not None and existing.config_id is not None:
        await update_config_rate(storage, existing.config_id, interest_rate)
        return InterestConfig(
            supplier_id=supplier_id,
            installments=installments,
            interest_rate=interest_rate,
            is_active=True,
            config_id=existing.config_id,
        )

    return await insert_config(storage, supplier_id, installments, interest_rate)


async def delete_interest_config(storage: Storage, supplier_id: str, config_id: str) -> None:
    await delete_config(storage, supplier_id, config_id)


__all__ = [
    "quote_installments",
    "list_installment_options",
    "save_interest_config",
    "delete_interest_config",
]
