"""
Supplier repository (provisioning).

Wraps the idempotent `ensure_supplier_for_user` database function, which
returns the caller's existing supplier id or creates one on first use.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol

from repositories.storage import Storage

_ENSURE_SUPPLIER_RPC: str = "ensure_supplier_for_user"


class SupplierProvisioner(Protocol):
    async def ensure_supplier_for_user(self, user_id: str) -> Optional[str]:
        """Return the supplier id for the user, creating one if absent."""


def _extract_supplier_id(data: Any) -> Optional[str]:
    """
    Pull the supplier id out of an RPC result.

    PostgREST returns a scalar function result as-is; a set-returning
    function comes back as a list of rows.
    """

    if data is None:
        return None
    if isinstance(data, list):
        return _extract_supplier_id(data[0]) if data else None
    if isinstance(data, dict):
        value = data.get("supplier_id") or data.get("id")
        return str(value) if value else None

    text = str(data).strip()
    return text or None


class RpcSupplierProvisioner:
    """Provisioner backed by the database function over Storage.rpc."""

    def __init__(self, storage: Storage) -> None:
        self.storage = storage

    async def ensure_supplier_for_user(self, user_id: str) -> Optional[str]:
        data = await self.storage.rpc(_ENSURE_SUPPLIER_RPC, {"p_user_id": user_id})
        return _extract_supplier_id(data)


__all__ = ["SupplierProvisioner", "RpcSupplierProvisioner"]
