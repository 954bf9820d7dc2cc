"""
Supplier provisioning gate.

Single source of truth for "which supplier does this caller act as":
looks up the authenticated user, then asks the idempotent provisioning
function for that user's supplier, creating one on first use.
"""

from __future__ import annotations

import logging

from domain.errors import ProvisioningFailed, StorageError, Unauthenticated
from repositories.identity import IdentityProvider
from repositories.supplier_repository import SupplierProvisioner

logger = logging.getLogger(__name__)


async def resolve_supplier_id(
    identity: IdentityProvider,
    provisioner: SupplierProvisioner,
) -> str:
    """
    Resolve the caller's supplier id, provisioning one if absent.

    Raises:
        Unauthenticated: If there is no active session
        ProvisioningFailed: If provisioning errors or returns no id
    """

    user = await identity.get_current_user()
    if user is None:
        raise Unauthenticated("User not authenticated")

    try:
        supplier_id = await provisioner.ensure_supplier_for_user(user.id)
    except StorageError as e:
        logger.error(
            "Supplier provisioning failed",
            extra={"user_id": user.id, "error": str(e)},
        )
        raise ProvisioningFailed(f"Failed to provision supplier: {e}") from e

    if not supplier_id:
        raise ProvisioningFailed(
            f"Failed to provision supplier: no supplier id returned for user {user.id}"
        )

    return supplier_id


__all__ = ["resolve_supplier_id"]
