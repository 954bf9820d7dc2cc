"""
FastAPI dependencies.

Wires request-scoped collaborators (storage, identity, supplier provisioning)
to the Supabase implementations. Tests override these with in-memory fakes.
"""

from __future__ import annotations

from functools import partial
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request

from repositories.client import get_supabase
from repositories.identity import IdentityProvider, SupabaseIdentityProvider
from repositories.storage import Storage, SupabaseStorage
from repositories.subscription_repository import get_subscription_status
from repositories.supplier_repository import RpcSupplierProvisioner, SupplierProvisioner
from services.access_service import WhitelistCache, check_access


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def get_storage() -> Storage:
    return SupabaseStorage(await get_supabase())


async def get_identity(authorization: Optional[str] = Header(None)) -> IdentityProvider:
    return SupabaseIdentityProvider(await get_supabase(), _bearer_token(authorization))


def get_provisioner(storage: Storage = Depends(get_storage)) -> SupplierProvisioner:
    return RpcSupplierProvisioner(storage)


def get_whitelist(request: Request) -> WhitelistCache:
    return request.app.state.whitelist


async def require_access(
    identity: IdentityProvider = Depends(get_identity),
    storage: Storage = Depends(get_storage),
    whitelist: WhitelistCache = Depends(get_whitelist),
) -> None:
    """Reject callers without a session (401) or without access (402)."""

    user = await identity.get_current_user()
    if user is None:
        raise HTTPException(status_code=401, detail="User not authenticated")

    allowed = await check_access(
        user,
        whitelist=whitelist,
        fetch_status=partial(get_subscription_status, storage),
    )
    if not allowed:
        raise HTTPException(status_code=402, detail="An active subscription is required")
