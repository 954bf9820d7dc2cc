"""
Subscription repository.

Reads the billing status mirrored into `billing_subscriptions` by the
billing webhook. Write paths belong to the billing integration, not here.
"""

from __future__ import annotations

from typing import Optional

from repositories.storage import Storage

_SUBSCRIPTIONS_TABLE: str = "billing_subscriptions"


async def get_subscription_status(storage: Storage, user_id: str) -> Optional[str]:
    """
    Current subscription status for a user (e.g. "active", "trialing").

    Returns:
        Status string or None if the user has no subscription row

    Raises:
        StorageError: If the lookup fails
    """

    rows = await storage.select(_SUBSCRIPTIONS_TABLE, {"user_id": user_id}, limit=1)
    if not rows:
        return None
    status = rows[0].get("status")
    return str(status) if status else None


__all__ = ["get_subscription_status"]
