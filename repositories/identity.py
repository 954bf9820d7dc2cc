"""
Identity provider (authenticated user lookup).

The engine asks for the current user fresh on every operation; nothing about
the caller is cached between calls.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from supabase import AsyncClient  # type: ignore[import-not-found]
from supabase_auth.errors import AuthError  # type: ignore[import-not-found]


@dataclass(frozen=True, slots=True)
class CurrentUser:
    id: str
    email: Optional[str] = None


class IdentityProvider(Protocol):
    async def get_current_user(self) -> Optional[CurrentUser]:
        """Return the authenticated caller, or None without an active session."""


class SupabaseIdentityProvider:
    """
    Resolves the caller from a Supabase access token (JWT).

    An invalid or expired token counts as "no active session".
    """

    def __init__(self, client: AsyncClient, access_token: Optional[str]) -> None:
        self.client = client
        self.access_token = access_token

    async def get_current_user(self) -> Optional[CurrentUser]:
        if not self.access_token:
            return None

        try:
            response = await self.client.auth.get_user(self.access_token)
        except AuthError:
            return None

        user = getattr(response, "user", None) if response is not None else None
        if user is None:
            return None

        return CurrentUser(id=str(user.id), email=getattr(user, "email", None))


__all__ = ["CurrentUser", "IdentityProvider", "SupabaseIdentityProvider"]
