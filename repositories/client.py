"""
Supabase client initialization.

This module contains *only* the database connection setup. It exposes
`get_supabase()`, which creates one async Supabase client per process on
first use, for the other repository modules to share.

Environment variables required (see config.py):
- SUPABASE_URL: Your Supabase project URL
- SUPABASE_KEY: Your Supabase API key (use a server-side key only on the backend)
"""

from __future__ import annotations

from typing import Optional

# The dependency is `supabase` (supabase-py). If your editor can't resolve it,
# install it in your environment: `pip install supabase`.
from supabase import AsyncClient, acreate_client  # type: ignore[import-not-found]

from config import config

_client: Optional[AsyncClient] = None


async def get_supabase() -> AsyncClient:
    """
    Return the shared async Supabase client, creating it on first call.

    Raises:
        RuntimeError: If SUPABASE_URL or SUPABASE_KEY is not configured
    """

    global _client
    if _client is None:
        config.validate()
        # Concurrent first calls may each build a client; the last one is kept.
        _client = await acreate_client(config.SUPABASE_URL, config.SUPABASE_KEY)
    return _client


__all__ = ["get_supabase"]
