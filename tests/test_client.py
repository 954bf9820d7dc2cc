"""
Tests for `repositories/client.py`.

Covers contract rules:
- The Supabase client is created lazily, once, and shared.
- It can be fetched from more than one event loop.
- Missing credentials fail at first use, not at import.
"""

from __future__ import annotations

import asyncio

import pytest

import repositories.client as client_module
from config import Config


@pytest.fixture
def fake_create(monkeypatch):
    created = []

    async def create(url, key):
        created.append((url, key))
        return object()

    monkeypatch.setattr(client_module, "acreate_client", create)
    monkeypatch.setattr(client_module, "_client", None)
    return created


def test_client_is_shared_across_event_loops(monkeypatch, fake_create) -> None:
    monkeypatch.setattr(Config, "SUPABASE_URL", "https://example.supabase.co")
    monkeypatch.setattr(Config, "SUPABASE_KEY", "service-key")

    first = asyncio.run(client_module.get_supabase())
    second = asyncio.run(client_module.get_supabase())

    assert first is second
    assert fake_create == [("https://example.supabase.co", "service-key")]


def test_missing_credentials_fail_on_first_use(monkeypatch, fake_create) -> None:
    monkeypatch.setattr(Config, "SUPABASE_URL", None)
    monkeypatch.setattr(Config, "SUPABASE_KEY", None)

    with pytest.raises(RuntimeError, match="Configuration errors"):
        asyncio.run(client_module.get_supabase())

    assert fake_create == []
