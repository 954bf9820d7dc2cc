"""
Tests for `services/access_service.py`.

Covers contract rules:
- Whitelisted e-mails (case-insensitive) always have access, without a lookup.
- Otherwise access requires an `active` or `trialing` subscription.
- The whitelist is loaded once per cache until invalidated.
- Subscription lookups retry transient failures a bounded number of times.
"""

from __future__ import annotations

import asyncio

import pytest
from tenacity import wait_none

from domain.errors import StorageError
from repositories.identity import CurrentUser
from repositories.subscription_repository import get_subscription_status
from services.access_service import (
    RetryPolicy,
    WhitelistCache,
    check_access,
    has_active_access,
    parse_whitelist,
)

NO_WAIT = RetryPolicy(max_attempts=3, wait=wait_none())


class CountingLoader:
    def __init__(self, emails):
        self.emails = emails
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        return self.emails


class FlakyStatus:
    """Status fetcher failing the first `failures` calls."""

    def __init__(self, status, failures: int = 0):
        self.status = status
        self.failures = failures
        self.calls = 0

    async def __call__(self, user_id: str):
        self.calls += 1
        if self.calls <= self.failures:
            raise StorageError("connection timed out")
        return self.status


def _user(email: str = "agent@example.com") -> CurrentUser:
    return CurrentUser(id="u-1", email=email)


def test_parse_whitelist() -> None:
    assert parse_whitelist(" Owner@Example.com, ,ops@example.com ") == frozenset(
        {"owner@example.com", "ops@example.com"}
    )
    assert parse_whitelist("") == frozenset()


@pytest.mark.parametrize(
    "status, expected",
    [("active", True), ("trialing", True), ("past_due", False), ("canceled", False), (None, False)],
)
def test_subscription_statuses(status, expected) -> None:
    assert has_active_access("agent@example.com", status, frozenset()) is expected


def test_whitelisted_email_ignores_status() -> None:
    assert has_active_access("Owner@Example.com", None, frozenset({"owner@example.com"}))


def test_whitelist_cache_loads_once_and_invalidates() -> None:
    loader = CountingLoader(["Owner@Example.com"])
    cache = WhitelistCache(loader)

    async def scenario():
        assert await cache.contains("owner@example.com")
        assert not await cache.contains("someone@example.com")
        assert cache.loaded
        cache.invalidate()
        assert not cache.loaded
        assert await cache.contains("OWNER@example.com")

    asyncio.run(scenario())

    assert loader.calls == 2


def test_whitelisted_user_skips_subscription_lookup() -> None:
    fetch = FlakyStatus(None)
    whitelist = WhitelistCache(CountingLoader(["agent@example.com"]))

    allowed = asyncio.run(check_access(_user(), whitelist=whitelist, fetch_status=fetch, retry_policy=NO_WAIT))

    assert allowed
    assert fetch.calls == 0


def test_active_subscription_grants_access() -> None:
    allowed = asyncio.run(
        check_access(
            _user(),
            whitelist=WhitelistCache(CountingLoader([])),
            fetch_status=FlakyStatus("active"),
            retry_policy=NO_WAIT,
        )
    )

    assert allowed


def test_no_user_has_no_access() -> None:
    fetch = FlakyStatus("active")

    allowed = asyncio.run(
        check_access(None, whitelist=WhitelistCache(CountingLoader([])), fetch_status=fetch, retry_policy=NO_WAIT)
    )

    assert not allowed
    assert fetch.calls == 0


def test_transient_failures_are_retried() -> None:
    fetch = FlakyStatus("trialing", failures=2)

    allowed = asyncio.run(
        check_access(_user(), whitelist=WhitelistCache(CountingLoader([])), fetch_status=fetch, retry_policy=NO_WAIT)
    )

    assert allowed
    assert fetch.calls == 3


def test_exhausted_retries_deny_access() -> None:
    fetch = FlakyStatus("active", failures=5)

    allowed = asyncio.run(
        check_access(_user(), whitelist=WhitelistCache(CountingLoader([])), fetch_status=fetch, retry_policy=NO_WAIT)
    )

    assert not allowed
    assert fetch.calls == 3


def test_retry_policy_requires_an_attempt() -> None:
    with pytest.raises(ValueError):
        RetryPolicy(max_attempts=0)


def test_subscription_status_lookup(storage) -> None:
    storage.tables["billing_subscriptions"].append({"user_id": "u-1", "status": "active"})

    assert asyncio.run(get_subscription_status(storage, "u-1")) == "active"
    assert asyncio.run(get_subscription_status(storage, "u-2")) is None
