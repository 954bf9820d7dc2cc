"""
Access gate for supplier-scoped features.

A caller has access when their e-mail is on the always-active whitelist or
their subscription is active / trialing.

- The whitelist lives in an explicit WhitelistCache value, scoped to a
  session and cleared with invalidate(); nothing is kept in module globals.
- Subscription lookups retry transient storage failures under a bounded
  RetryPolicy passed in by the caller (tenacity under the hood).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, FrozenSet, Iterable, Optional

from tenacity import (  # type: ignore[import-not-found]
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from config import config
from domain.errors import StorageError
from repositories.identity import CurrentUser

logger = logging.getLogger(__name__)

VALID_SUBSCRIPTION_STATUSES: FrozenSet[str] = frozenset({"active", "trialing"})

WhitelistLoader = Callable[[], Awaitable[Iterable[str]]]
StatusFetcher = Callable[[str], Awaitable[Optional[str]]]


def parse_whitelist(raw: str) -> FrozenSet[str]:
    """Split a comma-separated e-mail list into a lowercase set."""

    return frozenset(e.strip().lower() for e in raw.split(",") if e.strip())


async def config_whitelist_loader() -> FrozenSet[str]:
    return parse_whitelist(config.ALWAYS_ACTIVE_EMAILS)


class WhitelistCache:
    """
    Memoized always-active e-mail whitelist for one session.

    The loader runs at most once until invalidate() is called.
    """

    def __init__(self, loader: WhitelistLoader = config_whitelist_loader) -> None:
        self._loader = loader
        self._emails: Optional[FrozenSet[str]] = None

    async def emails(self) -> FrozenSet[str]:
        if self._emails is None:
            loaded = await self._loader()
            self._emails = frozenset(e.strip().lower() for e in loaded if e and e.strip())
        return self._emails

    async def contains(self, email: Optional[str]) -> bool:
        if not email:
            return False
        return email.strip().lower() in await self.emails()

    def invalidate(self) -> None:
        self._emails = None

    @property
    def loaded(self) -> bool:
        return self._emails is not None


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """
    Bounded retry for transient lookup failures.

    wait is a tenacity wait strategy (backoff function).
    """

    max_attempts: int = 3
    wait: Any = field(default_factory=lambda: wait_exponential(multiplier=0.5, min=0.5, max=4))

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")


def default_retry_policy() -> RetryPolicy:
    return RetryPolicy(max_attempts=config.ACCESS_CHECK_MAX_ATTEMPTS)


def has_active_access(
    email: Optional[str],
    subscription_status: Optional[str],
    whitelist: FrozenSet[str],
) -> bool:
    """Pure access rule: whitelisted e-mail or a valid subscription status."""

    if email and email.strip().lower() in whitelist:
        return True
    return subscription_status in VALID_SUBSCRIPTION_STATUSES


async def fetch_status_with_retry(
    fetch_status: StatusFetcher,
    user_id: str,
    retry_policy: RetryPolicy,
) -> Optional[str]:
    """
    Fetch a subscription status, retrying StorageError under the policy.

    Raises:
        StorageError: The last failure, once attempts are exhausted
    """

    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(retry_policy.max_attempts),
        wait=retry_policy.wait,
        retry=retry_if_exception_type(StorageError),
        reraise=True,
    ):
        with attempt:
            return await fetch_status(user_id)
    return None


async def check_access(
    user: Optional[CurrentUser],
    *,
    whitelist: WhitelistCache,
    fetch_status: StatusFetcher,
    retry_policy: Optional[RetryPolicy] = None,
) -> bool:
    """
    Decide whether the caller may use the system.

    Whitelisted callers never hit the subscription lookup. When the lookup
    still fails after every retry, access is denied and the failure logged.
    """

    if user is None:
        return False

    if await whitelist.contains(user.email):
        return True

    policy = retry_policy if retry_policy is not None else default_retry_policy()
    try:
        status = await fetch_status_with_retry(fetch_status, user.id, policy)
    except StorageError as e:
        logger.error(
            "Subscription check failed; denying access",
            extra={"user_id": user.id, "attempts": policy.max_attempts, "error": str(e)},
        )
        return False

    return has_active_access(user.email, status, frozenset())


__all__ = [
    "VALID_SUBSCRIPTION_STATUSES",
    "WhitelistCache",
    "RetryPolicy",
    "parse_whitelist",
    "config_whitelist_loader",
    "default_retry_policy",
    "has_active_access",
    "fetch_status_with_retry",
    "check_access",
]
