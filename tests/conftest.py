"""
Pytest configuration and in-memory collaborators.

Adds the project root to the Python path so that tests can import the
domain, repositories, services and api packages, and provides fakes for the
storage, identity and supplier-provisioning collaborators.
"""

from __future__ import annotations

import sys
from collections import defaultdict
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union
from uuid import uuid4

import pytest

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from domain.errors import StorageError  # noqa: E402
from repositories.identity import CurrentUser  # noqa: E402


def _matches(row: Mapping[str, Any], filters: Mapping[str, Any]) -> bool:
    return all(row.get(column) == value for column, value in filters.items())


class FakeStorage:
    """
    Table-generic in-memory Storage.

    - Every call is recorded in `calls` as (operation, table-or-function).
    - fail(op, target, error) makes that operation raise: a str becomes a
      StorageError, an exception instance is raised as-is. `times` limits
      how many calls fail before the operation recovers.
    - Inserted rows get a generated "id" when the payload has none.
    """

    def __init__(self) -> None:
        self.tables: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        self.calls: List[Tuple[str, str]] = []
        self.rpc_calls: List[Tuple[str, Dict[str, Any]]] = []
        self.rpc_handlers: Dict[str, Callable[[Dict[str, Any]], Any]] = {}
        self._failures: Dict[Tuple[str, str], List[Any]] = {}

    def fail(
        self,
        op: str,
        target: str,
        error: Union[str, BaseException] = "storage unavailable",
        times: Optional[int] = None,
    ) -> None:
        self._failures[(op, target)] = [error, times]

    def _record(self, op: str, target: str) -> None:
        self.calls.append((op, target))
        failure = self._failures.get((op, target))
        if failure is None:
            return

        error, remaining = failure
        if remaining is not None:
            if remaining <= 0:
                return
            failure[1] = remaining - 1

        if isinstance(error, BaseException):
            raise error
        raise StorageError(error)

    async def insert(self, table: str, payload: Any) -> List[Dict[str, Any]]:
        self._record("insert", table)
        rows = [dict(payload)] if isinstance(payload, Mapping) else [dict(p) for p in payload]
        for row in rows:
            row.setdefault("id", str(uuid4()))
        self.tables[table].extend(rows)
        return [dict(row) for row in rows]

    async def update(self, table: str, filters: Mapping[str, Any], payload: Mapping[str, Any]) -> None:
        self._record("update", table)
        for row in self.tables[table]:
            if _matches(row, filters):
                row.update(payload)

    async def select(
        self,
        table: str,
        filters: Mapping[str, Any],
        *,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        self._record("select", table)
        rows = [dict(row) for row in self.tables[table] if _matches(row, filters)]
        if order_by is not None:
            rows.sort(key=lambda row: row.get(order_by), reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        return rows

    async def delete(self, table: str, filters: Mapping[str, Any]) -> None:
        self._record("delete", table)
        self.tables[table] = [row for row in self.tables[table] if not _matches(row, filters)]

    async def rpc(self, function: str, params: Mapping[str, Any]) -> Any:
        self._record("rpc", function)
        self.rpc_calls.append((function, dict(params)))
        handler = self.rpc_handlers.get(function)
        return handler(dict(params)) if handler is not None else None


class FakeIdentity:
    """IdentityProvider returning a fixed user (or None) and counting lookups."""

    def __init__(self, user: Optional[CurrentUser]) -> None:
        self.user = user
        self.lookups = 0

    async def get_current_user(self) -> Optional[CurrentUser]:
        self.lookups += 1
        return self.user


class FakeProvisioner:
    """SupplierProvisioner returning a fixed id, or raising a given error."""

    def __init__(self, supplier_id: Optional[str] = None, error: Optional[Exception] = None) -> None:
        self.supplier_id = supplier_id
        self.error = error
        self.requests: List[str] = []

    async def ensure_supplier_for_user(self, user_id: str) -> Optional[str]:
        self.requests.append(user_id)
        if self.error is not None:
            raise self.error
        return self.supplier_id


SUPPLIER_ID = "11111111-1111-1111-1111-111111111111"


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def actor() -> CurrentUser:
    return CurrentUser(id="22222222-2222-2222-2222-222222222222", email="agent@example.com")


@pytest.fixture
def identity(actor: CurrentUser) -> FakeIdentity:
    return FakeIdentity(actor)


@pytest.fixture
def anonymous() -> FakeIdentity:
    return FakeIdentity(None)


@pytest.fixture
def provisioner() -> FakeProvisioner:
    return FakeProvisioner(SUPPLIER_ID)


@pytest.fixture
def supplier_id() -> str:
    return SUPPLIER_ID
