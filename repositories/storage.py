"""
Storage collaborator.

A thin, table-generic data-access interface over the relational store. The
engine only talks to storage through this protocol so services can run
against Supabase in production and an in-memory fake in tests.

Every method raises StorageError carrying the underlying message when the
store rejects a request.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Union

from postgrest.exceptions import APIError  # type: ignore[import-not-found]
from supabase import AsyncClient  # type: ignore[import-not-found]

from domain.errors import StorageError


Row = Dict[str, Any]
Payload = Union[Mapping[str, Any], Sequence[Mapping[str, Any]]]


class Storage(Protocol):
    async def insert(self, table: str, payload: Payload) -> List[Row]:
        """Insert one row or a batch; returns the inserted rows."""

    async def update(self, table: str, filters: Mapping[str, Any], payload: Mapping[str, Any]) -> None:
        """Update rows matching every equality filter."""

    async def select(
        self,
        table: str,
        filters: Mapping[str, Any],
        *,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Row]:
        """Fetch rows matching every equality filter."""

    async def delete(self, table: str, filters: Mapping[str, Any]) -> None:
        """Delete rows matching every equality filter."""

    async def rpc(self, function: str, params: Mapping[str, Any]) -> Any:
        """Call a database function and return its result."""


def _error_message(exc: APIError) -> str:
    message = getattr(exc, "message", None)
    return str(message) if message else str(exc)


class SupabaseStorage:
    """Storage backed by the async Supabase client (PostgREST)."""

    def __init__(self, client: AsyncClient) -> None:
        self.client = client

    async def insert(self, table: str, payload: Payload) -> List[Row]:
        data = dict(payload) if isinstance(payload, Mapping) else [dict(p) for p in payload]
        try:
            response = await self.client.table(table).insert(data).execute()
        except APIError as e:
            raise StorageError(_error_message(e)) from e

        error = getattr(response, "error", None)
        if error:
            raise StorageError(str(error))

        return list(getattr(response, "data", None) or [])

    async def update(self, table: str, filters: Mapping[str, Any], payload: Mapping[str, Any]) -> None:
        query = self.client.table(table).update(dict(payload))
        for column, value in filters.items():
            query = query.eq(column, value)

        try:
            response = await query.execute()
        except APIError as e:
            raise StorageError(_error_message(e)) from e

        error = getattr(response, "error", None)
        if error:
            raise StorageError(str(error))

    async def select(
        self,
        table: str,
        filters: Mapping[str, Any],
        *,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Row]:
        query = self.client.table(table).select("*")
        for column, value in filters.items():
            query = query.eq(column, value)
        if order_by is not None:
            query = query.order(order_by, desc=descending)
        if limit is not None:
            query = query.limit(limit)

        try:
            response = await query.execute()
        except APIError as e:
            raise StorageError(_error_message(e)) from e

        error = getattr(response, "error", None)
        if error:
            raise StorageError(str(error))

        return list(getattr(response, "data", None) or [])

    async def delete(self, table: str, filters: Mapping[str, Any]) -> None:
        query = self.client.table(table).delete()
        for column, value in filters.items():
            query = query.eq(column, value)

        try:
            response = await query.execute()
        except APIError as e:
            raise StorageError(_error_message(e)) from e

        error = getattr(response, "error", None)
        if error:
            raise StorageError(str(error))

    async def rpc(self, function: str, params: Mapping[str, Any]) -> Any:
        try:
            response = await self.client.rpc(function, dict(params)).execute()
        except APIError as e:
            raise StorageError(_error_message(e)) from e

        error = getattr(response, "error", None)
        if error:
            raise StorageError(str(error))

        return getattr(response, "data", None)


__all__ = ["Row", "Payload", "Storage", "SupabaseStorage"]
