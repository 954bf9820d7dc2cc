"""
Domain: error taxonomy.

Orchestration code raises these; the sale pipeline normalizes them into a
result value instead of letting them escape.
"""

from __future__ import annotations


class Unauthenticated(Exception):
    """Raised when there is no active caller identity."""


class ProvisioningFailed(Exception):
    """Raised when the caller's supplier could not be resolved or created."""


class PersistenceError(Exception):
    """Raised when storage rejects a write that is fatal to the operation."""


class InvalidAmount(ValueError):
    """Raised when a payment increment is non-positive or not a number."""


class StorageError(Exception):
    """Raised by the storage adapter when Supabase rejects a request."""


class SegmentPersistenceWarning(UserWarning):
    """
    Flight segment batch failed after the sale was created.

    Only ever logged; never returned to or raised at the caller.
    """


__all__ = [
    "Unauthenticated",
    "ProvisioningFailed",
    "PersistenceError",
    "InvalidAmount",
    "StorageError",
    "SegmentPersistenceWarning",
]
