"""
Tests for `services/supplier_service.py` and `repositories/supplier_repository.py`.

Covers contract rules:
- No session means Unauthenticated, before provisioning is attempted.
- Provisioning errors and empty results surface as ProvisioningFailed.
- The provisioning RPC result is accepted as a scalar, a row or a row list.
"""

from __future__ import annotations

import asyncio

import pytest

from conftest import FakeProvisioner
from domain.errors import ProvisioningFailed, StorageError, Unauthenticated
from repositories.supplier_repository import RpcSupplierProvisioner
from services.supplier_service import resolve_supplier_id


def test_resolves_supplier_for_current_user(identity, provisioner, supplier_id, actor) -> None:
    assert asyncio.run(resolve_supplier_id(identity, provisioner)) == supplier_id
    assert provisioner.requests == [actor.id]


def test_no_session_is_unauthenticated(anonymous, provisioner) -> None:
    with pytest.raises(Unauthenticated):
        asyncio.run(resolve_supplier_id(anonymous, provisioner))

    assert provisioner.requests == []


def test_storage_error_becomes_provisioning_failed(identity) -> None:
    provisioner = FakeProvisioner(error=StorageError("permission denied"))

    with pytest.raises(ProvisioningFailed, match="permission denied"):
        asyncio.run(resolve_supplier_id(identity, provisioner))


def test_empty_supplier_id_is_provisioning_failed(identity) -> None:
    with pytest.raises(ProvisioningFailed):
        asyncio.run(resolve_supplier_id(identity, FakeProvisioner(None)))


@pytest.mark.parametrize(
    "rpc_result",
    [
        "s-1",
        {"supplier_id": "s-1"},
        {"id": "s-1"},
        [{"supplier_id": "s-1"}],
    ],
)
def test_rpc_provisioner_reads_supplier_id(storage, rpc_result) -> None:
    storage.rpc_handlers["ensure_supplier_for_user"] = lambda params: rpc_result

    supplier_id = asyncio.run(RpcSupplierProvisioner(storage).ensure_supplier_for_user("u-1"))

    assert supplier_id == "s-1"
    assert storage.rpc_calls == [("ensure_supplier_for_user", {"p_user_id": "u-1"})]


def test_rpc_provisioner_empty_result(storage) -> None:
    storage.rpc_handlers["ensure_supplier_for_user"] = lambda params: []

    assert asyncio.run(RpcSupplierProvisioner(storage).ensure_supplier_for_user("u-1")) is None
