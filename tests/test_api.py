"""
Tests for the REST API (`api/`).

Runs the FastAPI app with in-memory collaborators through dependency
overrides; no Supabase project is needed.
"""

from __future__ import annotations

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_identity, get_provisioner, get_storage, get_whitelist
from api.main import app
from conftest import FakeIdentity
from services.access_service import WhitelistCache


def _sale_body(**overrides) -> dict:
    body = {
        "channel": "balcao",
        "customer_name": "Maria Souza",
        "customer_cpf": "12345678900",
        "passengers": 1,
        "trip_type": "round_trip",
        "flight_segments": [
            {"from": "GRU", "to": "GIG", "date": "2024-01-01"},
            {"from": "GIG", "to": "GRU", "date": "2024-01-08"},
        ],
        "seller_name": "João",
        "seller_contact": "11999999999",
        "counter_cost_per_thousand": "18.50",
        "price_total": "1875.00",
        "miles_used": 50000,
    }
    body.update(overrides)
    return body


@pytest.fixture
def whitelist(actor) -> WhitelistCache:
    async def loader():
        return [actor.email]

    return WhitelistCache(loader)


@pytest.fixture
def client(storage, identity, provisioner, whitelist):
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_identity] = lambda: identity
    app.dependency_overrides[get_provisioner] = lambda: provisioner
    app.dependency_overrides[get_whitelist] = lambda: whitelist
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_pricing_calculate(client) -> None:
    response = client.post(
        "/api/v1/pricing/calculate",
        json={
            "miles_used": 50000,
            "cost_per_thousand": "29",
            "boarding_fee": "50",
            "passengers": 1,
            "target_margin": "20",
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert Decimal(str(body["total_cost"])) == Decimal("1500")
    assert Decimal(str(body["suggested_price"])) == Decimal("1875")
    assert Decimal(str(body["profit_margin"])) == Decimal("20")


def test_installment_quote(client, storage, supplier_id) -> None:
    storage.tables["credit_interest_config"].append(
        {"id": "cfg-1", "supplier_id": supplier_id, "installments": 3, "interest_rate": "10", "is_active": True}
    )

    response = client.post("/api/v1/pricing/installments", json={"total_price": "300", "installments": 3})

    assert response.status_code == 200
    assert Decimal(str(response.json()["final_price"])) == Decimal("330")


def test_create_sale(client, storage) -> None:
    response = client.post("/api/v1/sales", json=_sale_body())

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["sale_id"] == storage.tables["sales"][0]["id"]
    assert len(storage.tables["sale_segments"]) == 2


def test_create_sale_storage_failure_reports_error(client, storage) -> None:
    storage.fail("insert", "sales", "duplicate key value")

    response = client.post("/api/v1/sales", json=_sale_body())

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is False
    assert body["sale_id"] is None
    assert body["error"] == "Failed to create sale: duplicate key value"


def test_sale_request_validation(client, storage) -> None:
    """Channel-specific fields are required before the pipeline runs."""

    body = _sale_body()
    del body["seller_name"]

    response = client.post("/api/v1/sales", json=body)

    assert response.status_code == 422
    assert storage.tables["sales"] == []


def test_internal_sale_requires_account(client) -> None:
    response = client.post("/api/v1/sales", json=_sale_body(channel="internal"))

    assert response.status_code == 422


def test_payments_roundtrip(client) -> None:
    sale_id = client.post("/api/v1/sales", json=_sale_body()).json()["sale_id"]

    partial = client.post(
        f"/api/v1/sales/{sale_id}/payments",
        json={"amount": "875.00", "payment_method": "pix"},
    )
    assert partial.status_code == 200
    assert partial.json()["payment_status"] == "partial"
    assert partial.json()["paid_at"] is None

    full = client.post(
        f"/api/v1/sales/{sale_id}/payments",
        json={"amount": "1000.00", "payment_method": "credit_card"},
    )
    assert full.json()["payment_status"] == "paid"
    assert full.json()["paid_at"] is not None

    summary = client.get(f"/api/v1/sales/{sale_id}/payments").json()
    assert summary["payment_status"] == "paid"
    assert Decimal(str(summary["outstanding_amount"])) == Decimal("0")
    assert len(summary["transactions"]) == 2


def test_non_positive_payment_is_422(client) -> None:
    sale_id = client.post("/api/v1/sales", json=_sale_body()).json()["sale_id"]

    response = client.post(f"/api/v1/sales/{sale_id}/payments", json={"amount": "0", "payment_method": "pix"})

    assert response.status_code == 422


def test_payment_for_unknown_sale_is_404(client) -> None:
    response = client.post(
        "/api/v1/sales/77777777-7777-7777-7777-777777777777/payments",
        json={"amount": "10", "payment_method": "pix"},
    )

    assert response.status_code == 404


def test_missing_session_is_401(client) -> None:
    app.dependency_overrides[get_identity] = lambda: FakeIdentity(None)

    response = client.post("/api/v1/sales", json=_sale_body())

    assert response.status_code == 401


def test_inactive_subscription_is_402(client, storage, actor) -> None:
    app.dependency_overrides[get_whitelist] = lambda: WhitelistCache(_empty_loader)
    storage.tables["billing_subscriptions"].append(
        {"user_id": actor.id, "status": "canceled"}
    )

    response = client.post("/api/v1/sales", json=_sale_body())

    assert response.status_code == 402
    assert storage.tables["sales"] == []


async def _empty_loader():
    return []
