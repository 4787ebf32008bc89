from __future__ import annotations

import itertools
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from luxeledger.dependencies.services import get_customer_service, get_invoice_service
from luxeledger.main import app
from luxeledger.schemas.billing import Invoice, InvoiceStatus
from luxeledger.services.customer_store import InMemoryCustomerBackend, ManualCustomerStore
from luxeledger.services.customers import CustomerService
from luxeledger.services.exceptions import DownstreamServiceError
from luxeledger.services.invoice import InvoiceService
from luxeledger.services.mock_store import InvoiceRepository


class MockLatencyClient:
    def __init__(self) -> None:
        self.use_mock_data = True

    async def simulate_latency(self) -> None:
        return None


class BrokenInvoiceService:
    async def list(self):
        raise DownstreamServiceError("Unable to reach billing service", status_code=None)


def _ravi_invoice(invoice_id: str, net: str, status: InvoiceStatus) -> Invoice:
    return Invoice(
        invoice_id=invoice_id,
        customer_name="Ravi Shah",
        status=status,
        net_amount=net,
        created_at=datetime(2025, 2, 1, tzinfo=timezone.utc),
    )


@pytest.fixture
def repository() -> InvoiceRepository:
    return InvoiceRepository(seed=False)


@pytest.fixture
def client(repository):
    counter = itertools.count(1)
    store = ManualCustomerStore(InMemoryCustomerBackend(), id_factory=lambda: f"cust-{next(counter)}")
    invoice_service = InvoiceService(MockLatencyClient(), repository=repository)
    customer_service = CustomerService(invoice_service, store)

    app.dependency_overrides[get_invoice_service] = lambda: invoice_service
    app.dependency_overrides[get_customer_service] = lambda: customer_service
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_empty_directory_is_not_an_error(client) -> None:
    response = client.get("/customers")

    assert response.status_code == 200
    assert response.json() == {"total": 0, "items": []}


def test_source_failure_is_reported(client, repository) -> None:
    app.dependency_overrides[get_customer_service] = lambda: CustomerService(
        BrokenInvoiceService(), ManualCustomerStore(InMemoryCustomerBackend())
    )

    response = client.get("/customers")

    assert response.status_code == 502
    assert response.json()["detail"]["error"] == "DownstreamServiceError"


def test_add_and_reject_duplicate(client) -> None:
    created = client.post("/customers", json={"full_name": "Asha Rao", "city": "Bengaluru"})
    duplicate = client.post("/customers", json={"full_name": " asha rao"})

    assert created.status_code == 201
    assert created.json()["id"] == "cust-1"
    assert created.json()["is_manual"] is True
    assert duplicate.status_code == 409
    assert duplicate.json()["detail"]["error"] == "DuplicateNameError"
    assert client.get("/customers").json()["total"] == 1


def test_blank_name_rejected_by_schema(client) -> None:
    response = client.post("/customers", json={"full_name": "   "})

    assert response.status_code == 422


def test_delete_guard_and_promotion(client, repository) -> None:
    repository.add(_ravi_invoice("INV-1", "1000", InvoiceStatus.PAID))
    repository.add(_ravi_invoice("INV-2", "500", InvoiceStatus.PENDING))

    blocked = client.delete("/customers/inv-cust-ravi shah")
    assert blocked.status_code == 409
    assert blocked.json()["detail"]["count"] == 2

    promoted = client.put("/customers/inv-cust-ravi shah", json={"full_name": "Ravi Shah", "notes": "gold buyer"})
    assert promoted.status_code == 200
    body = promoted.json()
    assert body["outcome"] == "promoted"
    assert body["customer"]["is_manual"] is True
    assert Decimal(body["customer"]["total_purchases"]) == Decimal("1500")
    assert Decimal(body["customer"]["outstanding_balance"]) == Decimal("500")

    fetched = client.get(f"/customers/{body['customer']['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["notes"] == "gold buyer"


def test_customer_id_with_slash_is_routable(client, repository) -> None:
    repository.add(
        Invoice(
            invoice_id="INV-9",
            customer_name="A/B Traders",
            status=InvoiceStatus.PENDING,
            net_amount="750",
            created_at=datetime(2025, 2, 1, tzinfo=timezone.utc),
        )
    )

    [listed] = client.get("/customers").json()["items"]
    assert listed["id"] == "inv-cust-a/b traders"

    fetched = client.get("/customers/inv-cust-a%2Fb%20traders")
    assert fetched.status_code == 200
    assert fetched.json()["full_name"] == "A/B Traders"

    blocked = client.delete("/customers/inv-cust-a%2Fb%20traders")
    assert blocked.status_code == 409
    assert blocked.json()["detail"]["count"] == 1

    promoted = client.put("/customers/inv-cust-a%2Fb%20traders", json={"full_name": "A/B Traders"})
    assert promoted.status_code == 200
    assert promoted.json()["outcome"] == "promoted"
    assert Decimal(promoted.json()["customer"]["outstanding_balance"]) == Decimal("750")


def test_delete_standalone_customer(client) -> None:
    created = client.post("/customers", json={"full_name": "Kiran Das"}).json()

    response = client.delete(f"/customers/{created['id']}")

    assert response.status_code == 200
    assert response.json() == {"customer_id": created["id"], "deleted": True}
    assert client.get(f"/customers/{created['id']}").status_code == 404


def test_search_outstanding(client, repository) -> None:
    repository.add(_ravi_invoice("INV-1", "500", InvoiceStatus.PENDING))
    client.post("/customers", json={"full_name": "Asha Rao"})

    response = client.get("/customers/search", params={"criteria": "outstanding"})

    assert response.status_code == 200
    assert [item["full_name"] for item in response.json()["items"]] == ["Ravi Shah"]


def test_quote_matches_printed_rows(client) -> None:
    response = client.post(
        "/invoices/quote",
        json={
            "items": [
                {
                    "description": "22K ring",
                    "type": "GOLD_22K",
                    "weight": 10,
                    "rate": 6000,
                    "makingChargePercent": 10,
                    "gstPercent": 3,
                }
            ]
        },
    )

    assert response.status_code == 200
    body = response.json()
    line = body["lines"][0]
    assert Decimal(line["base_amount"]) == Decimal("60000")
    assert Decimal(line["making_charge_amount"]) == Decimal("6000")
    assert Decimal(line["gst_amount"]) == Decimal("1980")
    assert Decimal(body["net_amount"]) == Decimal("67980")


def test_quote_negative_weight_reports_line(client) -> None:
    response = client.post(
        "/invoices/quote",
        json={"items": [{"weight_grams": 1, "rate_per_gram": 10}, {"weight_grams": -2, "rate_per_gram": 10}]},
    )

    assert response.status_code == 422
    detail = response.json()["detail"]
    assert detail["field"] == "weight_grams"
    assert detail["index"] == 1


def test_create_and_list_invoices(client) -> None:
    created = client.post(
        "/invoices",
        json={
            "customer_name": "Meera Iyer",
            "status": "Paid",
            "items": [{"weight_grams": "2", "rate_per_gram": "80", "gst_percent": "3"}],
        },
    )

    assert created.status_code == 201
    assert Decimal(created.json()["net_amount"]) == Decimal("164.80")

    listed = client.get("/invoices").json()
    assert listed["total"] == 1

    customers = client.get("/customers").json()
    assert customers["items"][0]["full_name"] == "Meera Iyer"
    assert Decimal(customers["items"][0]["total_paid"]) == Decimal("164.80")


def test_health(client) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["ok"] is True
    assert response.json()["currency"] == "INR"
