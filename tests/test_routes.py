import pytest
from fastapi.testclient import TestClient

from main import app
from tests.conftest import FakeResult


@pytest.fixture
def client():
  return TestClient(app)


def test_health(client):
  r = client.get("/health")
  assert r.status_code == 200
  assert r.json()["ok"] is True


def test_cards(client, fake_engine):
  fake_engine(FakeResult(scalar=2), FakeResult(scalar=1), FakeResult(rows=[{"paid": 1000, "pending": 250}]))

  r = client.get("/api/cards")

  assert r.status_code == 200
  assert r.json() == {
    "number_of_customers": 1,
    "number_of_invoices": 2,
    "total_paid_invoices": "$10.00",
    "total_pending_invoices": "$2.50",
  }


def test_invoice_list_passes_query_and_page(client, fake_engine):
  engine = fake_engine(FakeResult())

  r = client.get("/api/invoices", params={"query": "evil", "page": 2})

  assert r.status_code == 200
  assert r.json() == []
  assert engine.connection.executed[0][1] == {"pattern": "%evil%", "limit": 6, "offset": 6}


def test_invoice_pages(client, fake_engine):
  fake_engine(FakeResult(scalar=7))

  assert client.get("/api/invoices/pages").json() == {"total_pages": 2}


def test_missing_invoice_is_404(client, fake_engine):
  fake_engine(FakeResult())

  assert client.get("/api/invoices/unknown").status_code == 404


def test_read_failure_is_500_with_message(client, fake_engine):
  fake_engine(connect_error=OSError("could not connect"))

  r = client.get("/api/revenue")

  assert r.status_code == 500
  assert r.json() == {"detail": "Failed to fetch revenue data."}


def test_create_invoice_redirects(client, fake_engine):
  engine = fake_engine(FakeResult(rowcount=1))

  r = client.post(
    "/api/invoices",
    data={"customerId": "c1", "amount": "50.00", "status": "paid"},
    follow_redirects=False,
  )

  assert r.status_code == 303
  assert r.headers["location"] == "/dashboard/invoices"
  assert engine.connection.executed[0][1]["amount"] == 5000


def test_create_invoice_field_errors(client, fake_engine):
  engine = fake_engine()

  r = client.post("/api/invoices", data={"customerId": "c1", "amount": "0", "status": "paid"})

  assert r.status_code == 422
  assert r.json()["errors"] == {"amount": ["Please enter an amount greater than $0."]}
  assert engine.connections == []


def test_update_invoice_invalid_form(client, fake_engine):
  fake_engine()

  r = client.put("/api/invoices/inv-1", data={"customerId": "", "amount": "5", "status": "paid"})

  assert r.status_code == 422
  assert r.json()["errors"] == {"customerId": ["Please select a customer."]}


def test_delete_invoice(client, fake_engine):
  fake_engine(FakeResult(rowcount=1))

  r = client.delete("/api/invoices/inv-1")

  assert r.status_code == 200
  assert r.json()["message"] == "Deleted Invoice."


def test_delete_invoice_failure(client, fake_engine):
  fake_engine(RuntimeError("boom"))

  r = client.delete("/api/invoices/inv-1")

  assert r.status_code == 500
  assert r.json()["message"] == "Database Error: Failed to Delete Invoice."
