"""Tests for the payroll HTTP endpoints."""

import uuid
from datetime import datetime
from decimal import Decimal

from koperasi.services.installment import generate_installment_schedule


def test_root(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["message"] == "Koperasi Payroll API"


def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["services"]["api"] == "ok"
    assert body["services"]["scheduler"]["running"] is False


def test_health_closes_its_session(client, db, monkeypatch):
    from sqlalchemy.orm import sessionmaker

    from koperasi.db import base

    factory = sessionmaker(bind=db.get_bind())
    opened = []

    def tracking_session():
        session = factory()
        opened.append(session)
        return session

    monkeypatch.setattr(base, "SessionLocal", tracking_session)

    for _ in range(3):
        assert client.get("/api/health").json()["status"] == "healthy"

    assert len(opened) == 3
    assert all(not session.in_transaction() for session in opened)


def test_process_payroll(client, make_member, tmp_path):
    make_member()

    response = client.post("/api/payroll/process", json={"month": 2, "year": 2025})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["period_name"] == "Periode Februari 2025"
    assert Decimal(str(data["grand_total"])) == Decimal("50000")
    assert data["mandatory_savings"]["processed_count"] == 1

    audit_files = list((tmp_path / "logs").glob("audit_*.log"))
    assert len(audit_files) == 1
    assert "api | payroll_processed" in audit_files[0].read_text()


def test_process_twice_returns_400(client, make_member):
    make_member()
    client.post("/api/payroll/process", json={"month": 2, "year": 2025})

    response = client.post("/api/payroll/process", json={"month": 2, "year": 2025})

    assert response.status_code == 400
    assert "already been processed" in response.json()["detail"]


def test_force_reprocess(client, make_member):
    make_member()
    client.post("/api/payroll/process", json={"month": 2, "year": 2025})

    response = client.post("/api/payroll/process", json={"month": 2, "year": 2025, "force": True})

    assert response.status_code == 200
    assert Decimal(str(response.json()["data"]["grand_total"])) == Decimal("50000")


def test_force_older_period_returns_400(client, make_member):
    make_member()
    client.post("/api/payroll/process", json={"month": 1, "year": 2025})
    client.post("/api/payroll/process", json={"month": 2, "year": 2025})

    response = client.post("/api/payroll/process", json={"month": 1, "year": 2025, "force": True})

    assert response.status_code == 400
    assert "later period 2-2025" in response.json()["detail"]


def test_process_validates_request(client):
    assert client.post("/api/payroll/process", json={"month": 13, "year": 2025}).status_code == 422
    assert client.post("/api/payroll/process", json={"month": 1, "year": 2019}).status_code == 422


def test_status(client, make_member):
    response = client.get("/api/payroll/status", params={"month": 2, "year": 2025})
    assert response.status_code == 200
    assert response.json()["data"] is None

    make_member()
    client.post("/api/payroll/process", json={"month": 2, "year": 2025})

    data = client.get("/api/payroll/status", params={"month": 2, "year": 2025}).json()["data"]
    assert data["is_processed"] is True
    assert data["transaction_count"] == 1


def test_history(client, make_member):
    make_member()
    for month in (1, 2, 3):
        client.post("/api/payroll/process", json={"month": month, "year": 2025})

    response = client.get("/api/payroll/history", params={"limit": 2})

    assert response.status_code == 200
    assert [p["month"] for p in response.json()["data"]] == [3, 2]
    assert client.get("/api/payroll/history", params={"limit": 0}).status_code == 422


def test_period_transactions(client, make_member):
    make_member(name="Gita")
    period_id = client.post("/api/payroll/process", json={"month": 2, "year": 2025}).json()["data"]["period_id"]

    response = client.get(f"/api/payroll/period/{period_id}/transactions")

    assert response.status_code == 200
    transactions = response.json()["data"]["transactions"]
    assert transactions[0]["member"]["name"] == "Gita"

    assert client.get(f"/api/payroll/period/{uuid.uuid4()}/transactions").status_code == 404


def test_preview(client, make_member):
    make_member()

    response = client.get("/api/payroll/preview", params={"month": 2, "year": 2025})

    assert response.status_code == 200
    assert response.json()["data"]["preview"]["active_members_for_mandatory_savings"] == 1
    assert client.get("/api/payroll/status", params={"month": 2, "year": 2025}).json()["data"] is None


def test_loan_installments(client, db, make_member, make_loan, payroll_settings):
    member = make_member()
    loan = make_loan(member, disbursed_at=datetime(2025, 1, 10), tenor=3, installment=Decimal("340000"))
    generate_installment_schedule(db, loan.id, settings=payroll_settings)

    response = client.get(f"/api/payroll/loans/{loan.id}/installments")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["total_installments"] == 3
    assert data["installments"][0]["due_date"] == "2025-01-27"

    assert client.get(f"/api/payroll/loans/{uuid.uuid4()}/installments").status_code == 404
