"""Tests for the bank statement upload endpoints."""

import io

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from apps.api.core.auth import get_user_client
from apps.api.core.errors import register_error_handlers
from apps.api.domains.ingestion.router import router
from apps.api.tests.fake_supabase import FakeSupabase, admin_db, make_user


@pytest.fixture
def app():
    app = FastAPI()
    register_error_handlers(app)
    app.include_router(router, prefix="/api/v1")
    return app


@pytest.fixture
def db():
    return admin_db(
        bank_transactions=[{"transaction_reference": "EXISTING-1", "credit_amount": 50}]
    )


@pytest.fixture
def client(app, db):
    app.dependency_overrides[get_user_client] = lambda: db
    c = TestClient(app)
    yield c
    app.dependency_overrides.clear()


CSV_SAMPLE = """Value Date,Reference,Debit,Credit,Balance
31/01/2024,EXISTING-1,,50.00,50.00
01/02/2024,NEW-1,,1000.00,1050.00
02/02/2024,NEW-2,200.00,,850.00
"""


def _upload(client, content: str, filename: str = "statement.csv", mime: str = "text/csv"):
    return client.post(
        "/api/v1/bank-statements/upload",
        files={"file": (filename, io.BytesIO(content.encode("utf-8")), mime)},
    )


def test_upload_reports_imported_and_skipped(client, db):
    response = _upload(client, CSV_SAMPLE)

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["rowsImported"] == 2
    assert data["duplicatesSkipped"] == 1
    assert data["duplicateReferences"] == ["EXISTING-1"]
    assert data["message"] == "Successfully imported 2 transactions. Skipped 1 duplicate transactions."
    assert data["warnings"] == []
    assert len(db.rows("bank_transactions")) == 3


def test_upload_surfaces_coercion_warnings(client):
    response = _upload(client, "Value Date,Reference,Credit\n99/99/2024,W-1,abc\n")

    data = response.json()
    assert data["rowsImported"] == 1
    assert {"row": 1, "field": "value_date", "value": "99/99/2024"} in data["warnings"]
    assert {"row": 1, "field": "credit_amount", "value": "abc"} in data["warnings"]


def test_rejects_unsupported_extension(client):
    response = _upload(client, "hello", filename="photo.jpg", mime="image/jpeg")
    assert response.status_code == 400
    assert response.json() == {
        "error": "Invalid file type. Only CSV and Excel files are supported."
    }


@pytest.mark.parametrize("filename", ["statement.xlsx", "statement.XLS"])
def test_excel_is_not_implemented(client, filename):
    response = _upload(client, "binary", filename=filename, mime="application/vnd.ms-excel")
    assert response.status_code == 400
    assert response.json()["error"] == "Excel file processing is not implemented yet."


def test_malformed_csv_is_rejected_before_insert(client, db):
    response = _upload(client, "Reference,Credit\nA,1\nB,2,3\n")

    assert response.status_code == 400
    assert response.json()["error"].startswith("CSV parsing error")
    assert len(db.rows("bank_transactions")) == 1


def test_missing_file(client):
    response = client.post("/api/v1/bank-statements/upload")
    assert response.status_code == 400
    assert response.json() == {"error": "No file provided"}


def test_storage_failure_is_reported_in_body(client, db):
    db.fail_writes["bank_transactions"] = "violates check constraint"

    response = _upload(client, CSV_SAMPLE)

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is False
    assert data["rowsImported"] == 0
    assert data["message"] == "Error inserting transactions: violates check constraint"


def test_reference_fetch_failure_is_500(client, db):
    db.fail_reads["bank_transactions"] = "timeout"

    response = _upload(client, CSV_SAMPLE)

    assert response.status_code == 500
    assert response.json() == {"error": "Error checking existing transactions: timeout"}


def test_supporters_cannot_upload(app):
    supporter = FakeSupabase(
        tables={"profiles": [{"id": "s-1", "role": "supporter"}]},
        user=make_user("s-1", "donor@example.org"),
    )
    app.dependency_overrides[get_user_client] = lambda: supporter
    response = _upload(TestClient(app), CSV_SAMPLE)
    app.dependency_overrides.clear()

    assert response.status_code == 403
    assert supporter.rows("bank_transactions") == []


def test_upload_mapped_goes_through_dedup(client, db):
    payload = {
        "transactions": [
            {"transaction_reference": "EXISTING-1", "credit_amount": 50},
            {
                "transaction_reference": "MAPPED-1",
                "value_date": "15/03/2024",
                "credit_amount": "ETB 1,250.00",
                "description": "Quarterly gift",
            },
        ]
    }

    response = client.post("/api/v1/bank-statements/upload-mapped", json=payload)

    data = response.json()
    assert response.status_code == 200
    assert data["rowsImported"] == 1
    assert data["duplicatesSkipped"] == 1
    stored = next(
        r for r in db.rows("bank_transactions") if r["transaction_reference"] == "MAPPED-1"
    )
    assert stored["value_date"] == "2024-03-15"
    assert stored["credit_amount"] == 1250.0
    assert stored["reconciled"] is False


def test_upload_mapped_requires_rows(client):
    response = client.post("/api/v1/bank-statements/upload-mapped", json={"transactions": []})
    assert response.status_code == 400
    assert response.json() == {"error": "No transactions to import"}
