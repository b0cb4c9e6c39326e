"""Tests for transaction listing and linkage."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from apps.api.core.auth import get_user_client
from apps.api.core.errors import register_error_handlers
from apps.api.domains.transactions.router import router
from apps.api.tests.fake_supabase import admin_db


@pytest.fixture
def db():
    return admin_db(
        pledges=[{"id": "p1"}, {"id": "p2"}],
        bank_transactions=[
            {"id": 1, "transaction_reference": "A", "credit_amount": 100, "pledge_id": None, "outgoing_id": None, "reconciled": False},
            {"id": 2, "transaction_reference": "B", "credit_amount": 200, "pledge_id": "p1", "outgoing_id": None, "reconciled": True},
            {"id": 3, "transaction_reference": "C", "debit_amount": 50, "pledge_id": None, "outgoing_id": "o1", "reconciled": True},
            {"id": 4, "transaction_reference": "D", "credit_amount": 75, "pledge_id": "p2", "outgoing_id": "o2", "reconciled": True},
        ],
    )


@pytest.fixture
def client(db):
    app = FastAPI()
    register_error_handlers(app)
    app.include_router(router, prefix="/api/v1")
    app.dependency_overrides[get_user_client] = lambda: db
    return TestClient(app)


def _row(db, transaction_id):
    return next(r for r in db.rows("bank_transactions") if r["id"] == transaction_id)


class TestListTransactions:
    def test_newest_first(self, client):
        data = client.get("/api/v1/bank-transactions").json()

        assert [t["id"] for t in data["transactions"]] == [4, 3, 2, 1]
        assert data["count"] == 4
        assert data["page"] == 1

    def test_pagination(self, client):
        data = client.get("/api/v1/bank-transactions?page=2&page_size=3").json()
        assert [t["id"] for t in data["transactions"]] == [1]

    def test_linked_filter(self, client):
        linked = client.get("/api/v1/bank-transactions?linked=true").json()
        unlinked = client.get("/api/v1/bank-transactions?linked=false").json()

        assert [t["id"] for t in linked["transactions"]] == [4, 2]
        assert [t["id"] for t in unlinked["transactions"]] == [3, 1]

    def test_page_size_is_capped(self, client):
        assert client.get("/api/v1/bank-transactions?page_size=5000").status_code == 422


class TestLinkTransaction:
    def test_linking_a_pledge_reconciles(self, client, db):
        response = client.patch("/api/v1/bank-transactions/1/link", json={"pledge_id": "p1"})

        assert response.status_code == 200
        assert response.json()["pledge_id"] == "p1"
        assert _row(db, 1)["reconciled"] is True

    def test_clearing_last_link_unreconciles(self, client, db):
        client.patch("/api/v1/bank-transactions/2/link", json={"pledge_id": None})

        row = _row(db, 2)
        assert row["pledge_id"] is None
        assert row["reconciled"] is False

    def test_clearing_one_of_two_links_stays_reconciled(self, client, db):
        client.patch("/api/v1/bank-transactions/4/link", json={"pledge_id": None})

        row = _row(db, 4)
        assert row["pledge_id"] is None
        assert row["outgoing_id"] == "o2"
        assert row["reconciled"] is True

    def test_other_columns_are_not_writable(self, client, db):
        response = client.patch(
            "/api/v1/bank-transactions/1/link",
            json={"outgoing_id": "o9", "credit_amount": 1_000_000},
        )

        assert response.status_code == 200
        assert _row(db, 1)["credit_amount"] == 100
        assert _row(db, 1)["outgoing_id"] == "o9"

    def test_empty_body_is_rejected(self, client):
        response = client.patch("/api/v1/bank-transactions/1/link", json={})
        assert response.status_code == 422
        assert response.json()["detail"] == "Provide pledge_id and/or outgoing_id"

    def test_unknown_transaction(self, client):
        response = client.patch("/api/v1/bank-transactions/999/link", json={"pledge_id": "p1"})
        assert response.status_code == 404

    def test_unknown_pledge(self, client, db):
        response = client.patch("/api/v1/bank-transactions/1/link", json={"pledge_id": "nope"})

        assert response.status_code == 404
        assert response.json()["detail"] == "Pledge nope not found"
        assert _row(db, 1)["pledge_id"] is None
