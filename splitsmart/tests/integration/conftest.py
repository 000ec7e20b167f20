"""
tests/integration/conftest.py — Fixtures for all integration tests.

Design:
  - The app is created once per session using create_app("testing").
  - The ledger store is a module-level singleton; it is cleared after every
    test so tests are isolated.
  - `seed` loads a JSON-shaped snapshot into the store, the same way the
    calling layer would after fetching from its document store.
"""

from __future__ import annotations

import pytest

from splitsmart.app import create_app
from splitsmart.app.extensions import store as _store


@pytest.fixture(scope="session")
def app():
    """Creates the Flask application in 'testing' mode once per session."""
    return create_app("testing")


@pytest.fixture(autouse=True)
def clean_store(app):
    yield
    _store.clear()


@pytest.fixture
def client(app):
    """Flask test client. Each test gets a fresh client (function-scoped)."""
    return app.test_client()


@pytest.fixture
def seed():
    """Returns a loader: seed(groups=[...], expenses=[...], settlements=[...])."""

    def _seed(groups=(), expenses=(), settlements=()):
        _store.load({
            "groups": list(groups),
            "expenses": list(expenses),
            "settlements": list(settlements),
        })
        return _store

    return _seed


@pytest.fixture
def ab_group():
    return {
        "id": "g1",
        "name": "Flat",
        "members": [
            {"id": "A", "name": "Alice", "email": "alice@test.com"},
            {"id": "B", "name": "Bob", "email": "bob@test.com"},
        ],
    }


@pytest.fixture
def abc_group():
    return {
        "id": "g2",
        "name": "Trip",
        "members": [
            {"id": "A", "name": "Alice"},
            {"id": "B", "name": "Bob"},
            {"id": "C", "name": "Cara"},
        ],
    }


def expense_doc(
        expense_id: str,
        group_id: str,
        paid_by: str,
        amount: str,
        split: list[str],
        date: str = "2024-05-01T12:00:00Z",
        description: str = "Test Expense",
) -> dict:
    """Builds an expense document in the client's camelCase shape."""
    return {
        "id": expense_id,
        "groupId": group_id,
        "paidBy": paid_by,
        "amount": amount,
        "splitBetween": split,
        "description": description,
        "date": date,
    }


def settlement_doc(
        settlement_id: str,
        group_id: str,
        from_member: str,
        to_member: str,
        amount: str,
        confirmed: bool = False,
        description: str | None = None,
) -> dict:
    """Builds a settlement document in the server's snake_case shape."""
    doc = {
        "id": settlement_id,
        "group_id": group_id,
        "from_user": from_member,
        "to_user": to_member,
        "amount": amount,
        "confirmed": confirmed,
    }
    if description is not None:
        doc["description"] = description
    return doc


@pytest.fixture
def make_expense():
    return expense_doc


@pytest.fixture
def make_settlement():
    return settlement_doc
