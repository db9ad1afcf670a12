from __future__ import annotations

import os

# main crée son application à l'import: on la garde en mémoire pendant les tests
os.environ.pop("DB_PATH", None)
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient

from database.database import Database
from main import create_app


@pytest.fixture
def database():
    db = Database("sqlite://")
    db.init_db()
    yield db
    db.dispose()


@pytest.fixture
def session(database):
    yield from database.session()


@pytest.fixture
def client(database):
    with TestClient(create_app(database)) as test_client:
        yield test_client


def make_transaction(client, **overrides):
    payload = {
        "category": "Groceries",
        "amount": 50,
        "kind": "expense",
        "description": "",
        "date": "2024-03-15",
    }
    payload.update(overrides)
    response = client.post("/api/transactions", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def make_budget(client, **overrides):
    payload = {"category": "Groceries", "limit": 200, "month": 3, "year": 2024}
    payload.update(overrides)
    response = client.post("/api/budgets", json=payload)
    assert response.status_code == 201, response.text
    return response.json()
