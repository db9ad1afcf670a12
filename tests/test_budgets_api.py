from __future__ import annotations

from conftest import make_budget, make_transaction


def test_create_and_get_budget(client) -> None:
    created = make_budget(client)
    assert created["category"] == "Groceries"
    assert created["limit"] == 200

    response = client.get(f"/api/budgets/{created['id']}")
    assert response.status_code == 200
    assert response.json() == created


def test_create_validation(client) -> None:
    bad_payloads = [
        {"category": "Food", "limit": 0, "month": 3, "year": 2024},
        {"category": "Food", "limit": 100, "month": 13, "year": 2024},
        {"category": "Food", "limit": 100, "month": 0, "year": 2024},
        {"category": "", "limit": 100, "month": 3, "year": 2024},
        {"limit": 100, "month": 3, "year": 2024},
    ]
    for payload in bad_payloads:
        response = client.post("/api/budgets", json=payload)
        assert response.status_code == 400, payload
        assert "error" in response.json()


def test_duplicate_budget_is_a_conflict(client) -> None:
    original = make_budget(client)
    response = client.post("/api/budgets", json={
        "category": "Groceries", "limit": 999, "month": 3, "year": 2024
    })
    assert response.status_code == 409
    assert "error" in response.json()

    stored = client.get(f"/api/budgets/{original['id']}").json()
    assert stored["limit"] == 200
    assert len(client.get("/api/budgets").json()) == 1


def test_same_category_other_period_is_allowed(client) -> None:
    make_budget(client)
    make_budget(client, month=4)
    make_budget(client, category="groceries")
    assert len(client.get("/api/budgets").json()) == 3


def test_list_filters_and_order(client) -> None:
    make_budget(client, month=1, year=2024)
    make_budget(client, month=12, year=2023)
    make_budget(client, month=3, year=2024)
    make_budget(client, category="Rent", month=3, year=2024)

    rows = client.get("/api/budgets").json()
    assert [(b["year"], b["month"]) for b in rows] == [(2024, 3), (2024, 3), (2024, 1), (2023, 12)]

    march = client.get("/api/budgets", params={"month": 3}).json()
    assert {b["category"] for b in march} == {"Groceries", "Rent"}

    only_2023 = client.get("/api/budgets", params={"year": 2023}).json()
    assert len(only_2023) == 1

    both = client.get("/api/budgets", params={"month": 1, "year": 2024}).json()
    assert len(both) == 1


def test_update_changes_limit_only(client) -> None:
    created = make_budget(client)
    response = client.put(f"/api/budgets/{created['id']}", json={
        "limit": 350, "category": "Other", "month": 7
    })
    assert response.status_code == 200
    body = response.json()
    assert body["limit"] == 350
    assert body["category"] == "Groceries"
    assert body["month"] == 3


def test_update_rejects_non_positive_limit(client) -> None:
    created = make_budget(client)
    response = client.put(f"/api/budgets/{created['id']}", json={"limit": -1})
    assert response.status_code == 400
    assert client.get(f"/api/budgets/{created['id']}").json()["limit"] == 200


def test_update_and_delete_missing_budget(client) -> None:
    assert client.put("/api/budgets/77", json={"limit": 10}).status_code == 404
    assert client.delete("/api/budgets/77").status_code == 404
    assert client.get("/api/budgets/77").status_code == 404


def test_delete_budget(client) -> None:
    created = make_budget(client)
    assert client.delete(f"/api/budgets/{created['id']}").status_code == 200
    assert client.get("/api/budgets").json() == []


def test_summary_scenario(client) -> None:
    budget = make_budget(client)
    make_transaction(client, category="Groceries", amount=150, date="2024-03-15")

    summary = client.get(f"/api/budgets/{budget['id']}/summary").json()
    assert summary["spent"] == 150
    assert summary["remaining"] == 50
    assert summary["percentage"] == 75.0
    assert summary["alert"] is None
    assert summary["category"] == "Groceries"
    assert summary["limit"] == 200

    make_transaction(client, category="Groceries", amount=60, date="2024-03-20")
    summary = client.get(f"/api/budgets/{budget['id']}/summary").json()
    assert summary["spent"] == 210
    assert summary["remaining"] == -10
    assert summary["percentage"] == 105.0
    assert summary["alert"] == "danger"


def test_summary_warning_threshold(client) -> None:
    budget = make_budget(client, limit=100)
    make_transaction(client, amount=80, date="2024-03-02")
    summary = client.get(f"/api/budgets/{budget['id']}/summary").json()
    assert summary["percentage"] == 80.0
    assert summary["alert"] == "warning"


def test_summary_only_counts_matching_expenses_in_window(client) -> None:
    budget = make_budget(client)
    make_transaction(client, amount=10, date="2024-03-01")
    make_transaction(client, amount=20, date="2024-03-31")
    make_transaction(client, amount=1000, date="2024-04-01")
    make_transaction(client, amount=1000, date="2024-02-29")
    make_transaction(client, amount=1000, kind="income", date="2024-03-10")
    make_transaction(client, category="groceries", amount=1000, date="2024-03-10")

    summary = client.get(f"/api/budgets/{budget['id']}/summary").json()
    assert summary["spent"] == 30


def test_summary_december_window_rolls_year(client) -> None:
    budget = make_budget(client, month=12, year=2023)
    make_transaction(client, amount=40, date="2023-12-31")
    make_transaction(client, amount=500, date="2024-01-01")

    summary = client.get(f"/api/budgets/{budget['id']}/summary").json()
    assert summary["spent"] == 40


def test_summary_missing_budget_returns_404(client) -> None:
    response = client.get("/api/budgets/404/summary")
    assert response.status_code == 404
    assert response.json() == {"error": "Budget non trouvé"}


def test_period_summary(client) -> None:
    make_budget(client, category="Groceries", limit=200)
    make_budget(client, category="Rent", limit=800)
    make_budget(client, category="Rent", limit=800, month=4)
    make_transaction(client, category="Groceries", amount=150, date="2024-03-15")
    make_transaction(client, category="Rent", amount=800, date="2024-03-01")

    body = client.get("/api/budgets/summary", params={"month": 3, "year": 2024}).json()
    assert body["month"] == 3
    assert body["year"] == 2024
    assert body["totalLimit"] == 1000
    assert body["totalSpent"] == 950
    assert body["totalRemaining"] == 50
    alerts = {b["category"]: b["alert"] for b in body["budgets"]}
    assert alerts == {"Groceries": None, "Rent": "danger"}


def test_non_finite_limit_is_rejected(client) -> None:
    body = '{"category": "Food", "limit": 1e400, "month": 3, "year": 2024}'
    response = client.post("/api/budgets", content=body,
                           headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert response.json()["fields"] == ["limit"]
    assert client.get("/api/budgets").json() == []

    created = make_budget(client)
    response = client.put(f"/api/budgets/{created['id']}", content='{"limit": 1e400}',
                          headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert client.get(f"/api/budgets/{created['id']}").json()["limit"] == 200
