"""Tests for the REST API."""

import io

import pytest


@pytest.fixture
def account_id(client, auth_headers):
    response = client.post(
        "/api/accounts", json={"name": "Lönekonto", "startBalance": 100000}, headers=auth_headers
    )
    assert response.status_code == 201
    return response.get_json()["id"]


def test_requires_authentication(client):
    response = client.get("/api/accounts")

    assert response.status_code == 401
    assert response.get_json() == {"error": "Not authenticated"}


def test_current_user(client, auth_headers):
    assert client.get("/api/auth/user").status_code == 401

    response = client.get("/api/auth/user", headers=auth_headers)
    assert response.status_code == 200
    body = response.get_json()
    assert body["id"] == "user-1"
    assert body["firstName"] == "Anna"


def test_header_identity_creates_user(client, temp_db):
    response = client.get(
        "/api/auth/user", headers={"X-Auth-User-Id": "user-2", "X-Auth-Email": "olle@example.com"}
    )

    assert response.status_code == 200
    assert temp_db.get_user("user-2").email == "olle@example.com"


def test_database_status_is_public(client):
    response = client.get("/api/auth/database-status")

    assert response.status_code == 200
    body = response.get_json()
    assert body["connected"] is True
    assert body["backend"] == "sqlite"
    assert body["configurable"] is False


def test_configure_database_disabled(client, auth_headers):
    response = client.post(
        "/api/auth/configure-database", json={"databaseUrl": "sqlite://"}, headers=auth_headers
    )

    assert response.status_code == 403


def test_session_login_and_logout(session_app):
    client = session_app.test_client()
    assert client.get("/api/accounts").status_code == 401

    response = client.post("/api/auth/login", json={"userId": "user-1", "firstName": "Anna"})
    assert response.status_code == 200
    assert response.get_json()["id"] == "user-1"
    assert client.get("/api/accounts").status_code == 200

    assert client.post("/api/auth/logout").status_code == 204
    assert client.get("/api/auth/user").status_code == 401


def test_login_requires_identity(session_app):
    response = session_app.test_client().post("/api/auth/login", json={})

    assert response.status_code == 400


def test_accounts_crud(client, auth_headers, account_id):
    assert client.get(f"/api/accounts/{account_id}", headers=auth_headers).get_json()["startBalance"] == 100000

    response = client.post("/api/accounts", json={"name": "Lönekonto"}, headers=auth_headers)
    assert response.status_code == 409
    assert "error" in response.get_json()

    response = client.patch(f"/api/accounts/{account_id}", json={"name": "Kortkonto"}, headers=auth_headers)
    assert response.get_json()["name"] == "Kortkonto"

    assert client.delete(f"/api/accounts/{account_id}", headers=auth_headers).status_code == 204
    assert client.get(f"/api/accounts/{account_id}", headers=auth_headers).status_code == 404


def test_missing_required_field(client, auth_headers):
    response = client.post("/api/accounts", json={}, headers=auth_headers)

    assert response.status_code == 400
    assert "name" in response.get_json()["error"]


def test_categories(client, auth_headers):
    main = client.post("/api/huvudkategorier", json={"name": "Mat"}, headers=auth_headers).get_json()
    sub = client.post(
        "/api/underkategorier", json={"name": "Livsmedel", "huvudkategoriId": main["id"]}, headers=auth_headers
    )
    assert sub.status_code == 201
    assert sub.get_json()["huvudkategoriId"] == main["id"]

    listed = client.get(f"/api/underkategorier?huvudkategoriId={main['id']}", headers=auth_headers).get_json()
    assert [s["name"] for s in listed] == ["Livsmedel"]


def test_transactions_by_month(client, auth_headers, account_id):
    for day, amount in (("2025-08-05", -100), ("2025-09-01", -200)):
        response = client.post(
            "/api/transactions",
            json={"accountId": account_id, "date": day, "description": "ICA", "amount": amount},
            headers=auth_headers,
        )
        assert response.status_code == 201

    body = client.get("/api/transactions?monthKey=2025-08", headers=auth_headers).get_json()
    assert [t["amount"] for t in body] == [-100]
    assert body[0]["date"] == "2025-08-05"
    assert body[0]["status"] == "red"


def test_import_upload(client, auth_headers, account_id, statement_csv):
    response = client.post(
        "/api/transactions/import",
        data={
            "file": (io.BytesIO(statement_csv.read_bytes()), "kontoutdrag.csv"),
            "accountId": str(account_id),
        },
        headers=auth_headers,
        content_type="multipart/form-data",
    )

    assert response.status_code == 200
    assert response.get_json()["imported"] == 3

    uncategorized = client.get("/api/transactions/uncategorized-bank-categories", headers=auth_headers)
    assert {c["bankCategory"] for c in uncategorized.get_json()} == {"Mat", "Inkomst"}


def test_import_requires_file(client, auth_headers, account_id):
    response = client.post(
        "/api/transactions/import",
        data={"accountId": str(account_id)},
        headers=auth_headers,
        content_type="multipart/form-data",
    )

    assert response.status_code == 400


def test_faktiskt_kontosaldo_round_trip(client, auth_headers, account_id):
    client.post(
        "/api/monthly-account-balances",
        json={"monthKey": "2025-08", "accountId": account_id, "calculatedBalance": 150000},
        headers=auth_headers,
    )

    response = client.put(
        f"/api/monthly-account-balances/2025-08/{account_id}/faktiskt-kontosaldo",
        json={"faktisktKontosaldo": 123456},
        headers=auth_headers,
    )
    assert response.status_code == 200

    [balance] = client.get("/api/monthly-account-balances?monthKey=2025-08", headers=auth_headers).get_json()
    assert balance["faktisktKontosaldo"] == 123456
    assert balance["calculatedBalance"] == 150000
    assert balance["difference"] == 123456 - 150000


def test_faktiskt_kontosaldo_requires_body(client, auth_headers, account_id):
    response = client.put(
        f"/api/monthly-account-balances/2025-08/{account_id}/faktiskt-kontosaldo",
        json={"amount": 1},
        headers=auth_headers,
    )

    assert response.status_code == 400


def test_monthly_budget(client, auth_headers):
    assert client.get("/api/monthly-budgets/2025-08", headers=auth_headers).status_code == 404

    response = client.post(
        "/api/monthly-budgets",
        json={"monthKey": "2025-08", "primaryIncome": 3000000, "childBenefit": 125000},
        headers=auth_headers,
    )
    assert response.status_code == 201
    assert response.get_json()["totalIncome"] == 3125000


def test_planned_transfer_daily(client, auth_headers, account_id):
    savings = client.post("/api/accounts", json={"name": "Sparkonto"}, headers=auth_headers).get_json()

    response = client.post(
        "/api/planned-transfers",
        json={
            "fromAccountId": account_id,
            "toAccountId": savings["id"],
            "month": "2025-08",
            "transferType": "daily",
            "dailyAmount": 5000,
            "transferDays": [1],
        },
        headers=auth_headers,
    )

    assert response.status_code == 201
    body = response.get_json()
    assert body["monthlyAmount"] == 20000
    assert body["transferDays"] == [1]


def test_household_links(client, auth_headers):
    member = client.post("/api/family-members", json={"name": "Anna"}, headers=auth_headers).get_json()
    source = client.post("/api/inkomstkallor", json={"text": "Lön"}, headers=auth_headers).get_json()

    payload = {"familyMemberId": member["id"], "inkomstkallId": source["id"], "isEnabled": True}
    assert client.post("/api/inkomstkallor-medlem", json=payload, headers=auth_headers).status_code == 201
    assert client.post("/api/inkomstkallor-medlem", json=payload, headers=auth_headers).status_code == 409


def test_user_settings(client, auth_headers):
    assert client.get("/api/user-settings/theme", headers=auth_headers).status_code == 404

    response = client.put("/api/user-settings/theme", json={"settingValue": "dark"}, headers=auth_headers)
    assert response.get_json()["settingValue"] == "dark"
    assert client.get("/api/user-settings/theme", headers=auth_headers).get_json()["settingKey"] == "theme"

    assert client.delete("/api/user-settings/theme", headers=auth_headers).status_code == 204
    assert client.delete("/api/user-settings/theme", headers=auth_headers).status_code == 404


def test_users_do_not_see_each_other(client, auth_headers, account_id):
    response = client.get(f"/api/accounts/{account_id}", headers={"X-Auth-User-Id": "user-2"})

    assert response.status_code == 404


def test_import_out_of_range_amount_is_row_error(client, auth_headers, account_id):
    content = "Datum;Text;Belopp\n2025-08-01;Exponent;1e30\n2025-08-02;ICA;-10,00\n"

    response = client.post(
        "/api/transactions/import",
        data={"file": (io.BytesIO(content.encode("utf-8")), "kontoutdrag.csv"), "accountId": str(account_id)},
        headers=auth_headers,
        content_type="multipart/form-data",
    )

    assert response.status_code == 200
    body = response.get_json()
    assert body["imported"] == 1
    assert body["errors"][0].startswith("Row 2:")


@pytest.mark.parametrize("value", [10**20, -(10**20)])
def test_faktiskt_kontosaldo_out_of_range(client, auth_headers, account_id, value):
    response = client.put(
        f"/api/monthly-account-balances/2025-08/{account_id}/faktiskt-kontosaldo",
        json={"faktisktKontosaldo": value},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert "öre" in response.get_json()["error"]


def test_transaction_amount_out_of_range(client, auth_headers, account_id):
    response = client.post(
        "/api/transactions",
        json={"accountId": account_id, "date": "2025-08-05", "description": "ICA", "amount": 2**63},
        headers=auth_headers,
    )

    assert response.status_code == 400


def test_budget_posts(client, auth_headers, account_id):
    client.post("/api/monthly-budgets", json={"monthKey": "2025-08", "primaryIncome": 3000000}, headers=auth_headers)
    response = client.post(
        "/api/budget-posts",
        json={"monthKey": "2025-08", "type": "cost", "description": "Hyra", "amount": 800000, "accountId": account_id},
        headers=auth_headers,
    )
    assert response.status_code == 201
    rent = response.get_json()
    assert rent["accountId"] == account_id
    client.post(
        "/api/budget-posts",
        json={"monthKey": "2025-08", "type": "savings", "description": "Buffert", "amount": 200000},
        headers=auth_headers,
    )

    assert len(client.get("/api/budget-posts?monthKey=2025-08", headers=auth_headers).get_json()) == 2
    assert client.get("/api/budget-posts?monthKey=2025-09", headers=auth_headers).get_json() == []

    summary = client.get("/api/budget-posts/summary?monthKey=2025-08", headers=auth_headers).get_json()
    assert summary == {"totalIncome": 3000000, "totalCosts": 800000, "totalSavings": 200000, "remaining": 2000000}
    assert client.get("/api/budget-posts/summary", headers=auth_headers).status_code == 400

    response = client.patch(f"/api/budget-posts/{rent['id']}", json={"amount": 825000}, headers=auth_headers)
    assert response.get_json()["amount"] == 825000

    assert client.delete(f"/api/budget-posts/{rent['id']}", headers=auth_headers).status_code == 204
    assert client.get(f"/api/budget-posts/{rent['id']}", headers=auth_headers).status_code == 404


def test_budget_post_validation(client, auth_headers):
    response = client.post(
        "/api/budget-posts",
        json={"monthKey": "2025-08", "type": "income", "description": "Lön", "amount": 100},
        headers=auth_headers,
    )
    assert response.status_code == 400

    response = client.post("/api/budget-posts", json={"monthKey": "2025-08"}, headers=auth_headers)
    assert response.status_code == 400


def test_copy_budget_month(client, auth_headers):
    client.post(
        "/api/budget-posts",
        json={"monthKey": "2025-07", "type": "cost", "description": "Hyra", "amount": 800000},
        headers=auth_headers,
    )

    response = client.post("/api/budget-posts/copy-month", json={"monthKey": "2025-08"}, headers=auth_headers)
    assert response.status_code == 201
    assert [p["monthKey"] for p in response.get_json()] == ["2025-08"]

    response = client.post("/api/budget-posts/copy-month", json={"monthKey": "2025-08"}, headers=auth_headers)
    assert response.status_code == 409


def _create_transaction(client, auth_headers, account, day, amount):
    response = client.post(
        "/api/transactions",
        json={"accountId": account, "date": day, "description": "Överföring", "amount": amount},
        headers=auth_headers,
    )
    assert response.status_code == 201
    return response.get_json()["id"]


def test_link_and_unlink_transactions(client, auth_headers, account_id):
    savings = client.post("/api/accounts", json={"name": "Sparkonto"}, headers=auth_headers).get_json()
    out_id = _create_transaction(client, auth_headers, account_id, "2025-08-25", -50000)
    in_id = _create_transaction(client, auth_headers, savings["id"], "2025-08-25", 50000)

    response = client.post(
        f"/api/transactions/{out_id}/link", json={"linkedTransactionId": in_id}, headers=auth_headers
    )
    assert response.status_code == 200
    first, second = response.get_json()
    assert (first["linkedTransactionId"], second["linkedTransactionId"]) == (in_id, out_id)
    assert first["status"] == second["status"] == "yellow"

    response = client.delete(f"/api/transactions/{in_id}/link", headers=auth_headers)
    assert response.get_json()["linkedTransactionId"] is None
    assert response.get_json()["status"] == "red"

    response = client.post(f"/api/transactions/{out_id}/link", json={}, headers=auth_headers)
    assert response.status_code == 400


def test_match_transfers(client, auth_headers, account_id):
    savings = client.post("/api/accounts", json={"name": "Sparkonto"}, headers=auth_headers).get_json()
    out_id = _create_transaction(client, auth_headers, account_id, "2025-08-25", -50000)
    in_id = _create_transaction(client, auth_headers, savings["id"], "2025-08-26", 50000)

    response = client.post("/api/transactions/match-transfers", json={"monthKey": "2025-08"}, headers=auth_headers)

    assert response.status_code == 200
    assert response.get_json() == {"linked": [[out_id, in_id]]}


def test_transaction_json_has_effective_amount(client, auth_headers, account_id):
    txn_id = _create_transaction(client, auth_headers, account_id, "2025-08-05", -50000)

    response = client.patch(f"/api/transactions/{txn_id}", json={"correctedAmount": -20000}, headers=auth_headers)

    body = response.get_json()
    assert (body["amount"], body["correctedAmount"], body["effectiveAmount"]) == (-50000, -20000, -20000)


def test_bankens_kontosaldo(client, auth_headers, account_id):
    url = f"/api/monthly-account-balances/2025-08/{account_id}/bankens-kontosaldo"

    response = client.put(url, json={"bankensKontosaldo": 987600}, headers=auth_headers)
    assert response.status_code == 200
    assert response.get_json()["bankensKontosaldo"] == 987600

    assert client.put(url, json={"bankensKontosaldo": 10**20}, headers=auth_headers).status_code == 400
    assert client.put(url, json={"saldo": 1}, headers=auth_headers).status_code == 400


def test_planned_transfer_reports_actual_transferred(client, auth_headers, account_id):
    savings = client.post("/api/accounts", json={"name": "Sparkonto"}, headers=auth_headers).get_json()
    main = client.post("/api/huvudkategorier", json={"name": "Sparande"}, headers=auth_headers).get_json()
    sub = client.post(
        "/api/underkategorier", json={"name": "Buffert", "huvudkategoriId": main["id"]}, headers=auth_headers
    ).get_json()
    client.post(
        "/api/transactions",
        json={
            "accountId": account_id,
            "date": "2025-08-25",
            "description": "Till buffert",
            "amount": -40000,
            "huvudkategoriId": main["id"],
            "underkategoriId": sub["id"],
        },
        headers=auth_headers,
    )

    response = client.post(
        "/api/planned-transfers",
        json={
            "fromAccountId": account_id,
            "toAccountId": savings["id"],
            "month": "2025-08",
            "amount": 100000,
            "huvudkategoriId": main["id"],
            "underkategoriId": sub["id"],
        },
        headers=auth_headers,
    )

    assert response.status_code == 201
    assert response.get_json()["actualTransferred"] == 40000


def test_header_provider_has_no_login(client, auth_headers):
    response = client.post("/api/auth/login", json={"userId": "user-9"}, headers=auth_headers)

    assert response.status_code == 401
