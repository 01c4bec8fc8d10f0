import pytest
from sqlalchemy import update

from quickpe.db.models import User

API = "/api/v1"


async def test_signup_signin_and_profile(client, settings):
    response = await client.post(
        f"{API}/auth/signup",
        json={"username": "Priya@Example.com", "first_name": "Priya", "last_name": "Shah", "password": "secret123"},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["user"]["username"] == "priya@example.com"
    assert body["user"]["quickpe_id"].startswith("QPK-")

    headers = {"Authorization": f"Bearer {body['access_token']}"}
    balance = (await client.get(f"{API}/account/balance", headers=headers)).json()
    low, high = settings.wallet.signup_balance_min_paise, settings.wallet.signup_balance_max_paise
    assert low <= balance["balance_paise"] <= high

    signin = await client.post(f"{API}/auth/signin", json={"username": "priya@example.com", "password": "secret123"})
    assert signin.status_code == 200
    me = await client.get(f"{API}/users/me", headers={"Authorization": f"Bearer {signin.json()['access_token']}"})
    assert me.json()["last_login_at"] is not None


async def test_signup_rejects_duplicates_and_bad_input(client):
    payload = {"username": "dup@example.com", "first_name": "A", "last_name": "B", "password": "secret123"}
    assert (await client.post(f"{API}/auth/signup", json=payload)).status_code == 201
    assert (await client.post(f"{API}/auth/signup", json=payload)).status_code == 409

    response = await client.post(f"{API}/auth/signup", json={**payload, "username": "not-an-email"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid input"


async def test_signin_with_wrong_password(client, make_member):
    member = await make_member("Alice", 0)

    response = await client.post(f"{API}/auth/signin", json={"username": member.user.username, "password": "nope"})

    assert response.status_code == 401


@pytest.mark.parametrize("headers", [{}, {"Authorization": "Bearer not-a-jwt"}])
async def test_protected_routes_require_a_valid_token(client, headers):
    response = await client.post(f"{API}/account/transfer", json={"to": "x", "amount": 1}, headers=headers)

    assert response.status_code == 401


async def test_inactive_user_is_rejected(client, container, make_member):
    admin = await make_member("Root", 0, role="admin")
    alice = await make_member("Alice", 0)
    assert (await client.get(f"{API}/users/me", headers=alice.headers)).status_code == 200

    async with container.session_factory() as session:
        await session.execute(update(User).where(User.id == alice.id).values(is_active=False))
        await session.commit()

    assert (await client.get(f"{API}/users/me", headers=alice.headers)).status_code == 401
    assert (await client.get(f"{API}/users/me", headers=admin.headers)).status_code == 200


async def test_transfer_endpoint_success(client, make_member, balance_of):
    alice = await make_member("Alice", 100_000)
    bob = await make_member("Bob", 50_000)

    response = await client.post(
        f"{API}/account/transfer",
        json={"to": bob.user.quickpe_id, "amount": "100", "description": "Dinner"},
        headers=alice.headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Transfer successful"
    assert body["transaction_id"].startswith("TXN")
    assert body["new_balance_paise"] == 90_000
    assert body["new_balance"] == "900.00"
    assert body["replayed"] is False
    assert await balance_of(bob) == 60_000


@pytest.mark.parametrize(
    "payload, status, detail",
    [
        ({"amount": 10}, 400, "Invalid input"),
        ({"to": "{bob}"}, 400, "Invalid input"),
        ({"to": "{bob}", "amount": "abc"}, 400, "Invalid amount"),
        ({"to": "{bob}", "amount": -5}, 400, "Invalid amount"),
        ({"to": "{bob}", "amount": 0.001}, 400, "Amount cannot have more than two decimal places"),
        ({"to": "{bob}", "amount": 5000}, 400, "Insufficient balance"),
        ({"to": "nobody", "amount": 5}, 404, "Recipient account not found"),
        ({"to": "{alice}", "amount": 5}, 400, "Cannot send money to yourself"),
        ({"to": "{bob}", "amount": 5, "description": "x" * 501}, 400, "Invalid input"),
    ],
)
async def test_transfer_error_mapping(client, make_member, balance_of, payload, status, detail):
    alice = await make_member("Alice", 100_000)
    bob = await make_member("Bob", 0)
    if "to" in payload:
        payload = {**payload, "to": payload["to"].format(alice=alice.id, bob=bob.id)}

    response = await client.post(f"{API}/account/transfer", json=payload, headers=alice.headers)

    assert response.status_code == status
    assert response.json()["detail"] == detail
    assert await balance_of(alice) == 100_000
    assert await balance_of(bob) == 0


async def test_transfer_idempotency_header(client, make_member, balance_of):
    alice = await make_member("Alice", 100_000)
    bob = await make_member("Bob", 0)
    headers = {**alice.headers, "Idempotency-Key": "checkout-42"}

    first = await client.post(f"{API}/account/transfer", json={"to": bob.id, "amount": 250}, headers=headers)
    second = await client.post(f"{API}/account/transfer", json={"to": bob.id, "amount": 250}, headers=headers)
    conflict = await client.post(f"{API}/account/transfer", json={"to": bob.id, "amount": 300}, headers=headers)

    assert first.status_code == second.status_code == 200
    assert second.json()["replayed"] is True
    assert second.json()["transaction_id"] == first.json()["transaction_id"]
    assert conflict.status_code == 409
    assert await balance_of(bob) == 25_000


async def test_deposit_endpoint(client, make_member, settings):
    alice = await make_member("Alice", 0)

    response = await client.post(f"{API}/account/deposit", json={"amount": 500.25}, headers=alice.headers)
    too_much = await client.post(
        f"{API}/account/deposit",
        json={"amount": settings.wallet.max_deposit_paise / 100 + 1},
        headers=alice.headers,
    )

    assert response.status_code == 200
    assert response.json()["new_balance_paise"] == 50_025
    assert too_much.status_code == 400


async def test_transaction_history_endpoint(client, make_member):
    alice = await make_member("Alice", 100_000)
    bob = await make_member("Bob", 0)
    for amount in (1, 2, 3):
        await client.post(f"{API}/account/transfer", json={"to": bob.id, "amount": amount}, headers=alice.headers)

    response = await client.get(f"{API}/account/transactions", params={"page": 1, "limit": 2}, headers=alice.headers)
    credits = await client.get(f"{API}/account/transactions", params={"type": "credit"}, headers=bob.headers)
    bad = await client.get(f"{API}/account/transactions", params={"type": "refund"}, headers=bob.headers)

    body = response.json()
    assert body["pagination"] == {
        "page": 1,
        "limit": 2,
        "total": 3,
        "total_pages": 2,
        "has_next": True,
        "has_prev": False,
    }
    assert [item["amount_paise"] for item in body["transactions"]] == [300, 200]
    assert body["transactions"][0]["counterparty"]["name"] == "Bob Tester"
    assert credits.json()["pagination"]["total"] == 3
    assert bad.status_code == 400


async def test_statement_csv_endpoint(client, make_member):
    alice = await make_member("Alice", 100_000)
    bob = await make_member("Bob", 0)
    await client.post(f"{API}/account/transfer", json={"to": bob.id, "amount": 10}, headers=alice.headers)

    response = await client.get(f"{API}/account/statements/csv", headers=alice.headers)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment" in response.headers["content-disposition"]
    assert "Bob Tester" in response.text


async def test_user_directory_excludes_caller(client, make_member):
    alice = await make_member("Alice", 0)
    await make_member("Alina", 0)
    await make_member("Bob", 0)

    response = await client.get(f"{API}/users/bulk", params={"filter": "ali"}, headers=alice.headers)

    names = [user["first_name"] for user in response.json()["users"]]
    assert names == ["Alina"]


async def test_profile_update_and_password_change(client, make_member):
    alice = await make_member("Alice", 0)

    updated = await client.put(f"{API}/users/me", json={"first_name": "Alicia"}, headers=alice.headers)
    wrong = await client.put(
        f"{API}/users/me/password",
        json={"current_password": "wrong", "new_password": "another1"},
        headers=alice.headers,
    )
    changed = await client.put(
        f"{API}/users/me/password",
        json={"current_password": "secret123", "new_password": "another1"},
        headers=alice.headers,
    )
    signin = await client.post(f"{API}/auth/signin", json={"username": alice.user.username, "password": "another1"})

    assert updated.json()["first_name"] == "Alicia"
    assert updated.json()["last_name"] == "Tester"
    assert wrong.status_code == 400
    assert changed.status_code == 200
    assert signin.status_code == 200


async def test_admin_routes(client, make_member):
    admin = await make_member("Root", 0, role="admin")
    alice = await make_member("Alice", 100_000)
    bob = await make_member("Bob", 0)
    await client.post(f"{API}/account/transfer", json={"to": bob.id, "amount": 100}, headers=alice.headers)
    await client.post(f"{API}/account/deposit", json={"amount": 50}, headers=bob.headers)

    assert (await client.get(f"{API}/admin/analytics", headers=alice.headers)).status_code == 403

    analytics = (await client.get(f"{API}/admin/analytics", headers=admin.headers)).json()
    assert analytics == {
        "total_users": 3,
        "active_users": 3,
        "total_transfers": 1,
        "transfer_volume_paise": 10_000,
        "deposit_volume_paise": 5_000,
        "transfers_last_24h": 1,
    }

    users = (await client.get(f"{API}/admin/users", params={"limit": 2}, headers=admin.headers)).json()
    assert users["pagination"]["total"] == 3
    assert len(users["users"]) == 2

    detail = await client.get(f"{API}/admin/users/{bob.id}", headers=admin.headers)
    assert detail.json()["balance_paise"] == 15_000
    assert (await client.get(f"{API}/admin/users/missing", headers=admin.headers)).status_code == 404


async def test_health(client, settings):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["database"] == "ok"
    assert response.json()["environment"] == settings.environment


@pytest.mark.parametrize("password", ["x" * 73, "пароль" * 7])
async def test_signup_rejects_passwords_over_72_bytes(client, password):
    payload = {"username": "long@example.com", "first_name": "A", "last_name": "B", "password": password}

    response = await client.post(f"{API}/auth/signup", json=payload)

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid input"
    ok = await client.post(f"{API}/auth/signup", json={**payload, "password": "x" * 72})
    assert ok.status_code == 201


async def test_password_change_rejects_passwords_over_72_bytes(client, make_member):
    alice = await make_member("Alice", 0)

    response = await client.put(
        f"{API}/users/me/password",
        json={"current_password": "secret123", "new_password": "x" * 80},
        headers=alice.headers,
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid input"


async def test_signup_race_on_username_is_a_conflict(client, monkeypatch):
    from quickpe.infrastructure.database.repositories.user_repository import SqlUserRepository

    async def nobody(self, username):
        return None

    # Both requests pass the existence check, as they would when racing.
    monkeypatch.setattr(SqlUserRepository, "get_by_username", nobody)
    payload = {"username": "race@example.com", "first_name": "A", "last_name": "B", "password": "secret123"}

    first = await client.post(f"{API}/auth/signup", json=payload)
    second = await client.post(f"{API}/auth/signup", json=payload)

    assert first.status_code == 201
    assert second.status_code == 409
    assert second.json()["detail"] == "Email already taken"
