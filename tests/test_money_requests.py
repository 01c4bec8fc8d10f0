import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import update

from quickpe.db.models import MoneyRequest as MoneyRequestModel
from quickpe.modules.notifications import MONEY_REQUEST_RECEIVED, MONEY_REQUEST_REJECTED, TRANSFER_RECEIVED

API = "/api/v1"
REQUESTS = f"{API}/money-requests"


async def _ask(client, requester, requestee, amount=250, **extra):
    response = await client.post(
        REQUESTS,
        json={"to": requestee.user.quickpe_id, "amount": amount, **extra},
        headers=requester.headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["request"]


async def _expire(container, request_id):
    async with container.session_factory() as session:
        await session.execute(
            update(MoneyRequestModel)
            .where(MoneyRequestModel.id == request_id)
            .values(expires_at=datetime.now(timezone.utc) - timedelta(minutes=1))
        )
        await session.commit()


async def test_create_and_list_requests(client, make_member):
    alice = await make_member("Alice", 0)
    bob = await make_member("Bob", 50_000)

    request = await _ask(client, alice, bob)

    assert request["request_id"].startswith("REQ")
    assert request["status"] == "pending"
    assert request["amount_paise"] == 25_000
    assert (request["requester_name"], request["requestee_quickpe_id"]) == ("Alice Tester", bob.user.quickpe_id)
    assert request["description"] == "Money request from Alice"

    received = (await client.get(f"{REQUESTS}/received", headers=bob.headers)).json()
    sent = (await client.get(f"{REQUESTS}/sent", headers=alice.headers)).json()
    nothing = (await client.get(f"{REQUESTS}/received", headers=alice.headers)).json()
    assert [item["id"] for item in received["requests"]] == [request["id"]]
    assert sent["pagination"]["total"] == 1
    assert nothing["pagination"]["total"] == 0

    inbox = (await client.get(f"{API}/notifications", headers=bob.headers)).json()
    assert inbox["notifications"][0]["type"] == MONEY_REQUEST_RECEIVED
    assert inbox["notifications"][0]["message"] == "Alice Tester requested ₹250.00"
    assert inbox["notifications"][0]["data"]["request_id"] == request["id"]


@pytest.mark.parametrize(
    "payload, status, detail",
    [
        ({"amount": 5}, 400, "Invalid input"),
        ({"to": "{alice}", "amount": 5}, 400, "Cannot request money from yourself"),
        ({"to": "QPK-00000000", "amount": 5}, 404, "Recipient not found. Please check QuickPe ID."),
        ({"to": "{bob}", "amount": "abc"}, 400, "Invalid amount"),
        ({"to": "{bob}", "amount": 80_001}, 400, "Maximum request amount is ₹80,000.00"),
    ],
)
async def test_create_request_validation(client, make_member, payload, status, detail):
    alice = await make_member("Alice", 0)
    bob = await make_member("Bob", 0)
    if "to" in payload:
        payload = {**payload, "to": payload["to"].format(alice=alice.user.quickpe_id, bob=bob.user.quickpe_id)}

    response = await client.post(REQUESTS, json=payload, headers=alice.headers)

    assert response.status_code == status
    assert response.json()["detail"] == detail


async def test_daily_limit_per_pair(client, make_member):
    alice = await make_member("Alice", 0)
    bob = await make_member("Bob", 0)
    carol = await make_member("Carol", 0)

    first = await _ask(client, alice, bob, amount=50_000)
    await _ask(client, alice, bob, amount=30_000)
    over = await client.post(REQUESTS, json={"to": bob.id, "amount": 1}, headers=alice.headers)
    assert over.status_code == 400
    assert over.json()["detail"] == "Daily request limit of ₹80,000.00 to this person would be exceeded"

    await _ask(client, alice, carol, amount=1)
    await client.post(f"{REQUESTS}/{first['id']}/cancel", headers=alice.headers)
    await _ask(client, alice, bob, amount=1)


async def test_approve_moves_money_and_closes_request(client, make_member, balance_of):
    alice = await make_member("Alice", 0)
    bob = await make_member("Bob", 50_000)
    request = await _ask(client, alice, bob, amount=100)

    response = await client.post(f"{REQUESTS}/{request['id']}/approve", headers=bob.headers)

    assert response.status_code == 200
    body = response.json()
    assert body["transaction_id"].startswith("TXN")
    assert body["request"]["status"] == "approved"
    assert body["request"]["transaction_id"] == body["transaction_id"]
    assert body["request"]["responded_at"] is not None
    assert body["new_balance_paise"] == 40_000
    assert await balance_of(alice) == 10_000
    assert await balance_of(bob) == 40_000

    history = (await client.get(f"{API}/account/transactions", headers=alice.headers)).json()
    assert history["transactions"][0]["transaction_id"] == body["transaction_id"]
    assert history["transactions"][0]["type"] == "credit"
    inbox = (await client.get(f"{API}/notifications", headers=alice.headers)).json()
    assert inbox["notifications"][0]["type"] == TRANSFER_RECEIVED

    again = await client.post(f"{REQUESTS}/{request['id']}/approve", headers=bob.headers)
    assert again.status_code == 400
    assert again.json()["detail"] == "Request already responded to"
    assert await balance_of(bob) == 40_000


async def test_approve_with_insufficient_balance_keeps_request_pending(client, make_member, balance_of):
    alice = await make_member("Alice", 0)
    bob = await make_member("Bob", 1_000)
    request = await _ask(client, alice, bob, amount=100)

    response = await client.post(f"{REQUESTS}/{request['id']}/approve", headers=bob.headers)

    assert response.status_code == 400
    assert response.json()["detail"] == "Insufficient balance"
    assert (await balance_of(alice), await balance_of(bob)) == (0, 1_000)
    pending = (await client.get(f"{REQUESTS}/received", headers=bob.headers)).json()
    assert [item["status"] for item in pending["requests"]] == ["pending"]


async def test_only_requestee_can_approve(client, make_member, balance_of):
    alice = await make_member("Alice", 50_000)
    bob = await make_member("Bob", 50_000)
    carol = await make_member("Carol", 50_000)
    request = await _ask(client, alice, bob, amount=100)

    by_requester = await client.post(f"{REQUESTS}/{request['id']}/approve", headers=alice.headers)
    by_stranger = await client.post(f"{REQUESTS}/{request['id']}/approve", headers=carol.headers)
    missing = await client.post(f"{REQUESTS}/does-not-exist/approve", headers=bob.headers)

    assert by_requester.status_code == by_stranger.status_code == 403
    assert by_stranger.json()["detail"] == "Unauthorized to approve this request"
    assert missing.status_code == 404
    assert [await balance_of(member) for member in (alice, bob, carol)] == [50_000, 50_000, 50_000]


async def test_expired_request_cannot_be_answered(client, container, make_member, balance_of):
    alice = await make_member("Alice", 0)
    bob = await make_member("Bob", 50_000)
    request = await _ask(client, alice, bob, amount=100)
    await _expire(container, request["id"])

    approve = await client.post(f"{REQUESTS}/{request['id']}/approve", headers=bob.headers)
    reject = await client.post(f"{REQUESTS}/{request['id']}/reject", headers=bob.headers)

    assert approve.status_code == 400
    assert approve.json()["detail"] == "Request has expired"
    assert reject.status_code == 400
    assert await balance_of(bob) == 50_000

    listed = (await client.get(f"{REQUESTS}/received", params={"status": "all"}, headers=bob.headers)).json()
    assert listed["requests"][0]["status"] == "expired"


async def test_reject_notifies_requester(client, make_member):
    alice = await make_member("Alice", 0)
    bob = await make_member("Bob", 50_000)
    request = await _ask(client, alice, bob, amount=100)

    by_requester = await client.post(f"{REQUESTS}/{request['id']}/reject", headers=alice.headers)
    rejected = await client.post(f"{REQUESTS}/{request['id']}/reject", json={"reason": "Not now"}, headers=bob.headers)
    approve = await client.post(f"{REQUESTS}/{request['id']}/approve", headers=bob.headers)

    assert by_requester.status_code == 403
    assert rejected.status_code == 200
    assert rejected.json()["request"]["status"] == "rejected"
    assert rejected.json()["request"]["rejection_reason"] == "Not now"
    assert approve.status_code == 400

    inbox = (await client.get(f"{API}/notifications", headers=alice.headers)).json()
    assert inbox["notifications"][0]["type"] == MONEY_REQUEST_REJECTED
    assert inbox["notifications"][0]["message"] == "Bob Tester rejected your request for ₹100.00"


async def test_cancel_is_requester_only(client, make_member):
    alice = await make_member("Alice", 0)
    bob = await make_member("Bob", 50_000)
    request = await _ask(client, alice, bob, amount=100)

    by_requestee = await client.post(f"{REQUESTS}/{request['id']}/cancel", headers=bob.headers)
    cancelled = await client.post(f"{REQUESTS}/{request['id']}/cancel", headers=alice.headers)
    again = await client.post(f"{REQUESTS}/{request['id']}/cancel", headers=alice.headers)

    assert by_requestee.status_code == 403
    assert by_requestee.json()["detail"] == "Unauthorized to cancel this request"
    assert cancelled.json()["request"]["status"] == "cancelled"
    assert again.status_code == 400
    assert again.json()["detail"] == "Only pending requests can be cancelled"

    sent = await client.get(f"{REQUESTS}/sent", params={"status": "cancelled"}, headers=alice.headers)
    assert sent.json()["pagination"]["total"] == 1


async def test_concurrent_approvals_pay_once(client, make_member, balance_of):
    alice = await make_member("Alice", 0)
    bob = await make_member("Bob", 50_000)
    request = await _ask(client, alice, bob, amount=100)

    responses = await asyncio.gather(
        *[client.post(f"{REQUESTS}/{request['id']}/approve", headers=bob.headers) for _ in range(2)]
    )

    codes = sorted(response.status_code for response in responses)
    assert codes[0] == 200
    assert set(codes) <= {200, 400}
    assert await balance_of(alice) == 10_000
    assert await balance_of(bob) == 40_000
