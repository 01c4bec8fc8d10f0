import pytest
from starlette.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from quickpe.main import create_app

API = "/api/v1"


@pytest.fixture
def live_client(settings):
    with TestClient(create_app(settings)) as http:
        yield http


def _signup(http, username="socket@example.com"):
    response = http.post(
        f"{API}/auth/signup",
        json={"username": username, "first_name": "Sam", "last_name": "Tester", "password": "secret123"},
    )
    assert response.status_code == 201
    return response.json()["access_token"]


def test_ping_is_answered_with_pong(live_client):
    token = _signup(live_client)

    with live_client.websocket_connect(f"/ws/notifications?token={token}") as socket:
        socket.send_json({"type": "ping"})
        assert socket.receive_json() == {"type": "pong"}

        socket.send_text("not json")
        socket.send_json({"type": "ping"})
        assert socket.receive_json() == {"type": "pong"}


def test_deposit_is_pushed_to_the_socket(live_client):
    token = _signup(live_client)
    headers = {"Authorization": f"Bearer {token}"}

    with live_client.websocket_connect(f"/ws/notifications?token={token}") as socket:
        socket.send_json({"type": "ping"})
        assert socket.receive_json() == {"type": "pong"}

        deposit = live_client.post(f"{API}/account/deposit", json={"amount": 500}, headers=headers)
        assert deposit.status_code == 200

        notification = socket.receive_json()
        balance = socket.receive_json()

    assert notification["type"] == "notification:new"
    assert notification["data"]["type"] == "MONEY_ADDED"
    assert balance["type"] == "balance:updated"
    assert balance["data"]["balance_paise"] == deposit.json()["new_balance_paise"]
    assert balance["data"]["transaction_id"] == deposit.json()["transaction_id"]


@pytest.mark.parametrize("token", ["not-a-jwt", ""])
def test_invalid_token_closes_with_policy_violation(live_client, token):
    with pytest.raises(WebSocketDisconnect) as excinfo:
        with live_client.websocket_connect(f"/ws/notifications?token={token}") as socket:
            socket.receive_json()

    assert excinfo.value.code == 1008


def test_missing_token_closes_with_policy_violation(live_client):
    with pytest.raises(WebSocketDisconnect) as excinfo:
        with live_client.websocket_connect("/ws/notifications") as socket:
            socket.receive_json()

    assert excinfo.value.code == 1008
