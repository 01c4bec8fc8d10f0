import json

from quickpe.modules.notifications import MONEY_ADDED, TRANSFER_RECEIVED, TRANSFER_SENT
from quickpe.modules.notifications.dispatcher import NotificationDispatcher
from quickpe.modules.transfers.service import TransferService
from quickpe.websocket.manager import ConnectionManager

API = "/api/v1"


class FakeConnections:
    def __init__(self):
        self.sent = []

    async def send_to_web(self, user_id, message):
        self.sent.append((user_id, message))
        return True


class FakeWebSocket:
    def __init__(self, fail=False):
        self.accepted = False
        self.closed = False
        self.messages = []
        self._fail = fail

    async def accept(self):
        self.accepted = True

    async def send_text(self, text):
        if self._fail:
            raise RuntimeError("connection reset")
        self.messages.append(json.loads(text))

    async def close(self, code=1000, reason=None):
        self.closed = True


def _service(container, connections):
    return TransferService(container.session_factory, NotificationDispatcher(container.session_factory, connections))


async def test_transfer_creates_notifications_and_pushes(container, make_member, client):
    alice = await make_member("Alice", 100_000)
    bob = await make_member("Bob", 0)
    connections = FakeConnections()

    result = await _service(container, connections).transfer(alice.id, bob.id, 12_345)

    sent = (await client.get(f"{API}/notifications", headers=alice.headers)).json()
    received = (await client.get(f"{API}/notifications", headers=bob.headers)).json()
    assert [item["type"] for item in sent["notifications"]] == [TRANSFER_SENT]
    assert sent["notifications"][0]["message"] == "You sent ₹123.45 to Bob Tester"
    assert received["notifications"][0]["type"] == TRANSFER_RECEIVED
    assert received["notifications"][0]["message"] == "You received ₹123.45 from Alice Tester"
    assert received["notifications"][0]["transaction_id"] == result.transaction_id
    assert received["unread_count"] == 1

    pushed = {(user_id, message["type"]) for user_id, message in connections.sent}
    assert pushed == {
        (alice.id, "notification:new"),
        (alice.id, "balance:updated"),
        (bob.id, "notification:new"),
        (bob.id, "balance:updated"),
    }
    bob_balance = next(
        message["data"] for user_id, message in connections.sent
        if user_id == bob.id and message["type"] == "balance:updated"
    )
    assert bob_balance == {"balance_paise": 12_345, "balance": "123.45", "transaction_id": result.transaction_id}


async def test_deposit_notification(container, make_member, client):
    alice = await make_member("Alice", 0)
    connections = FakeConnections()

    await _service(container, connections).deposit(alice.id, 5_000)

    body = (await client.get(f"{API}/notifications", headers=alice.headers)).json()
    assert body["notifications"][0]["type"] == MONEY_ADDED
    assert body["notifications"][0]["message"] == "₹50.00 was added to your wallet"


async def test_mark_read_endpoints(container, make_member, client):
    alice = await make_member("Alice", 100_000)
    bob = await make_member("Bob", 0)
    service = _service(container, FakeConnections())
    for _ in range(3):
        await service.transfer(alice.id, bob.id, 100)

    inbox = (await client.get(f"{API}/notifications", headers=bob.headers)).json()
    first_id = inbox["notifications"][0]["id"]

    foreign = await client.put(f"{API}/notifications/{first_id}/read", headers=alice.headers)
    marked = await client.put(f"{API}/notifications/{first_id}/read", headers=bob.headers)
    count = await client.get(f"{API}/notifications/unread-count", headers=bob.headers)

    assert foreign.status_code == 404
    assert marked.json()["read"] is True
    assert count.json() == {"unread_count": 2}

    await client.put(f"{API}/notifications/read-all", headers=bob.headers)
    count = await client.get(f"{API}/notifications/unread-count", headers=bob.headers)
    assert count.json() == {"unread_count": 0}


async def test_connection_manager_delivers_and_drops_broken_sockets():
    manager = ConnectionManager(timeout=60, check_interval=30)
    healthy, broken = FakeWebSocket(), FakeWebSocket(fail=True)

    await manager.connect_web("user-1", healthy)
    await manager.connect_web("user-2", broken)

    assert healthy.accepted and manager.get_online_count() == 2
    assert await manager.send_to_web("user-1", {"type": "notification:new", "data": {}}) is True
    assert healthy.messages == [{"type": "notification:new", "data": {}}]
    assert await manager.send_to_web("user-2", {"type": "balance:updated"}) is False
    assert not manager.is_online("user-2")
    assert await manager.send_to_web("nobody", {"type": "x"}) is False

    await manager.close_all()
    assert healthy.closed and manager.get_online_count() == 0


async def test_newer_connection_replaces_older_one():
    manager = ConnectionManager()
    old, new = FakeWebSocket(), FakeWebSocket()

    await manager.connect_web("user-1", old)
    await manager.connect_web("user-1", new)
    await manager.disconnect_web("user-1", old)

    assert old.closed
    assert manager.is_online("user-1")
    await manager.close_all()
