"""
Tests for the WebSocket connection registry.
"""

import pytest

from backend.src.utils.websocket import (
    ConnectionManager,
    company_room,
    get_connection_manager,
    user_room,
)


class FakeSocket:
    """Stands in for a Starlette WebSocket; records what was sent."""

    def __init__(self, fail=False):
        self.sent = []
        self.closed = None
        self.fail = fail

    async def send_json(self, data):
        if self.fail:
            raise RuntimeError("connection reset")
        self.sent.append(data)

    async def close(self, code=1000, reason=None):
        self.closed = (code, reason)


@pytest.fixture
def manager():
    return ConnectionManager()


async def test_register_joins_personal_and_company_rooms(manager):
    ws = FakeSocket()
    previous = await manager.register(ws, "usr_a", "Ann", company="Acme")

    assert previous is None
    assert manager.is_online("usr_a")
    assert manager.get_connection("usr_a") is ws
    assert manager.get_room_members(user_room("usr_a")) == {ws}
    assert manager.get_room_members(company_room("Acme")) == {ws}
    assert manager.get_client(ws).rooms == {"user_usr_a", "company_Acme"}


async def test_second_connection_replaces_first(manager):
    first, second = FakeSocket(), FakeSocket()
    await manager.register(first, "usr_a", "Ann")
    previous = await manager.register(second, "usr_a", "Ann")

    assert previous is first
    assert manager.get_connection("usr_a") is second
    assert manager.get_room_members(user_room("usr_a")) == {second}
    assert manager.get_connection_count() == 2
    assert manager.get_connected_user_count() == 1

    # The replaced connection closing does not take the user offline
    info, went_offline = manager.unregister(first)
    assert info.user_guid == "usr_a"
    assert went_offline is False
    assert manager.is_online("usr_a")

    _, went_offline = manager.unregister(second)
    assert went_offline is True
    assert not manager.is_online("usr_a")


async def test_unregister_unknown(manager):
    assert manager.unregister(FakeSocket()) == (None, False)


async def test_rooms(manager):
    a, b = FakeSocket(), FakeSocket()
    await manager.register(a, "usr_a", "Ann")
    await manager.register(b, "usr_b", "Ben")

    assert manager.join_room(a, "deal-1")
    assert manager.join_room(b, "deal-1")
    assert manager.join_room(FakeSocket(), "deal-1") is False

    sent = await manager.send_to_room("deal-1", {"event": "x"}, exclude=a)
    assert sent == 1
    assert b.sent == [{"event": "x"}]
    assert a.sent == []

    manager.leave_room(b, "deal-1")
    assert manager.get_room_members("deal-1") == {a}

    manager.unregister(a)
    assert manager.get_room_members("deal-1") == set()


async def test_send_to_user(manager):
    ws = FakeSocket()
    await manager.register(ws, "usr_a", "Ann")

    assert await manager.send_to_user("usr_a", {"event": "hello"}) is True
    assert await manager.send_to_user("usr_offline", {"event": "hello"}) is False
    assert ws.sent == [{"event": "hello"}]


async def test_failed_send_evicts(manager):
    broken, healthy = FakeSocket(fail=True), FakeSocket()
    await manager.register(broken, "usr_a", "Ann", company="Acme")
    await manager.register(healthy, "usr_b", "Ben", company="Acme")

    assert await manager.broadcast({"event": "ping"}) == 1
    info = manager.get_client(broken)
    assert info.active is False
    assert info.rooms == set()

    # Evicted connections are skipped until their endpoint unregisters them
    assert await manager.broadcast({"event": "again"}) == 1
    assert await manager.send_to_room(company_room("Acme"), {"event": "c"}) == 1
    assert healthy.sent == [{"event": "ping"}, {"event": "again"}, {"event": "c"}]


async def test_broadcast_exclude(manager):
    a, b = FakeSocket(), FakeSocket()
    await manager.register(a, "usr_a", "Ann")
    await manager.register(b, "usr_b", "Ben")

    assert await manager.broadcast({"event": "x"}, exclude=a) == 1
    assert a.sent == []


async def test_connected_users_snapshot(manager):
    await manager.register(FakeSocket(), "usr_a", "Ann", company="Acme")
    users = manager.get_connected_users()

    assert len(users) == 1
    assert users[0]["user_guid"] == "usr_a"
    assert users[0]["user_name"] == "Ann"
    assert users[0]["company"] == "Acme"
    assert users[0]["connected_at"].endswith("Z")


async def test_close_all(manager):
    a, b = FakeSocket(), FakeSocket()
    await manager.register(a, "usr_a", "Ann")
    await manager.register(b, "usr_b", "Ben")

    await manager.close_all()

    assert a.closed == (1001, "Server shutting down")
    assert manager.get_connection_count() == 0
    assert manager.get_connected_user_count() == 0


def test_singleton():
    assert get_connection_manager() is get_connection_manager()


async def test_send_to_user_awaits_socket(manager, mocker):
    ws = mocker.AsyncMock()
    await manager.register(ws, "usr_a", "Ann")

    assert await manager.send_to_user("usr_a", {"event": "task:assigned", "data": {}}) is True
    ws.send_json.assert_awaited_once_with({"event": "task:assigned", "data": {}})
    assert await manager.send_to_user("usr_missing", {"event": "x", "data": {}}) is False


async def test_close_all_survives_close_errors(manager, mocker):
    broken = mocker.AsyncMock()
    broken.close.side_effect = RuntimeError("already closed")
    healthy = mocker.AsyncMock()
    await manager.register(broken, "usr_a", "Ann")
    await manager.register(healthy, "usr_b", "Ben")

    await manager.close_all()

    healthy.close.assert_awaited_once_with(code=1001, reason="Server shutting down")
    assert manager.get_connection_count() == 0
    assert manager.get_connected_user_count() == 0
