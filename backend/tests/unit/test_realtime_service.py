"""
Tests for the real-time relay: presence announcements, event relays,
typing and rooms, and the server push API.
"""

import json

import pytest

from backend.src.services.realtime_service import RealtimeService, envelope
from backend.src.utils.websocket import ConnectionManager


class FakeSocket:
    def __init__(self):
        self.sent = []

    async def send_json(self, data):
        self.sent.append(data)

    def events(self):
        return [m["event"] for m in self.sent]


def frame(event, **data):
    return json.dumps({"event": event, "data": data})


@pytest.fixture
def realtime():
    return RealtimeService(ConnectionManager())


@pytest.fixture
async def pair(realtime):
    ann, ben = FakeSocket(), FakeSocket()
    await realtime.connect(ann, "usr_ann", "Ann Lee", company="Acme")
    await realtime.connect(ben, "usr_ben", "Ben Park", company="Acme")
    ann.sent.clear()
    ben.sent.clear()
    return ann, ben


def test_envelope():
    assert envelope("heartbeat") == {"event": "heartbeat", "data": {}}


class TestPresence:

    async def test_connect_announces_to_others(self, realtime):
        ann, ben = FakeSocket(), FakeSocket()
        await realtime.connect(ann, "usr_ann", "Ann Lee")
        await realtime.connect(ben, "usr_ben", "Ben Park")

        assert ben.sent == []
        assert ann.events() == ["user:online"]
        data = ann.sent[0]["data"]
        assert data["user_id"] == "usr_ben"
        assert data["user_name"] == "Ben Park"
        assert data["timestamp"].endswith("Z")

    async def test_disconnect_announces_offline(self, realtime, pair):
        ann, ben = pair
        await realtime.disconnect(ben)

        assert ann.events() == ["user:offline"]
        assert ann.sent[0]["data"]["user_id"] == "usr_ben"
        assert realtime.connected_user_count() == 1

    async def test_replaced_connection_closing_is_silent(self, realtime, pair):
        ann, ben = pair
        ben_again = FakeSocket()
        await realtime.connect(ben_again, "usr_ben", "Ben Park")
        ann.sent.clear()

        await realtime.disconnect(ben)
        assert ann.sent == []

        await realtime.disconnect(ben_again)
        assert ann.events() == ["user:offline"]

    async def test_disconnect_unknown_socket(self, realtime):
        await realtime.disconnect(FakeSocket())


class TestRelay:

    @pytest.mark.parametrize("inbound,outbound,attribution", [
        ("activity:create", "activity:new", "created_by"),
        ("deal:update", "deal:updated", "updated_by"),
        ("lead:update", "lead:updated", "updated_by"),
        ("contact:update", "contact:updated", "updated_by"),
    ])
    async def test_relayed_to_everyone_else(self, realtime, pair, inbound, outbound, attribution):
        ann, ben = pair
        await realtime.handle_text(ann, frame(inbound, id="rec-1", stage="won"))

        assert ann.sent == []
        assert ben.events() == [outbound]
        data = ben.sent[0]["data"]
        assert data["id"] == "rec-1"
        assert data["stage"] == "won"
        assert data[attribution] == {"id": "usr_ann", "name": "Ann Lee"}
        assert "timestamp" in data

    async def test_task_assign_reaches_assignee_only(self, realtime, pair):
        ann, ben = pair
        carl = FakeSocket()
        await realtime.connect(carl, "usr_carl", "Carl Diaz")
        ann.sent.clear()
        ben.sent.clear()

        await realtime.handle_text(ann, frame("task:assign", assigned_to="usr_ben", title="Call venue"))

        assert ben.events() == ["task:assigned"]
        assert ben.sent[0]["data"]["assigned_by"] == {"id": "usr_ann", "name": "Ann Lee"}
        assert ben.sent[0]["data"]["title"] == "Call venue"
        assert carl.sent == []
        assert ann.sent == []

    async def test_task_assign_without_assignee_is_ignored(self, realtime, pair):
        ann, ben = pair
        await realtime.handle_text(ann, frame("task:assign", title="Nobody"))
        assert ben.sent == []

    async def test_typing_goes_to_room_members(self, realtime, pair):
        ann, ben = pair
        outsider = FakeSocket()
        await realtime.connect(outsider, "usr_out", "Out Sider")
        ann.sent.clear()
        ben.sent.clear()

        await realtime.handle_text(ann, frame("join:room", room_id="deal-9"))
        await realtime.handle_text(ben, frame("join:room", room_id="deal-9"))
        await realtime.handle_text(ann, frame("typing:start", room_id="deal-9"))

        assert ann.sent == []
        assert outsider.sent == []
        assert ben.sent == [{
            "event": "typing:start",
            "data": {"user_id": "usr_ann", "user_name": "Ann Lee", "room_id": "deal-9"},
        }]

        await realtime.handle_text(ben, frame("leave:room", room_id="deal-9"))
        await realtime.handle_text(ann, frame("typing:stop", room_id="deal-9"))
        assert ben.events() == ["typing:start"]

    @pytest.mark.parametrize("raw", [
        "not json",
        json.dumps(["a", "list"]),
        json.dumps({"data": {}}),
        frame("no:such:event"),
        frame("typing:start"),
        frame("join:room", room_id=""),
    ])
    async def test_bad_frames_are_dropped(self, realtime, pair, raw):
        ann, ben = pair
        await realtime.handle_text(ann, raw)
        assert ben.sent == []

    async def test_frames_from_unregistered_sockets_are_dropped(self, realtime, pair):
        _, ben = pair
        await realtime.handle_text(FakeSocket(), frame("deal:update", id="d"))
        assert ben.sent == []


class TestPushApi:

    async def test_notify_user(self, realtime, pair):
        ann, _ = pair
        assert await realtime.notify_user("usr_ann", "task:assigned", {"title": "x"}) is True
        assert ann.sent == [{"event": "task:assigned", "data": {"title": "x"}}]
        assert await realtime.notify_user("usr_nobody", "task:assigned", {}) is False

    async def test_notify_company(self, realtime, pair):
        ann, ben = pair
        assert await realtime.notify_company("Acme", "event:updated", {"id": "e"}) == 2
        assert await realtime.notify_company("Other", "event:updated", {}) == 0

    async def test_broadcast_with_exclude(self, realtime, pair):
        ann, ben = pair
        assert await realtime.broadcast("activity:new", {"id": "a"}, exclude=ann) == 1
        assert ann.sent == []

    async def test_connected_users(self, realtime, pair):
        names = sorted(u["user_name"] for u in realtime.connected_users())
        assert names == ["Ann Lee", "Ben Park"]
