"""
Unit Tests for the announcement hub
"""
import pytest

from app.services.announcement_hub import AnnouncementHub, HubEvent


class FakeSocket:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.accepted = False
        self.closed = False
        self.sent = []

    async def accept(self):
        self.accepted = True

    async def send_json(self, message):
        if self.fail and self.accepted and self.sent:
            raise RuntimeError("socket closed")
        self.sent.append(message)

    async def close(self):
        self.closed = True


@pytest.fixture
def hub():
    return AnnouncementHub()


@pytest.mark.asyncio
async def test_subscribe_accepts_and_greets(hub):
    socket = FakeSocket()

    await hub.subscribe(socket, "s1", "student")

    assert socket.accepted
    assert socket.sent[0]["type"] == HubEvent.CONNECTED.value
    assert socket.sent[0]["data"] == {"principal_id": "s1", "role": "student"}
    assert hub.subscriber_count == 1


@pytest.mark.asyncio
async def test_broadcast_reaches_every_subscriber(hub):
    first, second = FakeSocket(), FakeSocket()
    await hub.subscribe(first, "s1", "student")
    await hub.subscribe(second, "f1", "faculty")

    delivered = await hub.broadcast(HubEvent.NEW_ANNOUNCEMENT.value, {"title": "Exam schedule"})

    assert delivered == 2
    for socket in (first, second):
        assert socket.sent[-1]["type"] == "new-announcement"
        assert socket.sent[-1]["data"]["title"] == "Exam schedule"


@pytest.mark.asyncio
async def test_dead_socket_is_dropped(hub):
    healthy, dead = FakeSocket(), FakeSocket(fail=True)
    await hub.subscribe(healthy, "s1", "student")
    await hub.subscribe(dead, "s2", "student")

    delivered = await hub.broadcast("new-announcement", {"title": "Holiday"})

    assert delivered == 1
    assert hub.subscriber_count == 1


@pytest.mark.asyncio
async def test_broadcast_with_no_subscribers(hub):
    assert await hub.broadcast("new-announcement", {}) == 0


@pytest.mark.asyncio
async def test_ping_answers_pong(hub):
    socket = FakeSocket()
    subscriber = await hub.subscribe(socket, "a1", "admin")

    await hub.handle_ping(subscriber)

    assert socket.sent[-1]["type"] == "pong"


@pytest.mark.asyncio
async def test_unsubscribe_and_close_all(hub):
    first, second = FakeSocket(), FakeSocket()
    await hub.subscribe(first, "s1", "student")
    await hub.subscribe(second, "s2", "student")

    await hub.unsubscribe(first)
    assert hub.subscriber_count == 1

    await hub.close_all()
    assert second.closed
    assert not first.closed
    assert hub.subscriber_count == 0
