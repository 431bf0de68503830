"""Announcements: targeting, read receipts and live fan-out"""
import pytest
from datetime import datetime, timedelta
from httpx import AsyncClient

from app.models import Announcement, AnnouncementPriority, TargetAudience


class RecordingSocket:
    """Stands in for a WebSocket; keeps whatever the hub sends"""

    def __init__(self):
        self.accepted = False
        self.sent = []

    async def accept(self):
        self.accepted = True

    async def send_json(self, message):
        self.sent.append(message)

    async def close(self):
        pass


@pytest.fixture
async def live_socket(services):
    socket = RecordingSocket()
    await services.hub.subscribe(socket, "listener", "student")
    yield socket
    await services.hub.unsubscribe(socket)


async def add_announcement(db_session, admin_user, **fields) -> Announcement:
    values = dict(title="Notice", message="Body", created_by_id=admin_user.id)
    values.update(fields)
    announcement = Announcement(**values)
    db_session.add(announcement)
    await db_session.commit()
    return announcement


@pytest.mark.asyncio
async def test_create_broadcasts_to_live_subscribers(client: AsyncClient, admin_headers, services, live_socket):
    response = await client.post(
        "/api/v1/announcements",
        json={"title": "Exam schedule", "message": "Finals start Monday", "priority": "High"},
        headers=admin_headers
    )
    assert response.status_code == 201

    await services.dispatcher.drain()

    events = [m for m in live_socket.sent if m["type"] == "new-announcement"]
    assert len(events) == 1
    assert events[0]["data"]["title"] == "Exam schedule"
    assert events[0]["data"]["targetAudience"] == "All"


@pytest.mark.asyncio
async def test_targeted_audience_requires_target(client: AsyncClient, admin_headers):
    response = await client.post(
        "/api/v1/announcements",
        json={"title": "Year 2", "message": "Lab move", "targetAudience": "Specific Year"},
        headers=admin_headers
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_student_feed_filters_and_orders(
    client: AsyncClient, db_session, admin_user, student_user, student_headers
):
    now = datetime.utcnow()
    low = await add_announcement(db_session, admin_user, title="Low", priority=AnnouncementPriority.LOW)
    critical = await add_announcement(db_session, admin_user, title="Critical", priority=AnnouncementPriority.CRITICAL)
    by_code = await add_announcement(
        db_session, admin_user, title="Dept",
        target_audience=TargetAudience.SPECIFIC_DEPARTMENT, target_department="cse"
    )
    await add_announcement(
        db_session, admin_user, title="Other year",
        target_audience=TargetAudience.SPECIFIC_YEAR, target_year=4
    )
    await add_announcement(db_session, admin_user, title="Expired", expires_at=now - timedelta(days=1))
    await add_announcement(db_session, admin_user, title="Inactive", is_active=False)

    response = await client.get("/api/v1/announcements/student/active", headers=student_headers)

    assert response.status_code == 200
    titles = [a["title"] for a in response.json()]
    assert titles[0] == critical.title
    assert set(titles) == {low.title, critical.title, by_code.title}
    assert all(a["isRead"] is False for a in response.json())


@pytest.mark.asyncio
async def test_mark_read_is_idempotent(client: AsyncClient, db_session, admin_user, student_headers):
    announcement = await add_announcement(db_session, admin_user)

    first = await client.post(f"/api/v1/announcements/{announcement.id}/read", headers=student_headers)
    second = await client.post(f"/api/v1/announcements/{announcement.id}/read", headers=student_headers)

    assert first.status_code == 200
    assert second.status_code == 200

    feed = await client.get("/api/v1/announcements/student/active", headers=student_headers)
    assert feed.json()[0]["isRead"] is True


@pytest.mark.asyncio
async def test_untargeted_student_cannot_open(client: AsyncClient, db_session, admin_user, student_headers):
    announcement = await add_announcement(
        db_session, admin_user,
        target_audience=TargetAudience.SPECIFIC_SEMESTER, target_semester=8
    )

    response = await client.get(f"/api/v1/announcements/{announcement.id}", headers=student_headers)

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_faculty_cannot_publish(client: AsyncClient, faculty_headers):
    response = await client.post(
        "/api/v1/announcements",
        json={"title": "Hi", "message": "There"},
        headers=faculty_headers
    )

    assert response.status_code == 403
