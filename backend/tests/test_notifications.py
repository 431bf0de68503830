"""Notification read flags and timetable export paths"""
import pytest
from httpx import AsyncClient

from app.models import DayOfWeek, Notification, NotificationCategory, Timetable


@pytest.fixture
async def notification(db_session, student_user) -> Notification:
    notification = Notification(
        student_id=student_user.id,
        title="Library dues",
        message="Return overdue books by Friday",
        category=NotificationCategory.GENERAL,
    )
    db_session.add(notification)
    await db_session.commit()
    return notification


@pytest.mark.asyncio
@pytest.mark.parametrize("path", [
    "/api/v1/notifications/{id}/read",
    "/api/v1/notifications/notifications/{id}/read",
])
async def test_student_marks_notification_read(client: AsyncClient, notification, student_headers, path):
    response = await client.put(path.format(id=notification.id), headers=student_headers)

    assert response.status_code == 200
    assert response.json()["is_read"] is True


@pytest.mark.asyncio
async def test_other_student_cannot_mark_read(client: AsyncClient, notification, other_student_headers):
    response = await client.put(
        f"/api/v1/notifications/notifications/{notification.id}/read", headers=other_student_headers
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_staff_deletes_through_either_path(client: AsyncClient, db_session, notification, faculty_headers):
    second = Notification(title="Fee reminder", message="Due soon", category=NotificationCategory.FEES)
    db_session.add(second)
    await db_session.commit()

    first = await client.delete(f"/api/v1/notifications/notifications/{notification.id}", headers=faculty_headers)
    other = await client.delete(f"/api/v1/notifications/{second.id}", headers=faculty_headers)
    gone = await client.get(f"/api/v1/notifications/{notification.id}", headers=faculty_headers)

    assert first.status_code == 200
    assert other.status_code == 200
    assert gone.status_code == 404


@pytest.mark.asyncio
@pytest.mark.parametrize("path", [
    "/api/v1/timetables/export/csv",
    "/api/v1/timetables/timetable/export/csv",
])
async def test_student_exports_own_timetable_csv(client: AsyncClient, db_session, department, student_user, student_headers, path):
    db_session.add(Timetable(
        department_id=department.id,
        year=student_user.year,
        semester=student_user.semester,
        day_of_week=DayOfWeek.MONDAY,
        start_time="09:00",
        end_time="10:00",
        subject_name="Operating Systems",
        subject_code="CS301",
    ))
    await db_session.commit()

    response = await client.get(path, headers=student_headers)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.text.splitlines()[0].startswith("Day,Start,End,Subject")
    assert "Operating Systems" in response.text


@pytest.mark.asyncio
async def test_unknown_export_format_is_rejected(client: AsyncClient, student_headers):
    response = await client.get("/api/v1/timetables/timetable/export/xlsx", headers=student_headers)

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"
