"""Marking attendance and the derived percentages"""
import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from app.models import Attendance, Enrollment
from app.services import attendance_register
from tests.conftest import make_course


async def mark(client: AsyncClient, headers: dict, student_id: str, course_id: str, day: str, status: str,
               class_type: str = "Lecture"):
    return await client.post(
        "/api/v1/attendance",
        json={
            "studentId": student_id,
            "courseId": course_id,
            "date": day,
            "classType": class_type,
            "status": status,
        },
        headers=headers
    )


@pytest.mark.asyncio
async def test_owner_marks_attendance(client: AsyncClient, enrolled_student, course, faculty_user, faculty_headers):
    response = await mark(client, faculty_headers, enrolled_student.id, course.id, "2026-08-03", "Present")

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "Present"
    assert data["markedById"] == faculty_user.id


@pytest.mark.asyncio
async def test_admin_marks_without_marker(client: AsyncClient, enrolled_student, course, admin_headers):
    response = await mark(client, admin_headers, enrolled_student.id, course.id, "2026-08-03", "Absent")

    assert response.status_code == 201
    assert response.json()["markedById"] is None


@pytest.mark.asyncio
async def test_same_slot_twice_is_rejected(client: AsyncClient, enrolled_student, course, faculty_headers):
    await mark(client, faculty_headers, enrolled_student.id, course.id, "2026-08-03", "Present")
    duplicate = await mark(client, faculty_headers, enrolled_student.id, course.id, "2026-08-03", "Absent")
    lab = await mark(client, faculty_headers, enrolled_student.id, course.id, "2026-08-03", "Present", "Lab")

    assert duplicate.status_code == 400
    assert duplicate.json()["message"] == "Attendance already marked for this class"
    # a different class type on the same day is a different slot
    assert lab.status_code == 201


@pytest.mark.asyncio
async def test_non_owner_cannot_mark(client: AsyncClient, enrolled_student, course, other_faculty_headers):
    response = await mark(client, other_faculty_headers, enrolled_student.id, course.id, "2026-08-03", "Present")

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_unenrolled_student_cannot_be_marked(client: AsyncClient, student_user, course, faculty_headers):
    response = await mark(client, faculty_headers, student_user.id, course.id, "2026-08-03", "Present")

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_bulk_session_skips_duplicates_and_unenrolled(
    client: AsyncClient, enrolled_student, other_student, course, faculty_headers
):
    await mark(client, faculty_headers, enrolled_student.id, course.id, "2026-08-04", "Present")

    response = await client.post(
        "/api/v1/faculty-operations/attendance",
        json={
            "courseId": course.id,
            "date": "2026-08-04",
            "records": [
                {"studentId": enrolled_student.id, "status": "Absent"},
                {"studentId": other_student.id, "status": "Present"},
            ],
        },
        headers=faculty_headers
    )

    assert response.status_code == 201
    data = response.json()
    assert data["created"] == 0
    assert sorted(data["skipped"]) == sorted([enrolled_student.id, other_student.id])


@pytest.mark.asyncio
async def test_summary_percentage_counts_excused(
    client: AsyncClient, enrolled_student, course, faculty_headers, student_headers
):
    for day, status in [
        ("2026-08-03", "Present"),
        ("2026-08-04", "Excused"),
        ("2026-08-05", "Absent"),
        ("2026-08-06", "Leave"),
    ]:
        response = await mark(client, faculty_headers, enrolled_student.id, course.id, day, status)
        assert response.status_code == 201

    response = await client.get(
        f"/api/v1/attendance/summary/student/{enrolled_student.id}/course/{course.id}",
        headers=student_headers
    )

    assert response.status_code == 200
    summary = response.json()
    assert summary["totalClasses"] == 4
    assert summary["present"] == 1
    assert summary["excused"] == 1
    assert summary["absent"] == 1
    assert summary["leave"] == 1
    assert summary["percentage"] == 50.0


@pytest.mark.asyncio
async def test_summary_with_no_records_is_zero(client: AsyncClient, enrolled_student, course, student_headers):
    response = await client.get(
        f"/api/v1/attendance/summary/student/{enrolled_student.id}/course/{course.id}",
        headers=student_headers
    )

    assert response.json()["totalClasses"] == 0
    assert response.json()["percentage"] == 0.0


@pytest.mark.asyncio
async def test_update_by_owner(client: AsyncClient, enrolled_student, course, faculty_headers, other_faculty_headers):
    created = await mark(client, faculty_headers, enrolled_student.id, course.id, "2026-08-03", "Absent")
    record_id = created.json()["id"]

    denied = await client.put(f"/api/v1/attendance/{record_id}", json={"status": "Present"}, headers=other_faculty_headers)
    allowed = await client.put(f"/api/v1/attendance/{record_id}", json={"status": "Present"}, headers=faculty_headers)

    assert denied.status_code == 403
    assert allowed.status_code == 200
    assert allowed.json()["status"] == "Present"


@pytest.mark.asyncio
async def test_bulk_session_constraint_collision_is_skipped(
    client: AsyncClient, db_session, enrolled_student, other_student, course, faculty_headers, monkeypatch
):
    db_session.add(Enrollment(student_id=other_student.id, course_id=course.id))
    await db_session.commit()
    await mark(client, faculty_headers, enrolled_student.id, course.id, "2026-08-05", "Present")

    async def never_marked(*args):
        return False

    # the unique constraint has to catch the repeat
    monkeypatch.setattr(attendance_register, "_already_marked", never_marked)

    response = await client.post(
        "/api/v1/faculty-operations/attendance",
        json={
            "courseId": course.id,
            "date": "2026-08-05",
            "records": [
                {"studentId": enrolled_student.id, "status": "Absent"},
                {"studentId": other_student.id, "status": "Present"},
            ],
        },
        headers=faculty_headers
    )

    assert response.status_code == 201
    assert response.json()["created"] == 1
    assert response.json()["skipped"] == [enrolled_student.id]

    stored = await db_session.scalar(
        select(func.count(Attendance.id)).where(Attendance.course_id == course.id)
    )
    assert stored == 2


@pytest.mark.asyncio
async def test_student_attendance_lists_by_course(
    client: AsyncClient, db_session, enrolled_student, course, department, faculty_user, faculty_headers, student_headers
):
    second = make_course(department_id=department.id, faculty_id=faculty_user.id)
    db_session.add(second)
    await db_session.flush()
    db_session.add(Enrollment(student_id=enrolled_student.id, course_id=second.id))
    await db_session.commit()

    await mark(client, faculty_headers, enrolled_student.id, course.id, "2026-08-03", "Present")
    await mark(client, faculty_headers, enrolled_student.id, course.id, "2026-08-04", "Absent")
    await mark(client, faculty_headers, enrolled_student.id, second.id, "2026-08-04", "Present")

    everything = await client.get(
        f"/api/v1/attendances/student/{enrolled_student.id}/attendance", headers=student_headers
    )
    one_course = await client.get(
        f"/api/v1/attendances/student/{enrolled_student.id}/attendance/{course.id}", headers=student_headers
    )

    assert everything.status_code == 200
    assert len(everything.json()) == 3
    assert one_course.status_code == 200
    assert [r["date"] for r in one_course.json()] == ["2026-08-04", "2026-08-03"]
    assert {r["courseId"] for r in one_course.json()} == {course.id}


@pytest.mark.asyncio
async def test_student_attendance_percentage(
    client: AsyncClient, enrolled_student, course, faculty_headers, student_headers
):
    for day, status in [("2026-08-03", "Present"), ("2026-08-04", "Absent"),
                        ("2026-08-05", "Present"), ("2026-08-06", "Excused")]:
        await mark(client, faculty_headers, enrolled_student.id, course.id, day, status)

    response = await client.get(
        f"/api/v1/attendances/student/{enrolled_student.id}/attendance-percentage", headers=student_headers
    )

    assert response.status_code == 200
    assert response.json() == {"percentage": 75.0, "totalClasses": 4, "presentCount": 2}


@pytest.mark.asyncio
async def test_student_attendance_percentage_without_records(client: AsyncClient, student_user, student_headers):
    response = await client.get(
        f"/api/v1/attendances/student/{student_user.id}/attendance-percentage", headers=student_headers
    )

    assert response.json() == {"percentage": 0.0, "totalClasses": 0, "presentCount": 0}


@pytest.mark.asyncio
async def test_student_cannot_list_another_students_attendance(
    client: AsyncClient, enrolled_student, other_student_headers
):
    response = await client.get(
        f"/api/v1/attendances/student/{enrolled_student.id}/attendance", headers=other_student_headers
    )

    assert response.status_code == 403
