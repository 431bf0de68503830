"""Registration, approval, role checks and course enrollment"""
import pytest
from httpx import AsyncClient

from app.core.exceptions import DuplicateRecordError
from app.models import Student
from app.services import enrollment
from tests.conftest import bearer, make_course, make_student


def registration_payload(email: str = "new.student@unitrack.edu") -> dict:
    return {
        "email": email,
        "password": "secret123",
        "full_name": "Asha Verma",
        "phone_number": "+919876543210",
        "date_of_birth": "2004-02-29",
        "gender": "Female",
        "address": "12 MG Road",
        "city": "Bengaluru",
        "state": "Karnataka",
        "pincode": "560001",
        "year": 1,
        "semester": 1,
    }


@pytest.mark.asyncio
async def test_register_creates_pending_student(client: AsyncClient):
    response = await client.post("/api/v1/students/register", json=registration_payload())

    assert response.status_code == 201
    data = response.json()
    assert data["registration_id"].startswith("REG")
    assert data["student"]["registration_status"] == "Pending"
    assert "password_hash" not in data["student"]


@pytest.mark.asyncio
async def test_register_duplicate_email(client: AsyncClient):
    await client.post("/api/v1/students/register", json=registration_payload())
    response = await client.post(
        "/api/v1/students/register",
        json=registration_payload("NEW.STUDENT@unitrack.edu")
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Student with this email already exists"


@pytest.mark.asyncio
async def test_register_rejects_bad_pincode(client: AsyncClient):
    payload = registration_payload()
    payload["pincode"] = "12AB"

    response = await client.post("/api/v1/students/register", json=payload)

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_admin_approves_pending_student(client: AsyncClient, db_session, admin_headers):
    from app.models import RegistrationStatus

    student = make_student(registration_status=RegistrationStatus.PENDING)
    db_session.add(student)
    await db_session.commit()

    pending = await client.get("/api/v1/students/status/pending", headers=admin_headers)
    assert [s["id"] for s in pending.json()] == [student.id]

    response = await client.patch(f"/api/v1/students/{student.id}/approve", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["registration_status"] == "Approved"


@pytest.mark.asyncio
async def test_student_cannot_list_students(client: AsyncClient, student_headers):
    response = await client.get("/api/v1/students", headers=student_headers)

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_faculty_cannot_approve(client: AsyncClient, student_user, faculty_headers):
    response = await client.patch(f"/api/v1/students/{student_user.id}/approve", headers=faculty_headers)

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_student_reads_only_own_record(client: AsyncClient, student_user, other_student, student_headers):
    own = await client.get(f"/api/v1/students/{student_user.id}", headers=student_headers)
    other = await client.get(f"/api/v1/students/{other_student.id}", headers=student_headers)

    assert own.status_code == 200
    assert other.status_code == 403


@pytest.mark.asyncio
async def test_faculty_reads_any_student(client: AsyncClient, student_user, faculty_headers):
    response = await client.get(f"/api/v1/students/{student_user.id}", headers=faculty_headers)

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_unknown_student_is_404(client: AsyncClient, admin_headers):
    response = await client.get(
        "/api/v1/students/00000000-0000-0000-0000-000000000000",
        headers=admin_headers
    )

    assert response.status_code == 404
    assert response.json()["message"] == "Student not found"


@pytest.mark.asyncio
async def test_enroll_and_list_courses(client: AsyncClient, student_user, course, student_headers):
    response = await client.post(
        f"/api/v1/students/{student_user.id}/enroll/{course.id}",
        headers=student_headers
    )

    assert response.status_code == 200
    assert response.json()["enrolled_count"] == 1

    courses = await client.get(f"/api/v1/students/{student_user.id}/courses", headers=student_headers)
    assert courses.status_code == 200


@pytest.mark.asyncio
async def test_enroll_twice_is_rejected(client: AsyncClient, enrolled_student, course, student_headers):
    response = await client.post(
        f"/api/v1/students/{enrolled_student.id}/enroll/{course.id}",
        headers=student_headers
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Student already enrolled in this course"


@pytest.mark.asyncio
async def test_enroll_respects_capacity(client: AsyncClient, db_session, student_user, other_student, admin_headers):
    small = make_course(max_students=1)
    db_session.add(small)
    await db_session.commit()

    first = await client.post(f"/api/v1/courses/{small.id}/enroll/{student_user.id}", headers=admin_headers)
    second = await client.post(f"/api/v1/courses/{small.id}/enroll/{other_student.id}", headers=admin_headers)

    assert first.status_code == 200
    assert second.status_code == 400
    assert second.json()["code"] == "CAPACITY_EXCEEDED"

    details = await client.get(f"/api/v1/courses/{small.id}/details", headers=admin_headers)
    assert details.json()["enrolledCount"] == 1
    assert details.json()["availableSeats"] == 0


@pytest.mark.asyncio
async def test_student_cannot_enroll_someone_else(client: AsyncClient, other_student, course, student_headers):
    response = await client.post(
        f"/api/v1/students/{other_student.id}/enroll/{course.id}",
        headers=student_headers
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_unenroll_frees_seat(client: AsyncClient, enrolled_student, course, student_headers):
    response = await client.post(
        f"/api/v1/students/{enrolled_student.id}/unenroll/{course.id}",
        headers=student_headers
    )

    assert response.status_code == 200
    assert response.json()["enrolled_count"] == 0


@pytest.mark.asyncio
async def test_delete_student_removes_enrollments(client: AsyncClient, enrolled_student, course, admin_headers):
    response = await client.delete(f"/api/v1/students/{enrolled_student.id}", headers=admin_headers)
    assert response.status_code == 200

    details = await client.get(f"/api/v1/courses/{course.id}/details", headers=admin_headers)
    assert details.json()["enrolledCount"] == 0


@pytest.mark.asyncio
async def test_stats_overview_counts_statuses(client: AsyncClient, student_user, other_student, admin_headers):
    response = await client.get("/api/v1/students/stats/overview", headers=admin_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert data["approved"] == 2
    assert data["departments"] == {"Computer Science": 2}


@pytest.mark.asyncio
async def test_enroll_constraint_collision_keeps_staged_changes(db_session, enrolled_student, other_student, course, monkeypatch):
    async def not_enrolled(*args):
        return False

    # skip the pre-check so the unique constraint rejects the row
    monkeypatch.setattr(enrollment, "is_enrolled", not_enrolled)
    other_student.city = "Nagpur"

    with pytest.raises(DuplicateRecordError):
        await enrollment.enroll(db_session, enrolled_student.id, course.id)

    count = await enrollment.enroll(db_session, other_student.id, course.id)
    await db_session.commit()

    assert count == 2
    refreshed = await db_session.get(Student, other_student.id, populate_existing=True)
    assert refreshed.city == "Nagpur"
