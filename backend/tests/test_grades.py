"""Posting, lifecycle and GPA of assessment grades"""
import pytest
from httpx import AsyncClient
from sqlalchemy import select

from app.models import Grade
from app.services import gradebook


def grade_payload(student_id: str, course_id: str, **overrides) -> dict:
    payload = {
        "studentId": student_id,
        "courseId": course_id,
        "assessmentType": "midterm",
        "assessmentName": "Midterm 1",
        "score": 92,
        "maxScore": 100,
        "weightage": 30,
    }
    payload.update(overrides)
    return payload


async def post_grade(client: AsyncClient, headers: dict, student_id: str, course_id: str, **overrides) -> dict:
    response = await client.post(
        "/api/v1/grades",
        json=grade_payload(student_id, course_id, **overrides),
        headers=headers
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_owner_posts_grade_with_derived_letter(client: AsyncClient, enrolled_student, course, faculty_user, faculty_headers):
    grade = await post_grade(client, faculty_headers, enrolled_student.id, course.id)

    assert grade["grade"] == "A"
    assert grade["gradePoints"] == 4.0
    assert grade["status"] == "draft"
    assert grade["facultyId"] == faculty_user.id
    # semester and year default to the course's
    assert grade["semester"] == course.semester
    assert grade["year"] == course.year


@pytest.mark.asyncio
async def test_other_faculty_cannot_post(client: AsyncClient, enrolled_student, course, other_faculty_headers):
    response = await client.post(
        "/api/v1/grades",
        json=grade_payload(enrolled_student.id, course.id),
        headers=other_faculty_headers
    )

    assert response.status_code == 403
    assert response.json()["message"] == "You are not authorized to post grades for this course"


@pytest.mark.asyncio
async def test_student_cannot_post(client: AsyncClient, enrolled_student, course, student_headers):
    response = await client.post(
        "/api/v1/grades",
        json=grade_payload(enrolled_student.id, course.id),
        headers=student_headers
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_grade_requires_enrollment(client: AsyncClient, student_user, course, faculty_headers):
    response = await client.post(
        "/api/v1/grades",
        json=grade_payload(student_user.id, course.id),
        headers=faculty_headers
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Student is not enrolled in this course"


@pytest.mark.asyncio
async def test_score_above_max_is_rejected(client: AsyncClient, enrolled_student, course, faculty_headers):
    response = await client.post(
        "/api/v1/grades",
        json=grade_payload(enrolled_student.id, course.id, score=120),
        headers=faculty_headers
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_duplicate_assessment_is_rejected(client: AsyncClient, enrolled_student, course, faculty_headers):
    await post_grade(client, faculty_headers, enrolled_student.id, course.id)

    response = await client.post(
        "/api/v1/grades",
        json=grade_payload(enrolled_student.id, course.id, score=40),
        headers=faculty_headers
    )

    assert response.status_code == 400
    assert response.json()["code"] == "DUPLICATE_RECORD"


@pytest.mark.asyncio
async def test_admin_may_post_for_any_course(client: AsyncClient, enrolled_student, course, admin_headers):
    grade = await post_grade(client, admin_headers, enrolled_student.id, course.id)

    assert grade["grade"] == "A"


@pytest.mark.asyncio
async def test_bulk_reports_failures_without_undoing_successes(
    client: AsyncClient, enrolled_student, other_student, course, faculty_headers
):
    response = await client.post(
        "/api/v1/grades/bulk",
        json={"grades": [
            grade_payload(enrolled_student.id, course.id, assessmentName="Quiz 1", assessmentType="quiz"),
            grade_payload(other_student.id, course.id, assessmentName="Quiz 1", assessmentType="quiz"),
        ]},
        headers=faculty_headers
    )

    assert response.status_code == 201
    data = response.json()
    assert len(data["created"]) == 1
    assert len(data["errors"]) == 1
    assert data["errors"][0]["student_id"] == other_student.id


@pytest.mark.asyncio
async def test_lifecycle_and_gpa(client: AsyncClient, enrolled_student, course, faculty_headers, student_headers):
    grade = await post_grade(client, faculty_headers, enrolled_student.id, course.id, score=78)
    assert grade["grade"] == "B"

    published = await client.put(f"/api/v1/grades/{grade['id']}/publish", headers=faculty_headers)
    assert published.json()["status"] == "published"

    finalized = await client.put(f"/api/v1/grades/{grade['id']}/finalize", headers=faculty_headers)
    assert finalized.json()["status"] == "finalized"

    summary = await client.get(f"/api/v1/grades/student/{enrolled_student.id}", headers=student_headers)
    assert summary.status_code == 200
    assert summary.json()["summary"]["gpa"] == 3.0
    assert summary.json()["summary"]["totalCredits"] == course.credits

    profile = await client.get(f"/api/v1/students/{enrolled_student.id}", headers=student_headers)
    assert profile.json()["gpa"] == 3.0


@pytest.mark.asyncio
async def test_finalized_grade_is_immutable(client: AsyncClient, enrolled_student, course, faculty_headers, admin_headers):
    grade = await post_grade(client, faculty_headers, enrolled_student.id, course.id, status="finalized")

    edit = await client.put(f"/api/v1/grades/{grade['id']}", json={"score": 10}, headers=admin_headers)
    delete = await client.delete(f"/api/v1/grades/{grade['id']}", headers=faculty_headers)

    assert edit.status_code == 400
    assert edit.json()["message"] == "Finalized grades cannot be modified"
    assert delete.status_code == 400


@pytest.mark.asyncio
async def test_status_cannot_move_backwards(client: AsyncClient, enrolled_student, course, faculty_headers):
    grade = await post_grade(client, faculty_headers, enrolled_student.id, course.id, status="published")

    response = await client.put(f"/api/v1/grades/{grade['id']}/publish", headers=faculty_headers)

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_STATUS_TRANSITION"


@pytest.mark.asyncio
async def test_update_rederives_letter(client: AsyncClient, enrolled_student, course, faculty_headers):
    grade = await post_grade(client, faculty_headers, enrolled_student.id, course.id)

    response = await client.put(f"/api/v1/grades/{grade['id']}", json={"score": 45}, headers=faculty_headers)

    assert response.status_code == 200
    assert response.json()["grade"] == "F"
    assert response.json()["gradePoints"] == 0.0


@pytest.mark.asyncio
async def test_student_cannot_read_other_students_grades(client: AsyncClient, enrolled_student, other_student_headers):
    response = await client.get(f"/api/v1/grades/student/{enrolled_student.id}", headers=other_student_headers)

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_course_stats(client: AsyncClient, enrolled_student, course, faculty_headers):
    await post_grade(client, faculty_headers, enrolled_student.id, course.id, score=90)
    await post_grade(
        client, faculty_headers, enrolled_student.id, course.id,
        assessmentType="quiz", assessmentName="Quiz 1", score=6, maxScore=10
    )

    response = await client.get(f"/api/v1/grades/stats/course/{course.id}", headers=faculty_headers)

    assert response.status_code == 200
    stats = response.json()
    assert stats["totalGrades"] == 2
    assert stats["averageScorePercentage"] == 75.0
    assert stats["highestPercentage"] == 90.0
    assert stats["lowestPercentage"] == 60.0
    assert stats["gradeDistribution"] == {"A": 1, "C": 1}
    assert stats["statusCounts"]["draft"] == 2


@pytest.mark.asyncio
async def test_rename_onto_existing_assessment_is_rejected(client: AsyncClient, enrolled_student, course, faculty_headers):
    await post_grade(client, faculty_headers, enrolled_student.id, course.id, assessmentName="Midterm 1")
    second = await post_grade(client, faculty_headers, enrolled_student.id, course.id, assessmentName="Midterm 2")

    response = await client.put(
        f"/api/v1/grades/{second['id']}",
        json={"assessmentName": "Midterm 1"},
        headers=faculty_headers
    )

    assert response.status_code == 400
    assert response.json()["code"] == "DUPLICATE_RECORD"
    assert response.json()["message"] == "Grade already exists for this assessment"


@pytest.mark.asyncio
async def test_update_keeping_own_name_is_allowed(client: AsyncClient, enrolled_student, course, faculty_headers):
    grade = await post_grade(client, faculty_headers, enrolled_student.id, course.id)

    response = await client.put(
        f"/api/v1/grades/{grade['id']}",
        json={"assessmentName": "Midterm 1", "score": 70},
        headers=faculty_headers
    )

    assert response.status_code == 200
    assert response.json()["grade"] == "B"


@pytest.mark.asyncio
async def test_bulk_constraint_collision_keeps_earlier_entries(
    client: AsyncClient, db_session, enrolled_student, course, faculty_headers, monkeypatch
):
    await post_grade(client, faculty_headers, enrolled_student.id, course.id, assessmentName="Quiz 1", assessmentType="quiz")

    async def never_found(*args, **kwargs):
        return None

    # let the unique constraint be the one to catch the duplicate
    monkeypatch.setattr(gradebook, "_find_existing", never_found)

    response = await client.post(
        "/api/v1/grades/bulk",
        json={"grades": [
            grade_payload(enrolled_student.id, course.id, assessmentName="Quiz 2", assessmentType="quiz"),
            grade_payload(enrolled_student.id, course.id, assessmentName="Quiz 1", assessmentType="quiz"),
            grade_payload(enrolled_student.id, course.id, assessmentName="Quiz 3", assessmentType="quiz"),
        ]},
        headers=faculty_headers
    )

    assert response.status_code == 201
    data = response.json()
    assert len(data["created"]) == 2
    assert [e["message"] for e in data["errors"]] == ["Grade already exists for this assessment"]

    result = await db_session.execute(
        select(Grade.assessment_name).where(Grade.student_id == enrolled_student.id).order_by(Grade.assessment_name)
    )
    assert result.scalars().all() == ["Quiz 1", "Quiz 2", "Quiz 3"]
