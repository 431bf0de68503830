import pytest
from httpx import AsyncClient


def result_payload(student_id: str, **overrides) -> dict:
    payload = {
        "student_id": student_id,
        "semester": 3,
        "year": 2,
        "subject_name": "Operating Systems",
        "subject_code": "CS301",
        "internal_marks": 25,
        "external_marks": 60,
        "max_marks": 100,
        "credits": 4,
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_result_totals_and_grade(client: AsyncClient, student_user, faculty_headers):
    response = await client.post("/api/v1/results", json=result_payload(student_user.id), headers=faculty_headers)

    assert response.status_code == 201
    data = response.json()
    assert data["total_marks"] == 85
    assert data["grade"] == "A-"
    assert data["status"] == "Pass"


@pytest.mark.asyncio
async def test_result_below_pass_mark_fails(client: AsyncClient, student_user, faculty_headers):
    response = await client.post(
        "/api/v1/results",
        json=result_payload(student_user.id, internal_marks=10, external_marks=29),
        headers=faculty_headers
    )

    assert response.json()["status"] == "Fail"


@pytest.mark.asyncio
async def test_marks_above_max_rejected(client: AsyncClient, student_user, faculty_headers):
    response = await client.post(
        "/api/v1/results",
        json=result_payload(student_user.id, internal_marks=50, external_marks=60),
        headers=faculty_headers
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_duplicate_result_rejected(client: AsyncClient, student_user, faculty_headers):
    await client.post("/api/v1/results", json=result_payload(student_user.id), headers=faculty_headers)
    response = await client.post("/api/v1/results", json=result_payload(student_user.id), headers=faculty_headers)

    assert response.status_code == 400
    assert response.json()["message"] == "Result already exists for this subject and exam"


@pytest.mark.asyncio
async def test_cgpa_is_credit_weighted(client: AsyncClient, student_user, faculty_headers, student_headers):
    # A- (3.7) over 4 credits and C (2.0) over 2 credits
    await client.post("/api/v1/results", json=result_payload(student_user.id), headers=faculty_headers)
    await client.post(
        "/api/v1/results",
        json=result_payload(
            student_user.id, subject_code="CS302", subject_name="Networks",
            internal_marks=20, external_marks=42, credits=2
        ),
        headers=faculty_headers
    )

    response = await client.get(f"/api/v1/results/student/{student_user.id}/cgpa", headers=student_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["total_credits"] == 6
    assert data["cgpa"] == 3.13
    assert len(data["semesters"]) == 1


@pytest.mark.asyncio
async def test_grade_sheet_pdf(client: AsyncClient, student_user, faculty_headers, student_headers):
    await client.post("/api/v1/results", json=result_payload(student_user.id), headers=faculty_headers)

    response = await client.get(f"/api/v1/results/student/{student_user.id}/grade-sheet", headers=student_headers)

    assert response.status_code == 200
    assert response.content.startswith(b"%PDF")


@pytest.mark.asyncio
async def test_other_student_cannot_read_results(client: AsyncClient, student_user, other_student_headers):
    response = await client.get(f"/api/v1/results/student/{student_user.id}/results", headers=other_student_headers)

    assert response.status_code == 403
