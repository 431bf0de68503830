import pytest
from datetime import datetime, timedelta
from httpx import AsyncClient
from sqlalchemy import delete

from app.core.security import create_access_token
from app.models import RegistrationStatus, Student
from tests.conftest import TEST_PASSWORD, make_student


@pytest.mark.asyncio
async def test_admin_login_success(client: AsyncClient, admin_user):
    response = await client.post(
        "/api/v1/auth/admin/login",
        json={"email": admin_user.email, "password": TEST_PASSWORD}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["token"]
    assert data["admin"]["email"] == admin_user.email
    assert data["admin"]["role"] == "admin"


@pytest.mark.asyncio
async def test_admin_login_wrong_password(client: AsyncClient, admin_user):
    response = await client.post(
        "/api/v1/auth/admin/login",
        json={"email": admin_user.email, "password": "wrongpassword"}
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid credentials"


@pytest.mark.asyncio
async def test_faculty_login_success(client: AsyncClient, faculty_user):
    response = await client.post(
        "/api/v1/auth/faculty/login",
        json={"email": faculty_user.email, "password": TEST_PASSWORD}
    )

    assert response.status_code == 200
    assert response.json()["faculty"]["facultyCode"] == faculty_user.faculty_code


@pytest.mark.asyncio
async def test_student_login_success(client: AsyncClient, student_user):
    response = await client.post(
        "/api/v1/auth/student/login",
        json={"email": student_user.email.upper(), "password": TEST_PASSWORD}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["token"]
    assert data["student"]["registration_id"] == student_user.registration_id


@pytest.mark.asyncio
async def test_pending_student_cannot_login(client: AsyncClient, db_session):
    student = make_student(registration_status=RegistrationStatus.PENDING)
    db_session.add(student)
    await db_session.commit()

    response = await client.post(
        "/api/v1/auth/student/login",
        json={"email": student.email, "password": TEST_PASSWORD}
    )

    assert response.status_code == 403
    assert response.json()["message"] == "Account not approved yet"


@pytest.mark.asyncio
async def test_unknown_email_is_invalid_credentials(client: AsyncClient):
    response = await client.post(
        "/api/v1/auth/student/login",
        json={"email": "nobody@unitrack.edu", "password": TEST_PASSWORD}
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid credentials"


@pytest.mark.asyncio
async def test_get_me_returns_role_and_profile(client: AsyncClient, student_user, student_headers):
    response = await client.get("/api/v1/auth/me", headers=student_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["role"] == "student"
    assert data["user"]["email"] == student_user.email


@pytest.mark.asyncio
async def test_missing_token_is_401(client: AsyncClient):
    response = await client.get("/api/v1/auth/me")

    assert response.status_code == 401
    assert response.json()["message"] == "No token, authorization denied"


@pytest.mark.asyncio
async def test_expired_token_is_401(client: AsyncClient, student_user):
    token = create_access_token(
        {"sub": str(student_user.id), "role": "student", "email": student_user.email},
        issued_at=datetime.utcnow() - timedelta(days=2),
    )

    response = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_token_for_deleted_student_is_401(client: AsyncClient, db_session, student_user, student_headers):
    await db_session.execute(delete(Student).where(Student.id == student_user.id))
    await db_session.commit()

    response = await client.get("/api/v1/auth/me", headers=student_headers)

    assert response.status_code == 401
    assert response.json()["message"] == "User not found"


@pytest.mark.asyncio
async def test_forgot_password_does_not_reveal_unknown_email(client: AsyncClient):
    response = await client.post(
        "/api/v1/auth/student/forgot-password",
        json={"email": "ghost@unitrack.edu"}
    )

    assert response.status_code == 200
    assert response.json()["message"] == "Password reset link sent to email"


@pytest.mark.asyncio
async def test_reset_password_with_bad_token(client: AsyncClient):
    response = await client.post(
        "/api/v1/auth/student/reset-password",
        json={"token": "not-a-token", "password": "newpassword"}
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid or expired reset token"


@pytest.mark.asyncio
async def test_reset_password_then_login(client: AsyncClient, student_user):
    from app.core.security import create_password_reset_token

    token = create_password_reset_token(str(student_user.id), student_user.email)
    response = await client.post(
        "/api/v1/auth/student/reset-password",
        json={"token": token, "password": "brandnew123"}
    )
    assert response.status_code == 200

    login = await client.post(
        "/api/v1/auth/student/login",
        json={"email": student_user.email, "password": "brandnew123"}
    )
    assert login.status_code == 200
