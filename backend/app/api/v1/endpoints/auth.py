from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from datetime import datetime

from app.core.database import get_db
from app.core.exceptions import InvalidTokenError
from app.core.security import (
    verify_password,
    get_password_hash,
    create_access_token,
    create_password_reset_token,
    decode_token
)
from app.core.logging_config import logger
from app.core.rate_limiter import login_rate_limit
from app.models.admin import Admin
from app.models.faculty import Faculty, FacultyStatus
from app.models.student import Student, RegistrationStatus
from app.modules.auth import Principal, Role, get_current_principal
from app.schemas.auth import (
    LoginRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    AdminResponse,
    AdminLoginResponse,
    FacultyLoginResponse,
    StudentLoginResponse,
    MeResponse,
)
from app.schemas.common import MessageResponse
from app.schemas.faculty import FacultyResponse
from app.schemas.student import StudentResponse
from app.services.registry import Outbound, get_outbound

router = APIRouter()

INVALID_CREDENTIALS = "Invalid credentials"

PROFILE_SCHEMAS = {
    Role.ADMIN: AdminResponse,
    Role.FACULTY: FacultyResponse,
    Role.STUDENT: StudentResponse,
}


def issue_token(record, role: Role) -> str:
    return create_access_token({"sub": str(record.id), "role": role.value, "email": record.email})


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def _reject(event: str, email: str, reason: str, request: Request, status_code: int = status.HTTP_400_BAD_REQUEST,
            message: str = INVALID_CREDENTIALS):
    logger.log_auth_event(event=event, success=False, user_email=email, reason=reason, client_ip=_client_ip(request))
    return HTTPException(status_code=status_code, detail=message)


@router.post("/admin/login", response_model=AdminLoginResponse)
async def admin_login(
    request: Request,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """Admin login"""
    email = credentials.email.lower()
    result = await db.execute(select(Admin).where(Admin.email == email))
    admin = result.scalar_one_or_none()

    if not admin or not verify_password(credentials.password, admin.password_hash):
        raise _reject("admin_login", email, "Bad email or password", request)
    if not admin.is_active:
        raise _reject("admin_login", email, "Account disabled", request,
                      status.HTTP_403_FORBIDDEN, "Account not active")

    admin.last_login = datetime.utcnow()
    await db.commit()

    logger.log_auth_event(event="admin_login", success=True, user_email=email, client_ip=_client_ip(request))
    return {"token": issue_token(admin, Role.ADMIN), "admin": admin}


@router.post("/faculty/login", response_model=FacultyLoginResponse)
async def faculty_login(
    request: Request,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """Faculty login; only active faculty may sign in"""
    email = credentials.email.lower()
    result = await db.execute(select(Faculty).where(Faculty.email == email))
    faculty = result.scalar_one_or_none()

    if not faculty:
        raise _reject("faculty_login", email, "Unknown email", request)
    if faculty.status != FacultyStatus.ACTIVE:
        raise _reject("faculty_login", email, f"Status {faculty.status.value}", request,
                      status.HTTP_403_FORBIDDEN, "Account not active")
    if not verify_password(credentials.password, faculty.password_hash):
        raise _reject("faculty_login", email, "Bad password", request)

    faculty.last_login = datetime.utcnow()
    await db.commit()

    logger.log_auth_event(event="faculty_login", success=True, user_email=email, client_ip=_client_ip(request))
    return {"token": issue_token(faculty, Role.FACULTY), "faculty": faculty}


@router.post("/student/login", response_model=StudentLoginResponse)
@login_rate_limit()
async def student_login(
    request: Request,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """Student login (rate limited); only Approved students may sign in"""
    email = credentials.email.lower()
    result = await db.execute(select(Student).where(Student.email == email))
    student = result.scalar_one_or_none()

    if not student:
        raise _reject("student_login", email, "Unknown email", request)
    if student.registration_status != RegistrationStatus.APPROVED:
        raise _reject("student_login", email, f"Status {student.registration_status.value}", request,
                      status.HTTP_403_FORBIDDEN, "Account not approved yet")
    if not verify_password(credentials.password, student.password_hash):
        raise _reject("student_login", email, "Bad password", request)

    student.last_login = datetime.utcnow()
    await db.commit()

    logger.log_auth_event(event="student_login", success=True, user_email=email, client_ip=_client_ip(request))
    return {"token": issue_token(student, Role.STUDENT), "student": student}


@router.post("/student/logout", response_model=MessageResponse)
async def student_logout(principal: Principal = Depends(get_current_principal)):
    """Tokens are stateless; the client discards its copy"""
    logger.log_auth_event(event="logout", success=True, user_email=principal.email)
    return {"message": "Logged out successfully"}


@router.post("/student/forgot-password", response_model=MessageResponse)
async def forgot_password(
    request: Request,
    payload: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_db),
    outbound: Outbound = Depends(get_outbound)
):
    """
    Mail a password reset link.

    The response is the same whether or not the email is registered.
    """
    email = payload.email.lower()
    result = await db.execute(select(Student).where(Student.email == email))
    student = result.scalar_one_or_none()

    if student:
        token = create_password_reset_token(str(student.id), student.email)
        outbound.email("send_password_reset", student.email, student.full_name, token)
        logger.log_auth_event(event="password_reset_requested", success=True, user_email=email,
                              client_ip=_client_ip(request))
    else:
        logger.log_auth_event(event="password_reset_requested", success=False, user_email=email,
                              reason="Unknown email", client_ip=_client_ip(request))

    return {"message": "Password reset link sent to email"}


@router.post("/student/reset-password", response_model=MessageResponse)
async def reset_password(
    payload: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db)
):
    """Set a new password using the token from the reset email"""
    try:
        claims = decode_token(payload.token, expected_type="password_reset")
    except InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired reset token"
        )

    result = await db.execute(select(Student).where(Student.id == str(claims.get("sub"))))
    student = result.scalar_one_or_none()
    if not student or student.email != claims.get("email"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired reset token"
        )

    student.password_hash = get_password_hash(payload.password)
    await db.commit()

    logger.log_auth_event(event="password_reset", success=True, user_email=student.email)
    return {"message": "Password reset successfully"}


@router.get("/me", response_model=MeResponse)
async def get_me(principal: Principal = Depends(get_current_principal)):
    """Profile of whoever holds the token"""
    schema = PROFILE_SCHEMAS[principal.role]
    return {
        "role": principal.role.value,
        "user": schema.model_validate(principal.record).model_dump(mode="json", by_alias=True),
    }
