from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Optional
import uuid

from app.core.database import get_db
from app.core.exceptions import AuthenticationError, AuthorizationError, InvalidTokenError
from app.core.logging_config import set_principal
from app.core.security import decode_token
from app.models.course import Course
from app.modules.auth.principal import Principal, Role, PRINCIPAL_MODELS

# auto_error=False so a missing header is reported as 401, not 403
security = HTTPBearer(auto_error=False)


async def resolve_principal(db: AsyncSession, token: str) -> Principal:
    """
    Turn a bearer token into a Principal.

    Every failure (bad token, unknown role claim, malformed id, deleted
    account) is an AuthenticationError.
    """
    payload = decode_token(token)

    role = Role.parse(payload.get("role"))
    model = PRINCIPAL_MODELS.get(role) if role else None
    principal_id = payload.get("sub")
    if model is None or not principal_id:
        raise InvalidTokenError("Token is not valid")

    try:
        uuid.UUID(str(principal_id))
    except ValueError:
        raise InvalidTokenError("Token is not valid")

    result = await db.execute(select(model).where(model.id == str(principal_id)))
    record = result.scalar_one_or_none()
    if record is None:
        raise AuthenticationError("User not found")

    set_principal(str(record.id), role.value)
    return Principal(role=role, record=record)


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> Principal:
    """Get the authenticated principal for this request"""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("No token, authorization denied")
    return await resolve_principal(db, credentials.credentials)


def require_role(minimum: Role):
    """
    Dependency factory: accept any principal whose role is at least `minimum`.

    Usage:
        @router.get("/")
        async def list_fees(principal: Principal = Depends(require_role(Role.ADMIN))):
            ...
    """
    async def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        if not principal.role.satisfies(minimum):
            raise AuthorizationError("Access denied. Insufficient permissions.")
        return principal

    return dependency


# The three bundles every route picks from
require_admin = require_role(Role.ADMIN)
require_faculty = require_role(Role.FACULTY)
require_student = require_role(Role.STUDENT)


def ensure_course_owner(principal: Principal, course: Course, action: str = "modify") -> None:
    """Faculty may only act on courses assigned to them; admins always pass"""
    if principal.is_admin:
        return
    if principal.is_faculty and course.faculty_id is not None and str(course.faculty_id) == principal.id:
        return
    raise AuthorizationError(f"You are not authorized to {action} for this course")


def ensure_self_or_staff(principal: Principal, student_id: str) -> None:
    """A student may only read their own records"""
    if principal.is_student and principal.id != str(student_id):
        raise AuthorizationError("Access denied")


def ensure_self_or_admin(principal: Principal, student_id: str) -> None:
    """Only the student themself or an admin may change a student's records"""
    if principal.is_admin:
        return
    if principal.is_student and principal.id == str(student_id):
        return
    raise AuthorizationError("Access denied")
