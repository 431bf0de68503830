from pydantic import BaseModel, EmailStr, Field
from typing import Any, Dict, Optional

from app.schemas.student import StudentResponse
from app.schemas.faculty import FacultyResponse


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str
    password: str = Field(..., min_length=6)


class AdminResponse(BaseModel):
    id: str
    username: str
    email: str
    full_name: Optional[str] = None
    role: str = "admin"

    model_config = {"from_attributes": True}


class AdminLoginResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    admin: AdminResponse


class FacultyLoginResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    faculty: FacultyResponse


class StudentLoginResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    student: StudentResponse


class MeResponse(BaseModel):
    role: str
    user: Dict[str, Any]
