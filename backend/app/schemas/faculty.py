from pydantic import EmailStr, Field, field_validator
from typing import Optional, List
from datetime import date, datetime

from app.models.faculty import FacultyStatus, Designation
from app.schemas.common import CamelModel, CourseBrief


class FacultyCreate(CamelModel):
    name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6)
    faculty_code: str = Field(..., min_length=2, max_length=50)
    department: str
    designation: Designation
    specialization: Optional[str] = None
    phone: Optional[str] = None
    office_location: Optional[str] = None
    qualifications: List[str] = []
    experience: int = Field(default=0, ge=0)
    status: FacultyStatus = FacultyStatus.ACTIVE
    joining_date: date

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class FacultyUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6)
    faculty_code: Optional[str] = Field(None, min_length=2, max_length=50)
    department: Optional[str] = None
    designation: Optional[Designation] = None
    specialization: Optional[str] = None
    phone: Optional[str] = None
    office_location: Optional[str] = None
    qualifications: Optional[List[str]] = None
    experience: Optional[int] = Field(None, ge=0)
    status: Optional[FacultyStatus] = None
    joining_date: Optional[date] = None


class FacultyResponse(CamelModel):
    id: str
    name: str
    email: str
    faculty_code: str
    department: str
    designation: Designation
    specialization: Optional[str] = None
    phone: Optional[str] = None
    office_location: Optional[str] = None
    qualifications: Optional[List[str]] = []
    experience: Optional[int] = 0
    status: FacultyStatus
    joining_date: date
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None


class FacultyWithCourses(FacultyResponse):
    courses: List[CourseBrief] = []


class WorkloadCourse(CamelModel):
    id: str
    course_code: str
    course_name: str
    credits: int
    enrolled_students: int


class FacultyWorkload(CamelModel):
    faculty: FacultyResponse
    total_courses: int
    total_students: int
    total_credits: int
    courses: List[WorkloadCourse]
