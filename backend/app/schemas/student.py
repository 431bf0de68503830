from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List, Dict
from datetime import date, datetime

from app.models.student import RegistrationStatus, Gender
from app.schemas.common import ORMModel, CourseBrief, DepartmentBrief


class StudentRegister(BaseModel):
    """Public self-registration; the account starts Pending"""
    email: EmailStr
    password: str = Field(..., min_length=6)
    full_name: str = Field(..., min_length=2, max_length=255)
    phone_number: str = Field(..., pattern=r'^\+?\d{10,15}$')
    date_of_birth: date
    gender: Gender
    address: str
    city: str
    state: str
    pincode: str = Field(..., pattern=r'^\d{6}$')

    department_id: Optional[str] = None
    course_id: Optional[str] = None
    year: int = Field(..., ge=1, le=6)
    semester: int = Field(..., ge=1, le=12)

    emergency_contact_name: Optional[str] = None
    emergency_contact_relationship: Optional[str] = None
    emergency_contact_phone: Optional[str] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class StudentCreate(StudentRegister):
    """Admin-created student; may be approved up front"""
    registration_status: RegistrationStatus = RegistrationStatus.PENDING


class StudentUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=2, max_length=255)
    phone_number: Optional[str] = Field(None, pattern=r'^\+?\d{10,15}$')
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = Field(None, pattern=r'^\d{6}$')
    department_id: Optional[str] = None
    course_id: Optional[str] = None
    year: Optional[int] = Field(None, ge=1, le=6)
    semester: Optional[int] = Field(None, ge=1, le=12)
    registration_status: Optional[RegistrationStatus] = None
    is_active: Optional[bool] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_relationship: Optional[str] = None
    emergency_contact_phone: Optional[str] = None


class StudentProfileUpdate(BaseModel):
    """Fields a student may change on their own profile"""
    phone_number: Optional[str] = Field(None, pattern=r'^\+?\d{10,15}$')
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = Field(None, pattern=r'^\d{6}$')
    profile_photo: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_relationship: Optional[str] = None
    emergency_contact_phone: Optional[str] = None


class RejectRequest(BaseModel):
    reason: Optional[str] = None


class StudentResponse(ORMModel):
    id: str
    registration_id: str
    email: str
    full_name: str
    phone_number: str
    date_of_birth: date
    gender: Gender
    address: str
    city: str
    state: str
    pincode: str
    profile_photo: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_relationship: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    department_id: Optional[str] = None
    department: Optional[DepartmentBrief] = None
    course_id: Optional[str] = None
    program_course: Optional[CourseBrief] = None
    year: int
    semester: int
    registration_status: RegistrationStatus
    gpa: Optional[float] = 0.0
    total_credits: Optional[int] = 0
    is_active: bool = True
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None


class StudentStatsOverview(BaseModel):
    total: int
    approved: int
    pending: int
    rejected: int
    graduated: int
    withdrawn: int
    departments: Dict[str, int]
    years: Dict[str, int]


class EnrollmentResponse(BaseModel):
    message: str
    student_id: str
    course_id: str
    enrolled_count: int


class StudentDocumentResponse(ORMModel):
    id: str
    student_id: str
    document_type: str
    file_name: str
    file_path: str
    file_size: Optional[int] = None
    uploaded_at: Optional[datetime] = None


class StudentCoursesResponse(BaseModel):
    student_id: str
    courses: List[CourseBrief]


class RegistrationResponse(BaseModel):
    message: str
    registration_id: str
    student: StudentResponse


class StudentWithCourses(StudentResponse):
    enrolled_courses: List[CourseBrief] = []
