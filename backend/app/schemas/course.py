from pydantic import Field, model_validator
from typing import Optional, List
from datetime import datetime

from app.models.course import CourseStatus
from app.schemas.common import CamelModel, StudentBrief, FacultyBrief, DepartmentBrief

_TIME_PATTERN = r'^([01]\d|2[0-3]):[0-5]\d$'


class CourseCreate(CamelModel):
    course_code: str = Field(..., min_length=2, max_length=50)
    course_name: str = Field(..., min_length=2, max_length=255)
    description: Optional[str] = None
    department_id: Optional[str] = None
    credits: int = Field(..., ge=1, le=10)
    semester: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=1, le=6)
    faculty_id: Optional[str] = None
    max_students: int = Field(default=50, ge=1)
    prerequisites: List[str] = []
    schedule_days: List[str] = []
    start_time: Optional[str] = Field(None, pattern=_TIME_PATTERN)
    end_time: Optional[str] = Field(None, pattern=_TIME_PATTERN)
    classroom: Optional[str] = None
    status: CourseStatus = CourseStatus.ACTIVE


class CourseUpdate(CamelModel):
    course_code: Optional[str] = Field(None, min_length=2, max_length=50)
    course_name: Optional[str] = Field(None, min_length=2, max_length=255)
    description: Optional[str] = None
    department_id: Optional[str] = None
    credits: Optional[int] = Field(None, ge=1, le=10)
    semester: Optional[int] = Field(None, ge=1, le=12)
    year: Optional[int] = Field(None, ge=1, le=6)
    faculty_id: Optional[str] = None
    max_students: Optional[int] = Field(None, ge=1)
    prerequisites: Optional[List[str]] = None
    schedule_days: Optional[List[str]] = None
    start_time: Optional[str] = Field(None, pattern=_TIME_PATTERN)
    end_time: Optional[str] = Field(None, pattern=_TIME_PATTERN)
    classroom: Optional[str] = None
    status: Optional[CourseStatus] = None


class CourseResponse(CamelModel):
    id: str
    course_code: str
    course_name: str
    description: Optional[str] = None
    department_id: Optional[str] = None
    department: Optional[DepartmentBrief] = None
    credits: int
    semester: int
    year: int
    faculty_id: Optional[str] = None
    faculty: Optional[FacultyBrief] = None
    max_students: int
    prerequisites: Optional[List[str]] = []
    schedule_days: Optional[List[str]] = []
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    classroom: Optional[str] = None
    status: CourseStatus
    created_at: Optional[datetime] = None


class CourseDetailResponse(CourseResponse):
    """Course with the enrolled students expanded"""
    enrolled_students: List[StudentBrief] = []
    enrolled_count: int = 0
    available_seats: int = 0

    @model_validator(mode="after")
    def count_seats(self):
        self.enrolled_count = len(self.enrolled_students)
        self.available_seats = max(self.max_students - self.enrolled_count, 0)
        return self
