from pydantic import BaseModel, Field, model_validator
from typing import Optional
from datetime import datetime

from app.models.attendance import ClassType
from app.models.timetable import DayOfWeek
from app.schemas.common import ORMModel, CourseBrief, FacultyBrief, DepartmentBrief

_TIME_PATTERN = r'^([01]\d|2[0-3]):[0-5]\d$'


class TimetableCreate(BaseModel):
    department_id: str
    course_id: Optional[str] = None
    year: int = Field(..., ge=1, le=6)
    semester: int = Field(..., ge=1, le=12)
    day_of_week: DayOfWeek
    start_time: str = Field(..., pattern=_TIME_PATTERN)
    end_time: str = Field(..., pattern=_TIME_PATTERN)
    subject_name: str = Field(..., min_length=1, max_length=255)
    subject_code: Optional[str] = None
    faculty_id: Optional[str] = None
    room_number: Optional[str] = None
    class_type: ClassType = ClassType.LECTURE

    @model_validator(mode="after")
    def ends_after_start(self):
        # zero-padded HH:MM compares correctly as text
        if self.end_time <= self.start_time:
            raise ValueError("End time must be after start time")
        return self


class TimetableResponse(ORMModel):
    id: str
    department_id: str
    department: Optional[DepartmentBrief] = None
    course_id: Optional[str] = None
    course: Optional[CourseBrief] = None
    year: int
    semester: int
    day_of_week: DayOfWeek
    start_time: str
    end_time: str
    subject_name: str
    subject_code: Optional[str] = None
    faculty_id: Optional[str] = None
    faculty: Optional[FacultyBrief] = None
    room_number: Optional[str] = None
    class_type: ClassType
    created_at: Optional[datetime] = None
