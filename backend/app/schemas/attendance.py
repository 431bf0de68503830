from pydantic import Field
from typing import Optional, List, Dict
from datetime import date, datetime

from app.models.attendance import AttendanceStatus, ClassType
from app.schemas.common import CamelModel, StudentBrief, CourseBrief, FacultyBrief


class AttendanceCreate(CamelModel):
    student_id: str
    course_id: str
    date: date
    class_type: ClassType = ClassType.LECTURE
    status: AttendanceStatus
    duration: int = Field(default=60, ge=1, le=480)
    remarks: Optional[str] = None


class AttendanceEntry(CamelModel):
    student_id: str
    status: AttendanceStatus
    remarks: Optional[str] = None


class AttendanceBulkCreate(CamelModel):
    """One class session: every entry shares course, date and class type"""
    course_id: str
    date: date
    class_type: ClassType = ClassType.LECTURE
    duration: int = Field(default=60, ge=1, le=480)
    records: List[AttendanceEntry] = Field(..., min_length=1)


class AttendanceUpdate(CamelModel):
    status: Optional[AttendanceStatus] = None
    duration: Optional[int] = Field(None, ge=1, le=480)
    remarks: Optional[str] = None


class AttendanceResponse(CamelModel):
    id: str
    student_id: str
    student: Optional[StudentBrief] = None
    course_id: str
    course: Optional[CourseBrief] = None
    date: date
    class_type: ClassType
    status: AttendanceStatus
    duration: Optional[int] = None
    remarks: Optional[str] = None
    marked_by_id: Optional[str] = None
    marked_by: Optional[FacultyBrief] = None
    marked_at: Optional[datetime] = None


class BulkAttendanceResult(CamelModel):
    message: str
    created: int
    skipped: List[str]
    records: List[AttendanceResponse]


class AttendanceSummary(CamelModel):
    student_id: str
    course_id: str
    total_classes: int
    present: int
    absent: int
    leave: int
    excused: int
    percentage: float


class AttendancePercentage(CamelModel):
    percentage: float
    total_classes: int
    present_count: int


class CourseAttendanceSummary(CamelModel):
    course: Optional[CourseBrief] = None
    total_classes: int
    present: int
    absent: int
    leave: int
    excused: int
    percentage: float


class StudentAttendanceOverview(CamelModel):
    student_id: str
    courses: List[CourseAttendanceSummary]
    overall_percentage: float


class StudentAttendanceRow(CamelModel):
    student: StudentBrief
    records: List[AttendanceResponse]
    total_classes: int
    percentage: float


class CourseAttendanceReport(CamelModel):
    course_id: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    total_records: int
    students: List[StudentAttendanceRow]


class AttendanceByDate(CamelModel):
    date: date
    records: List[AttendanceResponse]
    counts: Dict[str, int]


class StudentAttendanceSummary(CamelModel):
    student: StudentBrief
    total_classes: int
    present: int
    absent: int
    leave: int
    excused: int
    percentage: float


class CourseAttendanceSummaryReport(CamelModel):
    course: CourseBrief
    total_sessions: int
    students: List[StudentAttendanceSummary]


class CourseAttendanceByDate(CamelModel):
    course: CourseBrief
    attendance_by_date: List[AttendanceByDate]
