# Re-export all models for convenient imports
from app.models.admin import Admin
from app.models.faculty import Faculty, FacultyStatus, Designation
from app.models.department import Department
from app.models.student import Student, RegistrationStatus, Gender
from app.models.student_document import StudentDocument
from app.models.course import Course, CourseStatus, Enrollment
from app.models.grade import Grade, GradeStatus, AssessmentType, GRADE_STATUS_ORDER
from app.models.attendance import Attendance, AttendanceStatus, ClassType
from app.models.fee import Fee, FeePayment, FeeStatus, PaymentStatus, fee_status_for
from app.models.notification import Notification, NotificationCategory
from app.models.announcement import (
    Announcement, AnnouncementRead, AnnouncementCategory, AnnouncementPriority,
    TargetAudience, PRIORITY_RANK
)
from app.models.course_material import CourseMaterial, MaterialType
from app.models.result import Result, ExamType, ResultStatus
from app.models.timetable import Timetable, DayOfWeek, DAY_ORDER
from app.models.campus import Resource, ResourceType, ResourceStatus, InventoryItem, InventoryStatus
from app.models.report import Report, ReportType

__all__ = [
    # Principals
    "Admin",
    "Faculty",
    "FacultyStatus",
    "Designation",
    "Student",
    "RegistrationStatus",
    "Gender",
    "StudentDocument",
    # Academics
    "Department",
    "Course",
    "CourseStatus",
    "Enrollment",
    "Grade",
    "GradeStatus",
    "AssessmentType",
    "GRADE_STATUS_ORDER",
    "Attendance",
    "AttendanceStatus",
    "ClassType",
    "CourseMaterial",
    "MaterialType",
    "Result",
    "ExamType",
    "ResultStatus",
    "Timetable",
    "DayOfWeek",
    "DAY_ORDER",
    # Fees
    "Fee",
    "FeePayment",
    "FeeStatus",
    "PaymentStatus",
    "fee_status_for",
    # Messaging
    "Notification",
    "NotificationCategory",
    "Announcement",
    "AnnouncementRead",
    "AnnouncementCategory",
    "AnnouncementPriority",
    "TargetAudience",
    "PRIORITY_RANK",
    # Campus
    "Resource",
    "ResourceType",
    "ResourceStatus",
    "InventoryItem",
    "InventoryStatus",
    "Report",
    "ReportType",
]
