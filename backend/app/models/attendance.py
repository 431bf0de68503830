from sqlalchemy import (
    Column, String, DateTime, Date, Integer, Text, ForeignKey, UniqueConstraint, Enum as SQLEnum
)
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class AttendanceStatus(str, enum.Enum):
    PRESENT = "Present"
    ABSENT = "Absent"
    LEAVE = "Leave"
    EXCUSED = "Excused"


class ClassType(str, enum.Enum):
    LECTURE = "Lecture"
    LAB = "Lab"
    TUTORIAL = "Tutorial"


class Attendance(Base):
    """At most one record per (student, course, date, class type)"""
    __tablename__ = "attendance"
    __table_args__ = (
        UniqueConstraint("student_id", "course_id", "date", "class_type", name="uq_attendance_slot"),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    student_id = Column(GUID, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    course_id = Column(GUID, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    class_type = Column(
        SQLEnum(ClassType, values_callable=lambda e: [m.value for m in e]),
        default=ClassType.LECTURE,
        nullable=False
    )
    status = Column(
        SQLEnum(AttendanceStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=False
    )
    duration = Column(Integer, default=60)  # minutes
    remarks = Column(Text, nullable=True)
    # Null when an admin marked the record
    marked_by_id = Column(GUID, ForeignKey("faculty.id", ondelete="SET NULL"), nullable=True)
    marked_at = Column(DateTime, default=datetime.utcnow)

    student = relationship("Student", lazy="selectin")
    course = relationship("Course", lazy="selectin")
    marked_by = relationship("Faculty", lazy="selectin")

    def __repr__(self):
        return f"<Attendance {self.date} {self.status}>"
