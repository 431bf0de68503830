from sqlalchemy import (
    Column, String, DateTime, Integer, Text, ForeignKey, JSON, UniqueConstraint, Enum as SQLEnum
)
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class CourseStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    CANCELLED = "cancelled"


class Course(Base):
    """
    A course offering.

    Capacity: the number of rows in `enrollments` for a course never
    exceeds max_students. Both sides of the enrollment relation are read
    from the same join table, so they cannot drift apart.
    """
    __tablename__ = "courses"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    course_code = Column(String(50), unique=True, nullable=False, index=True)
    course_name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    department_id = Column(GUID, ForeignKey("departments.id", ondelete="SET NULL"), nullable=True, index=True)
    credits = Column(Integer, nullable=False)
    semester = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    faculty_id = Column(GUID, ForeignKey("faculty.id", ondelete="SET NULL"), nullable=True, index=True)
    max_students = Column(Integer, nullable=False, default=50)
    prerequisites = Column(JSON, default=list)  # course codes

    # Weekly schedule
    schedule_days = Column(JSON, default=list)
    start_time = Column(String(5), nullable=True)  # "09:00"
    end_time = Column(String(5), nullable=True)
    classroom = Column(String(100), nullable=True)

    status = Column(
        SQLEnum(CourseStatus, values_callable=lambda e: [m.value for m in e]),
        default=CourseStatus.ACTIVE
    )
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    department = relationship("Department", lazy="selectin")
    faculty = relationship("Faculty", back_populates="courses", lazy="selectin")
    enrollments = relationship("Enrollment", back_populates="course", cascade="all, delete-orphan")
    enrolled_students = relationship(
        "Student",
        secondary="enrollments",
        back_populates="enrolled_courses",
        viewonly=True,
    )

    def __repr__(self):
        return f"<Course {self.course_code}>"


class Enrollment(Base):
    """Student ↔ course membership"""
    __tablename__ = "enrollments"
    __table_args__ = (
        UniqueConstraint("student_id", "course_id", name="uq_enrollment_student_course"),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    student_id = Column(GUID, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    course_id = Column(GUID, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    enrolled_at = Column(DateTime, default=datetime.utcnow)

    course = relationship("Course", back_populates="enrollments")
    student = relationship("Student")
