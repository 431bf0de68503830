from sqlalchemy import (
    Column, String, DateTime, Integer, Float, Text, ForeignKey, UniqueConstraint, Enum as SQLEnum
)
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class AssessmentType(str, enum.Enum):
    QUIZ = "quiz"
    MIDTERM = "midterm"
    FINAL = "final"
    ASSIGNMENT = "assignment"
    PROJECT = "project"
    LAB = "lab"
    PRESENTATION = "presentation"


class GradeStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    FINALIZED = "finalized"


# Forward-only lifecycle; a status may only move to a later one
GRADE_STATUS_ORDER = {
    GradeStatus.DRAFT: 0,
    GradeStatus.PUBLISHED: 1,
    GradeStatus.FINALIZED: 2,
}


class Grade(Base):
    """
    One assessment score for a student in a course.

    letter grade and grade_points are derived from score / max_score
    whenever the score changes (see app.services.grading).
    """
    __tablename__ = "grades"
    __table_args__ = (
        UniqueConstraint(
            "student_id", "course_id", "assessment_type", "assessment_name",
            name="uq_grade_assessment"
        ),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    student_id = Column(GUID, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    course_id = Column(GUID, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    faculty_id = Column(GUID, ForeignKey("faculty.id", ondelete="SET NULL"), nullable=True)
    graded_by_id = Column(GUID, ForeignKey("faculty.id", ondelete="SET NULL"), nullable=True)

    assessment_type = Column(
        SQLEnum(AssessmentType, values_callable=lambda e: [m.value for m in e]),
        nullable=False
    )
    assessment_name = Column(String(255), nullable=False)  # e.g., "Quiz 1"
    score = Column(Float, nullable=False)
    max_score = Column(Float, nullable=False)
    weightage = Column(Float, nullable=False)  # percentage weight in final grade
    grade = Column(String(2), nullable=False)
    grade_points = Column(Float, nullable=False)
    remarks = Column(Text, nullable=True)
    submission_date = Column(DateTime, nullable=True)
    graded_date = Column(DateTime, default=datetime.utcnow, index=True)
    semester = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    status = Column(
        SQLEnum(GradeStatus, values_callable=lambda e: [m.value for m in e]),
        default=GradeStatus.DRAFT,
        index=True
    )

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    student = relationship("Student", lazy="selectin")
    course = relationship("Course", lazy="selectin")
    faculty = relationship("Faculty", foreign_keys=[faculty_id], lazy="selectin")
    graded_by = relationship("Faculty", foreign_keys=[graded_by_id], lazy="selectin")

    def __repr__(self):
        return f"<Grade {self.assessment_name} {self.grade}>"
