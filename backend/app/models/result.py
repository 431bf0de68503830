from sqlalchemy import (
    Column, String, DateTime, Integer, Float, ForeignKey, UniqueConstraint, Enum as SQLEnum
)
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class ExamType(str, enum.Enum):
    MID_TERM = "Mid-term"
    FINAL = "Final"


class ResultStatus(str, enum.Enum):
    PASS = "Pass"
    FAIL = "Fail"


class Result(Base):
    """Examination result per student, subject and exam"""
    __tablename__ = "results"
    __table_args__ = (
        UniqueConstraint(
            "student_id", "subject_code", "semester", "year", "exam_type",
            name="uq_result_subject_exam"
        ),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    student_id = Column(GUID, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    semester = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    exam_type = Column(
        SQLEnum(ExamType, values_callable=lambda e: [m.value for m in e]),
        nullable=False
    )
    subject_name = Column(String(255), nullable=False)
    subject_code = Column(String(50), nullable=False)
    internal_marks = Column(Float, default=0.0)
    external_marks = Column(Float, default=0.0)
    total_marks = Column(Float, default=0.0)
    max_marks = Column(Float, default=100.0)
    grade = Column(String(5), nullable=True)
    credits = Column(Integer, default=0)
    status = Column(
        SQLEnum(ResultStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=True
    )
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    student = relationship("Student", lazy="selectin")

    def __repr__(self):
        return f"<Result {self.subject_code} {self.grade}>"
