from sqlalchemy import (
    Column, String, Boolean, DateTime, Integer, Text, ForeignKey, JSON, UniqueConstraint, Enum as SQLEnum
)
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class MaterialType(str, enum.Enum):
    DOCUMENT = "document"
    PRESENTATION = "presentation"
    VIDEO = "video"
    LINK = "link"
    ASSIGNMENT = "assignment"
    QUIZ = "quiz"
    OTHER = "other"


class CourseMaterial(Base):
    """File or link published to a course by its faculty"""
    __tablename__ = "course_materials"
    __table_args__ = (
        UniqueConstraint("course_id", "title", "type", name="uq_course_material"),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    course_id = Column(GUID, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    faculty_id = Column(GUID, ForeignKey("faculty.id", ondelete="SET NULL"), nullable=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(
        SQLEnum(MaterialType, values_callable=lambda e: [m.value for m in e]),
        nullable=False
    )

    file_url = Column(Text, nullable=True)
    file_name = Column(String(255), nullable=True)
    file_size = Column(Integer, nullable=True)
    external_link = Column(Text, nullable=True)

    is_visible = Column(Boolean, default=True)
    download_count = Column(Integer, default=0)
    tags = Column(JSON, default=list)
    semester = Column(Integer, nullable=True)
    year = Column(Integer, nullable=True)
    due_date = Column(DateTime, nullable=True)
    max_marks = Column(Integer, nullable=True)
    instructions = Column(Text, nullable=True)

    uploaded_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    course = relationship("Course", lazy="selectin")
    faculty = relationship("Faculty", lazy="selectin")

    def __repr__(self):
        return f"<CourseMaterial {self.title}>"
