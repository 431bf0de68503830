from sqlalchemy import Column, String, DateTime, Date, Integer, JSON, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class FacultyStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    ON_LEAVE = "on_leave"


class Designation(str, enum.Enum):
    PROFESSOR = "Professor"
    ASSOCIATE_PROFESSOR = "Associate Professor"
    ASSISTANT_PROFESSOR = "Assistant Professor"
    LECTURER = "Lecturer"
    INSTRUCTOR = "Instructor"


class Faculty(Base):
    """Teaching staff; a faculty member owns the courses assigned to them"""
    __tablename__ = "faculty"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    faculty_code = Column(String(50), unique=True, nullable=False)  # staff number, e.g. FAC001
    department = Column(String(255), nullable=False)
    designation = Column(
        SQLEnum(Designation, values_callable=lambda e: [m.value for m in e]),
        nullable=False
    )
    specialization = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)
    office_location = Column(String(255), nullable=True)
    qualifications = Column(JSON, default=list)
    experience = Column(Integer, default=0)  # years
    status = Column(
        SQLEnum(FacultyStatus, values_callable=lambda e: [m.value for m in e]),
        default=FacultyStatus.ACTIVE
    )
    joining_date = Column(Date, nullable=False)
    password_hash = Column(String(255), nullable=False)
    last_login = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships (collection; load explicitly with selectinload)
    courses = relationship("Course", back_populates="faculty")

    @property
    def role(self) -> str:
        return "faculty"

    def __repr__(self):
        return f"<Faculty {self.faculty_code}>"
