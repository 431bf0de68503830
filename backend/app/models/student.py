from sqlalchemy import Column, String, Boolean, DateTime, Date, Integer, Float, Text, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class RegistrationStatus(str, enum.Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    GRADUATED = "Graduated"
    WITHDRAWN = "Withdrawn"


class Gender(str, enum.Enum):
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"


class Student(Base):
    """
    Student account and profile.

    registration_status gates login: only Approved students receive tokens.
    Course enrollments live in the `enrollments` join table; course_id here
    is the degree programme the student registered for.
    """
    __tablename__ = "students"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    registration_id = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)

    # Profile
    full_name = Column(String(255), nullable=False)
    phone_number = Column(String(20), nullable=False)
    date_of_birth = Column(Date, nullable=False)
    gender = Column(SQLEnum(Gender, values_callable=lambda e: [m.value for m in e]), nullable=False)
    address = Column(Text, nullable=False)
    city = Column(String(100), nullable=False)
    state = Column(String(100), nullable=False)
    pincode = Column(String(10), nullable=False)
    profile_photo = Column(Text, nullable=True)

    emergency_contact_name = Column(String(255), nullable=True)
    emergency_contact_relationship = Column(String(100), nullable=True)
    emergency_contact_phone = Column(String(20), nullable=True)

    # Academic placement
    department_id = Column(GUID, ForeignKey("departments.id", ondelete="SET NULL"), nullable=True, index=True)
    course_id = Column(GUID, ForeignKey("courses.id", ondelete="SET NULL"), nullable=True)
    year = Column(Integer, nullable=False)
    semester = Column(Integer, nullable=False)
    registration_status = Column(
        SQLEnum(RegistrationStatus, values_callable=lambda e: [m.value for m in e]),
        default=RegistrationStatus.PENDING,
        index=True
    )
    gpa = Column(Float, default=0.0)
    total_credits = Column(Integer, default=0)

    is_active = Column(Boolean, default=True)
    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    department = relationship("Department", lazy="selectin")
    program_course = relationship("Course", foreign_keys=[course_id], lazy="selectin")
    enrolled_courses = relationship(
        "Course",
        secondary="enrollments",
        back_populates="enrolled_students",
        viewonly=True,
    )
    documents = relationship("StudentDocument", back_populates="student", cascade="all, delete-orphan")

    @property
    def role(self) -> str:
        return "student"

    def __repr__(self):
        return f"<Student {self.registration_id}>"
