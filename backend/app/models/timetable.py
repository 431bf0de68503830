from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid
from app.models.attendance import ClassType


class DayOfWeek(str, enum.Enum):
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"


DAY_ORDER = {day: index for index, day in enumerate(DayOfWeek)}


class Timetable(Base):
    __tablename__ = "timetables"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    department_id = Column(GUID, ForeignKey("departments.id", ondelete="CASCADE"), nullable=False, index=True)
    course_id = Column(GUID, ForeignKey("courses.id", ondelete="SET NULL"), nullable=True)
    year = Column(Integer, nullable=False)
    semester = Column(Integer, nullable=False)
    day_of_week = Column(
        SQLEnum(DayOfWeek, values_callable=lambda e: [m.value for m in e]),
        nullable=False
    )
    start_time = Column(String(5), nullable=False)  # HH:MM
    end_time = Column(String(5), nullable=False)
    subject_name = Column(String(255), nullable=False)
    subject_code = Column(String(50), nullable=True)
    faculty_id = Column(GUID, ForeignKey("faculty.id", ondelete="SET NULL"), nullable=True)
    room_number = Column(String(50), nullable=True)
    class_type = Column(
        SQLEnum(ClassType, values_callable=lambda e: [m.value for m in e]),
        default=ClassType.LECTURE
    )
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    department = relationship("Department", lazy="selectin")
    course = relationship("Course", lazy="selectin")
    faculty = relationship("Faculty", lazy="selectin")

    def __repr__(self):
        return f"<Timetable {self.day_of_week} {self.start_time} {self.subject_name}>"
