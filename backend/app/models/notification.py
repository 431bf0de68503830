from sqlalchemy import Column, String, Boolean, DateTime, Integer, Text, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class NotificationCategory(str, enum.Enum):
    ACADEMIC = "Academic"
    FEES = "Fees"
    EVENTS = "Events"
    GENERAL = "General"


class Notification(Base):
    """Message to one student, or to every student when student_id is NULL"""
    __tablename__ = "notifications"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    student_id = Column(GUID, ForeignKey("students.id", ondelete="CASCADE"), nullable=True, index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    category = Column(
        SQLEnum(NotificationCategory, values_callable=lambda e: [m.value for m in e]),
        nullable=False
    )
    year = Column(Integer, nullable=True)
    semester = Column(Integer, nullable=True)
    is_read = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    student = relationship("Student", lazy="selectin")

    @property
    def is_broadcast(self) -> bool:
        return self.student_id is None

    def __repr__(self):
        return f"<Notification {self.title}>"
