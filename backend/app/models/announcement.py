from sqlalchemy import (
    Column, String, Boolean, DateTime, Integer, Text, ForeignKey, UniqueConstraint, Enum as SQLEnum
)
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class AnnouncementCategory(str, enum.Enum):
    GENERAL = "General"
    ACADEMIC = "Academic"
    EVENTS = "Events"
    EMERGENCY = "Emergency"
    IMPORTANT = "Important"


class AnnouncementPriority(str, enum.Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class TargetAudience(str, enum.Enum):
    ALL = "All"
    SPECIFIC_YEAR = "Specific Year"
    SPECIFIC_SEMESTER = "Specific Semester"
    SPECIFIC_DEPARTMENT = "Specific Department"


PRIORITY_RANK = {
    AnnouncementPriority.CRITICAL: 4,
    AnnouncementPriority.HIGH: 3,
    AnnouncementPriority.MEDIUM: 2,
    AnnouncementPriority.LOW: 1,
}


class Announcement(Base):
    """
    Campus-wide or targeted announcement.

    Visibility to a student is evaluated at query time from the target_*
    columns and expires_at; nothing is materialized per student.
    """
    __tablename__ = "announcements"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    category = Column(
        SQLEnum(AnnouncementCategory, values_callable=lambda e: [m.value for m in e]),
        default=AnnouncementCategory.GENERAL
    )
    priority = Column(
        SQLEnum(AnnouncementPriority, values_callable=lambda e: [m.value for m in e]),
        default=AnnouncementPriority.MEDIUM
    )
    target_audience = Column(
        SQLEnum(TargetAudience, values_callable=lambda e: [m.value for m in e]),
        default=TargetAudience.ALL
    )
    target_year = Column(Integer, nullable=True)
    target_semester = Column(Integer, nullable=True)
    target_department = Column(String(255), nullable=True)  # department name, code or id
    created_by_id = Column(GUID, ForeignKey("admins.id", ondelete="SET NULL"), nullable=True)
    is_active = Column(Boolean, default=True, index=True)
    expires_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    created_by = relationship("Admin", lazy="selectin")

    def __repr__(self):
        return f"<Announcement {self.title}>"


class AnnouncementRead(Base):
    """Per-student read receipt for an announcement"""
    __tablename__ = "announcement_reads"
    __table_args__ = (
        UniqueConstraint("announcement_id", "student_id", name="uq_announcement_read"),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    announcement_id = Column(GUID, ForeignKey("announcements.id", ondelete="CASCADE"), nullable=False)
    student_id = Column(GUID, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    read_at = Column(DateTime, default=datetime.utcnow)
