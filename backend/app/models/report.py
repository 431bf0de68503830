from sqlalchemy import Column, String, DateTime, Text, ForeignKey, JSON, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class ReportType(str, enum.Enum):
    STUDENT_REGISTRATION = "student_registration"
    RESOURCE_USAGE = "resource_usage"
    INVENTORY = "inventory"


class Report(Base):
    """Stored output of an admin report run"""
    __tablename__ = "reports"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    title = Column(String(255), nullable=False)
    type = Column(
        SQLEnum(ReportType, values_callable=lambda e: [m.value for m in e]),
        nullable=False
    )
    content = Column(Text, nullable=False)
    filters = Column(JSON, default=dict)
    file_path = Column(String(500), nullable=True)
    generated_by_id = Column(GUID, ForeignKey("admins.id", ondelete="SET NULL"), nullable=True)
    generated_at = Column(DateTime, default=datetime.utcnow, index=True)

    generated_by = relationship("Admin", lazy="selectin")

    def __repr__(self):
        return f"<Report {self.type} {self.title}>"
