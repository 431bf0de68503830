from sqlalchemy import Column, String, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class Department(Base):
    """Academic department"""
    __tablename__ = "departments"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    code = Column(String(20), nullable=True)  # e.g., CSE
    description = Column(Text, nullable=True)
    head_of_department_id = Column(GUID, ForeignKey("faculty.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    head_of_department = relationship("Faculty", lazy="selectin")

    def __repr__(self):
        return f"<Department {self.code or self.name}>"
