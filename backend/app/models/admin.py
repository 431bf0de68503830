from sqlalchemy import Column, String, Boolean, DateTime
from datetime import datetime

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class Admin(Base):
    """Administrator account"""
    __tablename__ = "admins"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    username = Column(String(100), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=True)
    is_active = Column(Boolean, default=True)
    last_login = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def role(self) -> str:
        return "admin"

    def __repr__(self):
        return f"<Admin {self.username}>"
