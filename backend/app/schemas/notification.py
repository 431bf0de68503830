from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from app.models.notification import NotificationCategory
from app.schemas.common import ORMModel


class NotificationCreate(BaseModel):
    # None broadcasts to every student
    student_id: Optional[str] = None
    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    category: NotificationCategory = NotificationCategory.GENERAL
    year: Optional[int] = Field(None, ge=1)
    semester: Optional[int] = Field(None, ge=1, le=12)


class NotificationUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    message: Optional[str] = Field(None, min_length=1)
    category: Optional[NotificationCategory] = None
    year: Optional[int] = Field(None, ge=1)
    semester: Optional[int] = Field(None, ge=1, le=12)
    is_read: Optional[bool] = None


class NotificationResponse(ORMModel):
    id: str
    student_id: Optional[str] = None
    title: str
    message: str
    category: NotificationCategory
    year: Optional[int] = None
    semester: Optional[int] = None
    is_read: bool = False
    is_broadcast: bool = False
    created_at: Optional[datetime] = None
