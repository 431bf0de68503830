from pydantic import Field, model_validator
from typing import Optional
from datetime import datetime

from app.models.announcement import AnnouncementCategory, AnnouncementPriority, TargetAudience
from app.schemas.common import CamelModel, AdminBrief


class AnnouncementCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    category: AnnouncementCategory = AnnouncementCategory.GENERAL
    priority: AnnouncementPriority = AnnouncementPriority.MEDIUM
    target_audience: TargetAudience = TargetAudience.ALL
    target_year: Optional[int] = Field(None, ge=1)
    target_semester: Optional[int] = Field(None, ge=1, le=12)
    target_department: Optional[str] = None
    expires_at: Optional[datetime] = None
    is_active: bool = True

    @model_validator(mode="after")
    def target_present(self):
        required = {
            TargetAudience.SPECIFIC_YEAR: ("target_year", self.target_year),
            TargetAudience.SPECIFIC_SEMESTER: ("target_semester", self.target_semester),
            TargetAudience.SPECIFIC_DEPARTMENT: ("target_department", self.target_department),
        }.get(self.target_audience)
        if required and required[1] in (None, ""):
            raise ValueError(f"{required[0]} is required for audience '{self.target_audience.value}'")
        return self


class AnnouncementUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    message: Optional[str] = Field(None, min_length=1)
    category: Optional[AnnouncementCategory] = None
    priority: Optional[AnnouncementPriority] = None
    target_audience: Optional[TargetAudience] = None
    target_year: Optional[int] = Field(None, ge=1)
    target_semester: Optional[int] = Field(None, ge=1, le=12)
    target_department: Optional[str] = None
    expires_at: Optional[datetime] = None
    is_active: Optional[bool] = None


class AnnouncementResponse(CamelModel):
    id: str
    title: str
    message: str
    category: AnnouncementCategory
    priority: AnnouncementPriority
    target_audience: TargetAudience
    target_year: Optional[int] = None
    target_semester: Optional[int] = None
    target_department: Optional[str] = None
    expires_at: Optional[datetime] = None
    is_active: bool
    created_by: Optional[AdminBrief] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class StudentAnnouncementResponse(AnnouncementResponse):
    is_read: bool = False
