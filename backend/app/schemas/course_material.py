from pydantic import Field
from typing import Optional, List
from datetime import datetime

from app.models.course_material import MaterialType
from app.schemas.common import CamelModel, CourseBrief, FacultyBrief


class CourseMaterialUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    external_link: Optional[str] = None
    is_visible: Optional[bool] = None
    tags: Optional[List[str]] = None
    due_date: Optional[datetime] = None
    max_marks: Optional[int] = Field(None, ge=0)
    instructions: Optional[str] = None


class CourseMaterialResponse(CamelModel):
    id: str
    course_id: str
    course: Optional[CourseBrief] = None
    faculty_id: Optional[str] = None
    faculty: Optional[FacultyBrief] = None
    title: str
    description: Optional[str] = None
    type: MaterialType
    file_url: Optional[str] = None
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    external_link: Optional[str] = None
    is_visible: bool = True
    download_count: int = 0
    tags: Optional[List[str]] = []
    semester: Optional[int] = None
    year: Optional[int] = None
    due_date: Optional[datetime] = None
    max_marks: Optional[int] = None
    instructions: Optional[str] = None
    uploaded_at: Optional[datetime] = None
