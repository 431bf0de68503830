from pydantic import Field
from typing import Optional
from datetime import datetime

from app.schemas.common import CamelModel, FacultyBrief


class DepartmentCreate(CamelModel):
    name: str = Field(..., min_length=2, max_length=255)
    code: Optional[str] = Field(None, max_length=20)
    description: Optional[str] = None
    head_of_department_id: Optional[str] = None


class DepartmentUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    code: Optional[str] = Field(None, max_length=20)
    description: Optional[str] = None
    head_of_department_id: Optional[str] = None


class DepartmentResponse(CamelModel):
    id: str
    name: str
    code: Optional[str] = None
    description: Optional[str] = None
    head_of_department_id: Optional[str] = None
    head_of_department: Optional[FacultyBrief] = None
    created_at: Optional[datetime] = None
