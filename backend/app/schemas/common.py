"""Shared base classes and the projections used when a reference is expanded"""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional

from app.models.faculty import Designation


class CamelModel(BaseModel):
    """Entities exposed with camelCase field names"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class ORMModel(BaseModel):
    """Entities exposed with snake_case field names"""
    model_config = ConfigDict(from_attributes=True)


class MessageResponse(BaseModel):
    message: str


# ==================== Expanded references ====================

class StudentBrief(ORMModel):
    id: str
    registration_id: str
    full_name: str
    email: str
    year: Optional[int] = None
    semester: Optional[int] = None


class FacultyBrief(CamelModel):
    id: str
    name: str
    email: str
    faculty_code: str
    department: Optional[str] = None
    designation: Optional[Designation] = None


class CourseBrief(CamelModel):
    id: str
    course_code: str
    course_name: str
    credits: Optional[int] = None
    semester: Optional[int] = None
    year: Optional[int] = None


class DepartmentBrief(CamelModel):
    id: str
    name: str
    code: Optional[str] = None


class AdminBrief(CamelModel):
    id: str
    username: str
    full_name: Optional[str] = None

