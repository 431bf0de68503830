# Pydantic schemas
from app.schemas.common import (
    CamelModel,
    ORMModel,
    MessageResponse,
    StudentBrief,
    FacultyBrief,
    CourseBrief,
    DepartmentBrief,
    AdminBrief,
)
