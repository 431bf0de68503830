from pydantic import BaseModel, Field, model_validator
from typing import Optional, List
from datetime import datetime

from app.models.result import ExamType, ResultStatus
from app.schemas.common import ORMModel


class ResultCreate(BaseModel):
    student_id: str
    semester: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=1)
    exam_type: ExamType = ExamType.FINAL
    subject_name: str = Field(..., min_length=1, max_length=255)
    subject_code: str = Field(..., min_length=1, max_length=50)
    internal_marks: float = Field(default=0.0, ge=0)
    external_marks: float = Field(default=0.0, ge=0)
    max_marks: float = Field(default=100.0, gt=0)
    credits: int = Field(default=0, ge=0)
    # Derived from the marks when omitted
    grade: Optional[str] = Field(None, max_length=5)

    @model_validator(mode="after")
    def total_within_max(self):
        if self.internal_marks + self.external_marks > self.max_marks:
            raise ValueError("Total marks cannot exceed maximum marks")
        return self


class ResultResponse(ORMModel):
    id: str
    student_id: str
    semester: int
    year: int
    exam_type: ExamType
    subject_name: str
    subject_code: str
    internal_marks: float
    external_marks: float
    total_marks: float
    max_marks: float
    grade: Optional[str] = None
    credits: int
    status: Optional[ResultStatus] = None
    created_at: Optional[datetime] = None


class SemesterGPA(BaseModel):
    year: int
    semester: int
    sgpa: float
    credits: int


class CGPAResponse(BaseModel):
    student_id: str
    cgpa: float
    total_credits: int
    semesters: List[SemesterGPA]


class ResultListResponse(BaseModel):
    data: List[ResultResponse]
