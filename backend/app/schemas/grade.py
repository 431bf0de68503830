from pydantic import Field, model_validator
from typing import Optional, List, Dict
from datetime import datetime

from app.models.grade import AssessmentType, GradeStatus
from app.schemas.common import CamelModel, StudentBrief, CourseBrief, FacultyBrief


class GradeCreate(CamelModel):
    student_id: str
    course_id: str
    assessment_type: AssessmentType
    assessment_name: str = Field(..., min_length=1, max_length=255)
    score: float = Field(..., ge=0)
    max_score: float = Field(..., gt=0)
    weightage: float = Field(..., ge=0, le=100)
    remarks: Optional[str] = None
    submission_date: Optional[datetime] = None
    # Default to the course's semester/year when omitted
    semester: Optional[int] = Field(None, ge=1, le=12)
    year: Optional[int] = Field(None, ge=1)
    status: GradeStatus = GradeStatus.DRAFT

    @model_validator(mode="after")
    def score_within_max(self):
        if self.score > self.max_score:
            raise ValueError("Score cannot exceed maximum score")
        return self


class GradeBulkCreate(CamelModel):
    grades: List[GradeCreate] = Field(..., min_length=1)


class GradeUpdate(CamelModel):
    assessment_name: Optional[str] = Field(None, min_length=1, max_length=255)
    score: Optional[float] = Field(None, ge=0)
    max_score: Optional[float] = Field(None, gt=0)
    weightage: Optional[float] = Field(None, ge=0, le=100)
    remarks: Optional[str] = None
    submission_date: Optional[datetime] = None
    status: Optional[GradeStatus] = None


class GradeResponse(CamelModel):
    id: str
    student_id: str
    student: Optional[StudentBrief] = None
    course_id: str
    course: Optional[CourseBrief] = None
    faculty_id: Optional[str] = None
    faculty: Optional[FacultyBrief] = None
    assessment_type: AssessmentType
    assessment_name: str
    score: float
    max_score: float
    weightage: float
    grade: str
    grade_points: float
    remarks: Optional[str] = None
    submission_date: Optional[datetime] = None
    graded_date: Optional[datetime] = None
    semester: int
    year: int
    status: GradeStatus


class BulkGradeResult(CamelModel):
    created: List[GradeResponse]
    errors: List[Dict[str, str]]


class GPASummary(CamelModel):
    gpa: float
    total_credits: int
    finalized_grades: int


class StudentGradesResponse(CamelModel):
    grades: List[GradeResponse]
    summary: GPASummary


class CourseStudentGrades(CamelModel):
    student: StudentBrief
    grades: List[GradeResponse]
    average_percentage: float


class CourseGradeStats(CamelModel):
    course_id: str
    total_grades: int
    average_score_percentage: float
    highest_percentage: float
    lowest_percentage: float
    grade_distribution: Dict[str, int]
    status_counts: Dict[str, int]



class CourseGradesResponse(CamelModel):
    course: CourseBrief
    student_grades: List[CourseStudentGrades]
