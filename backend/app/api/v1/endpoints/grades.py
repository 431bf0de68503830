from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Optional, List

from app.core.database import get_db, get_or_404, get_many
from app.core.logging_config import logger
from app.models.course import Course
from app.models.grade import Grade, GradeStatus, AssessmentType
from app.modules.auth import (
    Principal,
    require_faculty,
    require_student,
    ensure_course_owner,
    ensure_self_or_staff,
)
from app.schemas.common import MessageResponse
from app.schemas.grade import (
    GradeCreate,
    GradeBulkCreate,
    GradeUpdate,
    GradeResponse,
    BulkGradeResult,
    StudentGradesResponse,
    CourseGradesResponse,
    CourseGradeStats,
)
from app.services import gradebook, student_records

router = APIRouter()


@router.get("", response_model=List[GradeResponse])
async def list_grades(
    student: Optional[str] = None,
    course: Optional[str] = None,
    faculty: Optional[str] = None,
    assessment_type: Optional[AssessmentType] = Query(None, alias="assessmentType"),
    semester: Optional[int] = None,
    year: Optional[int] = None,
    status_filter: Optional[GradeStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_faculty)
):
    """Filterable grade list, most recently graded first"""
    query = select(Grade)
    if student:
        query = query.where(Grade.student_id == student)
    if course:
        query = query.where(Grade.course_id == course)
    if faculty:
        query = query.where(Grade.faculty_id == faculty)
    if assessment_type:
        query = query.where(Grade.assessment_type == assessment_type)
    if semester is not None:
        query = query.where(Grade.semester == semester)
    if year is not None:
        query = query.where(Grade.year == year)
    if status_filter:
        query = query.where(Grade.status == status_filter)

    result = await db.execute(query.order_by(Grade.graded_date.desc()))
    return result.scalars().all()


@router.get("/student/{student_id}", response_model=StudentGradesResponse)
async def student_grades(
    student_id: str,
    year: Optional[int] = None,
    semester: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student)
):
    """A student's grades with the GPA over finalized grades"""
    ensure_self_or_staff(principal, student_id)
    await student_records.load_student(db, student_id)
    return await student_records.grades_with_summary(db, student_id, year, semester)


@router.get("/course/{course_id}", response_model=CourseGradesResponse)
async def grades_for_course(
    course_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_faculty)
):
    course = await get_or_404(db, Course, course_id, "Course")
    ensure_course_owner(principal, course, "view grades")
    grades = await gradebook.course_grades(db, course_id)
    return {"course": course, "student_grades": gradebook.group_by_student(grades)}


@router.get("/stats/course/{course_id}", response_model=CourseGradeStats)
async def course_grade_stats(
    course_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_faculty)
):
    course = await get_or_404(db, Course, course_id, "Course")
    ensure_course_owner(principal, course, "view grades")
    return gradebook.course_stats(course_id, await gradebook.course_grades(db, course_id))


@router.get("/{grade_id}", response_model=GradeResponse)
async def get_grade(
    grade_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student)
):
    grade = await get_or_404(db, Grade, grade_id, "Grade")
    ensure_self_or_staff(principal, grade.student_id)
    return grade


@router.post("", response_model=GradeResponse, status_code=status.HTTP_201_CREATED)
async def create_grade(
    data: GradeCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_faculty)
):
    grade = await gradebook.post_grade(db, principal, data)
    await db.commit()

    logger.info(f"[Grades] {principal.email} posted {grade.assessment_name} for {grade.student_id}")
    return await get_or_404(db, Grade, grade.id, "Grade")


@router.post("/bulk", response_model=BulkGradeResult, status_code=status.HTTP_201_CREATED)
async def create_grades_bulk(
    data: GradeBulkCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_faculty)
):
    created, errors = await gradebook.post_grades_bulk(db, principal, data.grades)
    await db.commit()
    return {"created": await get_many(db, Grade, [g.id for g in created]), "errors": errors}


@router.put("/{grade_id}", response_model=GradeResponse)
async def update_grade(
    grade_id: str,
    data: GradeUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_faculty)
):
    grade = await get_or_404(db, Grade, grade_id, "Grade")
    await gradebook.update_grade(db, principal, grade, data)
    await db.commit()
    return await get_or_404(db, Grade, grade_id, "Grade")


@router.delete("/{grade_id}", response_model=MessageResponse)
async def delete_grade(
    grade_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_faculty)
):
    grade = await get_or_404(db, Grade, grade_id, "Grade")
    await gradebook.delete_grade(db, principal, grade)
    await db.commit()
    return {"message": "Grade deleted successfully"}


@router.put("/{grade_id}/publish", response_model=GradeResponse)
async def publish_grade(
    grade_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_faculty)
):
    grade = await get_or_404(db, Grade, grade_id, "Grade")
    await gradebook.set_status(db, principal, grade, GradeStatus.PUBLISHED)
    await db.commit()
    return await get_or_404(db, Grade, grade_id, "Grade")


@router.put("/{grade_id}/finalize", response_model=GradeResponse)
async def finalize_grade(
    grade_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_faculty)
):
    """Finalized grades count towards GPA and can no longer change"""
    grade = await get_or_404(db, Grade, grade_id, "Grade")
    await gradebook.set_status(db, principal, grade, GradeStatus.FINALIZED)
    await db.commit()
    return await get_or_404(db, Grade, grade_id, "Grade")
