from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from typing import Optional, List

from app.core.database import get_db, get_or_404
from app.core.logging_config import logger
from app.models.course import Course, CourseStatus
from app.models.department import Department
from app.models.faculty import Faculty
from app.modules.auth import Principal, require_admin, require_student
from app.schemas.common import MessageResponse
from app.schemas.course import CourseCreate, CourseUpdate, CourseResponse, CourseDetailResponse
from app.schemas.student import EnrollmentResponse
from app.services import enrollment

router = APIRouter()


async def _check_references(db: AsyncSession, data: dict) -> None:
    if data.get("department_id"):
        await get_or_404(db, Department, data["department_id"], "Department")
    if data.get("faculty_id"):
        await get_or_404(db, Faculty, data["faculty_id"], "Faculty")


async def _ensure_code_free(db: AsyncSession, course_code: str, exclude_id: Optional[str] = None) -> None:
    query = select(Course.id).where(Course.course_code == course_code)
    if exclude_id:
        query = query.where(Course.id != exclude_id)
    if (await db.execute(query)).scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Course with this code already exists"
        )


@router.get("", response_model=List[CourseResponse])
async def list_courses(
    department: Optional[str] = Query(None, description="Department id"),
    semester: Optional[int] = None,
    year: Optional[int] = None,
    status_filter: Optional[CourseStatus] = Query(None, alias="status"),
    faculty: Optional[str] = Query(None, description="Faculty id"),
    db: AsyncSession = Depends(get_db)
):
    """Public course catalogue"""
    query = select(Course)
    if department:
        query = query.where(Course.department_id == department)
    if semester is not None:
        query = query.where(Course.semester == semester)
    if year is not None:
        query = query.where(Course.year == year)
    if status_filter:
        query = query.where(Course.status == status_filter)
    if faculty:
        query = query.where(Course.faculty_id == faculty)

    result = await db.execute(query.order_by(Course.course_code))
    return result.scalars().all()


@router.get("/{course_id}", response_model=CourseResponse)
async def get_course(
    course_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student)
):
    return await get_or_404(db, Course, course_id, "Course")


@router.get("/{course_id}/details", response_model=CourseDetailResponse)
async def get_course_details(
    course_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student)
):
    """Course with its roster expanded"""
    return await get_or_404(db, Course, course_id, "Course", selectinload(Course.enrolled_students))


@router.post("", response_model=CourseResponse, status_code=status.HTTP_201_CREATED)
async def create_course(
    data: CourseCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    fields = data.model_dump()
    await _ensure_code_free(db, data.course_code)
    await _check_references(db, fields)

    course = Course(**fields)
    db.add(course)
    await db.commit()

    logger.info(f"[Courses] {principal.email} created {course.course_code}")
    return await get_or_404(db, Course, course.id, "Course")


@router.put("/{course_id}", response_model=CourseResponse)
async def update_course(
    course_id: str,
    data: CourseUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    course = await get_or_404(db, Course, course_id, "Course")
    fields = data.model_dump(exclude_unset=True)
    if fields.get("course_code"):
        await _ensure_code_free(db, fields["course_code"], exclude_id=course.id)
    await _check_references(db, fields)

    if "max_students" in fields:
        current = await enrollment.enrolled_count(db, course.id)
        if fields["max_students"] < current:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Capacity cannot be lower than the {current} enrolled students"
            )

    for field, value in fields.items():
        setattr(course, field, value)
    await db.commit()

    return await get_or_404(db, Course, course_id, "Course")


@router.delete("/{course_id}", response_model=MessageResponse)
async def delete_course(
    course_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    course = await get_or_404(db, Course, course_id, "Course", selectinload(Course.enrollments))
    await db.delete(course)
    await db.commit()

    logger.info(f"[Courses] {principal.email} deleted {course.course_code}")
    return {"message": "Course deleted successfully"}


@router.post("/{course_id}/enroll/{student_id}", response_model=EnrollmentResponse)
async def enroll_student(
    course_id: str,
    student_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    count = await enrollment.enroll(db, student_id, course_id)
    await db.commit()
    return {
        "message": "Student enrolled successfully",
        "student_id": student_id,
        "course_id": course_id,
        "enrolled_count": count,
    }


@router.post("/{course_id}/unenroll/{student_id}", response_model=EnrollmentResponse)
async def unenroll_student(
    course_id: str,
    student_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    count = await enrollment.unenroll(db, student_id, course_id)
    await db.commit()
    return {
        "message": "Student unenrolled successfully",
        "student_id": student_id,
        "course_id": course_id,
        "enrolled_count": count,
    }
