from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func, or_
from sqlalchemy.orm import selectinload
from typing import Optional, List

from app.core.database import get_db, get_or_404
from app.core.logging_config import logger
from app.core.security import get_password_hash
from app.models.course import Course, Enrollment
from app.models.faculty import Faculty, FacultyStatus
from app.modules.auth import Principal, require_admin, require_student
from app.schemas.common import MessageResponse
from app.schemas.faculty import (
    FacultyCreate,
    FacultyUpdate,
    FacultyResponse,
    FacultyWithCourses,
    FacultyWorkload,
)

router = APIRouter()


async def _ensure_unique(db: AsyncSession, email: Optional[str], faculty_code: Optional[str],
                         exclude_id: Optional[str] = None) -> None:
    conditions = []
    if email:
        conditions.append(Faculty.email == email)
    if faculty_code:
        conditions.append(Faculty.faculty_code == faculty_code)
    if not conditions:
        return
    query = select(Faculty.id).where(or_(*conditions))
    if exclude_id:
        query = query.where(Faculty.id != exclude_id)
    if (await db.execute(query)).first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Faculty with this email or faculty code already exists"
        )


async def _with_courses(db: AsyncSession, faculty_id: str) -> Faculty:
    return await get_or_404(db, Faculty, faculty_id, "Faculty", selectinload(Faculty.courses))


@router.get("", response_model=List[FacultyResponse])
async def list_faculty(
    department: Optional[str] = None,
    status_filter: Optional[FacultyStatus] = Query(None, alias="status"),
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    query = select(Faculty)
    if department:
        query = query.where(Faculty.department == department)
    if status_filter:
        query = query.where(Faculty.status == status_filter)
    if search:
        term = f"%{search}%"
        query = query.where(or_(Faculty.name.ilike(term), Faculty.email.ilike(term), Faculty.faculty_code.ilike(term)))

    result = await db.execute(query.order_by(Faculty.name))
    return result.scalars().all()


@router.get("/{faculty_id}", response_model=FacultyWithCourses)
async def get_faculty(
    faculty_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student)
):
    return await _with_courses(db, faculty_id)


@router.post("", response_model=FacultyResponse, status_code=status.HTTP_201_CREATED)
async def create_faculty(
    data: FacultyCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    await _ensure_unique(db, data.email, data.faculty_code)

    faculty = Faculty(
        **data.model_dump(exclude={"password"}),
        password_hash=get_password_hash(data.password),
    )
    db.add(faculty)
    await db.commit()
    await db.refresh(faculty)

    logger.info(f"[Faculty] {principal.email} created {faculty.faculty_code}")
    return faculty


@router.put("/{faculty_id}", response_model=FacultyResponse)
async def update_faculty(
    faculty_id: str,
    data: FacultyUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    faculty = await get_or_404(db, Faculty, faculty_id, "Faculty")
    fields = data.model_dump(exclude_unset=True)
    await _ensure_unique(db, fields.get("email"), fields.get("faculty_code"), exclude_id=faculty.id)

    password = fields.pop("password", None)
    if password:
        faculty.password_hash = get_password_hash(password)
    if fields.get("email"):
        fields["email"] = fields["email"].lower()

    for field, value in fields.items():
        setattr(faculty, field, value)
    await db.commit()
    await db.refresh(faculty)
    return faculty


@router.delete("/{faculty_id}", response_model=MessageResponse)
async def delete_faculty(
    faculty_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    """Delete a faculty member; their courses become unassigned"""
    faculty = await get_or_404(db, Faculty, faculty_id, "Faculty")

    await db.execute(update(Course).where(Course.faculty_id == faculty.id).values(faculty_id=None))
    await db.delete(faculty)
    await db.commit()

    logger.info(f"[Faculty] {principal.email} deleted {faculty.faculty_code}")
    return {"message": "Faculty deleted successfully"}


@router.post("/{faculty_id}/courses/{course_id}", response_model=FacultyWithCourses)
async def assign_course(
    faculty_id: str,
    course_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    faculty = await get_or_404(db, Faculty, faculty_id, "Faculty")
    course = await get_or_404(db, Course, course_id, "Course", for_update=True)

    if course.faculty_id is not None and course.faculty_id != faculty.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Course already assigned to another faculty"
        )

    course.faculty_id = faculty.id
    await db.commit()

    logger.info(f"[Faculty] {course.course_code} assigned to {faculty.faculty_code}")
    return await _with_courses(db, faculty_id)


@router.delete("/{faculty_id}/courses/{course_id}", response_model=FacultyWithCourses)
async def unassign_course(
    faculty_id: str,
    course_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    faculty = await get_or_404(db, Faculty, faculty_id, "Faculty")
    course = await get_or_404(db, Course, course_id, "Course", for_update=True)

    if course.faculty_id != faculty.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Course is not assigned to this faculty"
        )

    course.faculty_id = None
    await db.commit()

    logger.info(f"[Faculty] {course.course_code} removed from {faculty.faculty_code}")
    return await _with_courses(db, faculty_id)


@router.get("/{faculty_id}/workload", response_model=FacultyWorkload)
async def get_workload(
    faculty_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    """Assigned courses with their enrollment counts"""
    faculty = await _with_courses(db, faculty_id)

    counts = dict((await db.execute(
        select(Enrollment.course_id, func.count(Enrollment.id))
        .join(Course, Enrollment.course_id == Course.id)
        .where(Course.faculty_id == faculty.id)
        .group_by(Enrollment.course_id)
    )).all())

    courses = [
        {
            "id": course.id,
            "course_code": course.course_code,
            "course_name": course.course_name,
            "credits": course.credits,
            "enrolled_students": counts.get(course.id, 0),
        }
        for course in sorted(faculty.courses, key=lambda c: c.course_code)
    ]
    return {
        "faculty": faculty,
        "total_courses": len(courses),
        "total_students": sum(c["enrolled_students"] for c in courses),
        "total_credits": sum(c["credits"] for c in courses),
        "courses": courses,
    }
