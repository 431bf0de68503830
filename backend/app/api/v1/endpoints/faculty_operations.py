"""
Faculty self-service: the signed-in faculty member's courses, rosters,
gradebook and attendance register. Every course-scoped route checks that
the caller teaches the course (admins pass).
"""
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from datetime import date
from typing import Optional, List

from app.core.database import get_db, get_or_404, get_many
from app.core.exceptions import AuthorizationError
from app.models.attendance import Attendance
from app.models.course import Course, Enrollment
from app.models.faculty import Faculty
from app.models.grade import Grade
from app.models.student import Student
from app.modules.auth import Principal, require_faculty, ensure_course_owner
from app.schemas.attendance import (
    AttendanceBulkCreate,
    BulkAttendanceResult,
    CourseAttendanceByDate,
    CourseAttendanceSummaryReport,
)
from app.schemas.course import CourseResponse
from app.schemas.faculty import FacultyWithCourses
from app.schemas.grade import (
    GradeCreate,
    GradeBulkCreate,
    GradeResponse,
    BulkGradeResult,
    CourseGradesResponse,
)
from app.schemas.student import StudentResponse, StudentWithCourses
from app.services import attendance_register, gradebook

router = APIRouter()


async def _owned_course(db: AsyncSession, principal: Principal, course_id: str, action: str) -> Course:
    course = await get_or_404(db, Course, course_id, "Course")
    ensure_course_owner(principal, course, action)
    return course


@router.get("/profile", response_model=FacultyWithCourses)
async def get_profile(
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_faculty)
):
    if not principal.is_faculty:
        raise AuthorizationError("Faculty account required")
    return await get_or_404(db, Faculty, principal.id, "Faculty", selectinload(Faculty.courses))


@router.get("/courses", response_model=List[CourseResponse])
async def my_courses(
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_faculty)
):
    """Courses taught by the caller; admins see every course"""
    query = select(Course)
    if principal.is_faculty:
        query = query.where(Course.faculty_id == principal.id)
    result = await db.execute(query.order_by(Course.course_code))
    return result.scalars().all()


@router.get("/courses/{course_id}/students", response_model=List[StudentResponse])
async def course_students(
    course_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_faculty)
):
    await _owned_course(db, principal, course_id, "view students")
    result = await db.execute(
        select(Student)
        .join(Enrollment, Enrollment.student_id == Student.id)
        .where(Enrollment.course_id == course_id)
        .order_by(Student.full_name)
    )
    return result.scalars().all()


@router.get("/students/{student_id}", response_model=StudentWithCourses)
async def student_details(
    student_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_faculty)
):
    """A student's profile, visible to faculty who teach one of their courses"""
    student = await get_or_404(db, Student, student_id, "Student", selectinload(Student.enrolled_courses))

    if principal.is_faculty and not any(
        c.faculty_id is not None and str(c.faculty_id) == principal.id for c in student.enrolled_courses
    ):
        raise AuthorizationError("You are not authorized to view this student's details")
    return student


# ==================== Grades ====================

@router.post("/grades", response_model=GradeResponse, status_code=status.HTTP_201_CREATED)
async def post_grade(
    data: GradeCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_faculty)
):
    grade = await gradebook.post_grade(db, principal, data)
    await db.commit()
    return await get_or_404(db, Grade, grade.id, "Grade")


@router.post("/grades/bulk", response_model=BulkGradeResult, status_code=status.HTTP_201_CREATED)
async def post_grades_bulk(
    data: GradeBulkCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_faculty)
):
    created, errors = await gradebook.post_grades_bulk(db, principal, data.grades)
    await db.commit()
    return {"created": await get_many(db, Grade, [g.id for g in created]), "errors": errors}


@router.get("/courses/{course_id}/grades", response_model=CourseGradesResponse)
async def course_grades(
    course_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_faculty)
):
    """Grades for a course grouped by student"""
    course = await _owned_course(db, principal, course_id, "view grades")
    grades = await gradebook.course_grades(db, course_id)
    return {"course": course, "student_grades": gradebook.group_by_student(grades)}


# ==================== Attendance ====================

@router.post("/attendance", response_model=BulkAttendanceResult, status_code=status.HTTP_201_CREATED)
async def mark_attendance(
    data: AttendanceBulkCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_faculty)
):
    """Mark one class session; students already marked are skipped"""
    created, skipped = await attendance_register.mark_session(db, principal, data)
    await db.commit()
    return {
        "message": f"Attendance marked for {len(created)} student(s)",
        "created": len(created),
        "skipped": skipped,
        "records": await get_many(db, Attendance, [r.id for r in created]),
    }


@router.get("/courses/{course_id}/attendance", response_model=CourseAttendanceByDate)
async def course_attendance(
    course_id: str,
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_faculty)
):
    """Attendance records grouped by date, newest first"""
    course = await _owned_course(db, principal, course_id, "view attendance")
    records = await attendance_register.course_records(db, course_id, start_date, end_date)
    return {"course": course, "attendance_by_date": attendance_register.group_by_date(records)}


@router.get("/courses/{course_id}/attendance-summary", response_model=CourseAttendanceSummaryReport)
async def course_attendance_summary(
    course_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_faculty)
):
    course = await _owned_course(db, principal, course_id, "view attendance")
    records = await attendance_register.course_records(db, course_id)
    return {
        "course": course,
        "total_sessions": len({(r.date, r.class_type) for r in records}),
        "students": attendance_register.student_summaries(records),
    }
