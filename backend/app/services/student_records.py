"""
Read models for one student's records.

Shared by /students/{id}/... and the per-entity routers that expose the
same views (/grades/student/{id}, /fees/student/{id}/fees, ...).
"""

from collections import defaultdict
from typing import List, Optional

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.database import get_or_404
from app.models.attendance import Attendance
from app.models.course import Course
from app.models.fee import Fee, FeePayment
from app.models.grade import Grade, GradeStatus
from app.models.notification import Notification
from app.models.result import Result
from app.models.student import Student
from app.models.timetable import Timetable, DAY_ORDER
from app.services.grading import (
    attendance_counts,
    attendance_percentage,
    calculate_gpa,
    weighted_gpa,
    points_for_letter,
)


async def load_student(db: AsyncSession, student_id: str, *options) -> Student:
    return await get_or_404(db, Student, student_id, "Student", *options)


async def enrolled_courses(
    db: AsyncSession,
    student: Student,
    year: Optional[int] = None,
    semester: Optional[int] = None,
) -> List[Course]:
    student = await load_student(db, student.id, selectinload(Student.enrolled_courses))
    courses = student.enrolled_courses
    if year is not None:
        courses = [c for c in courses if c.year == year]
    if semester is not None:
        courses = [c for c in courses if c.semester == semester]
    return sorted(courses, key=lambda c: c.course_code)


async def grades_with_summary(
    db: AsyncSession,
    student_id: str,
    year: Optional[int] = None,
    semester: Optional[int] = None,
) -> dict:
    query = select(Grade).where(Grade.student_id == str(student_id))
    if year is not None:
        query = query.where(Grade.year == year)
    if semester is not None:
        query = query.where(Grade.semester == semester)
    result = await db.execute(query.order_by(Grade.graded_date.desc()))
    grades = result.scalars().all()

    gpa, total_credits = calculate_gpa(grades)
    finalized = sum(1 for g in grades if g.status == GradeStatus.FINALIZED)
    return {
        "grades": grades,
        "summary": {"gpa": gpa, "total_credits": total_credits, "finalized_grades": finalized},
    }


def summarize_attendance(records) -> dict:
    statuses = [r.status for r in records]
    return {
        "total_classes": len(statuses),
        **attendance_counts(statuses),
        "percentage": attendance_percentage(statuses),
    }


async def attendance_overview(
    db: AsyncSession,
    student_id: str,
    year: Optional[int] = None,
    semester: Optional[int] = None,
) -> dict:
    """Per-course attendance for a student; year/semester filter by the course"""
    query = (
        select(Attendance)
        .join(Course, Attendance.course_id == Course.id)
        .where(Attendance.student_id == str(student_id))
    )
    if year is not None:
        query = query.where(Course.year == year)
    if semester is not None:
        query = query.where(Course.semester == semester)
    result = await db.execute(query.order_by(Attendance.date.desc()))
    records = result.scalars().all()

    by_course = defaultdict(list)
    for record in records:
        by_course[record.course_id].append(record)

    courses = [
        {"course": rows[0].course, **summarize_attendance(rows)}
        for rows in by_course.values()
    ]
    courses.sort(key=lambda c: c["course"].course_code if c["course"] else "")
    return {
        "student_id": str(student_id),
        "courses": courses,
        "overall_percentage": attendance_percentage([r.status for r in records]),
    }


async def fees_for(
    db: AsyncSession,
    student_id: str,
    year: Optional[int] = None,
    semester: Optional[int] = None,
) -> List[Fee]:
    query = select(Fee).where(Fee.student_id == str(student_id))
    if year is not None:
        query = query.where(Fee.year == year)
    if semester is not None:
        query = query.where(Fee.semester == semester)
    result = await db.execute(query.order_by(Fee.year.desc(), Fee.semester.desc()))
    return list(result.scalars().all())


async def fee_payments_for(db: AsyncSession, student_id: str) -> List[FeePayment]:
    result = await db.execute(
        select(FeePayment)
        .where(FeePayment.student_id == str(student_id))
        .order_by(FeePayment.payment_date.desc())
    )
    return list(result.scalars().all())


async def notifications_for(
    db: AsyncSession,
    student_id: str,
    year: Optional[int] = None,
    semester: Optional[int] = None,
) -> List[Notification]:
    """The student's own notifications plus broadcasts, newest first"""
    query = select(Notification).where(
        or_(Notification.student_id == str(student_id), Notification.student_id.is_(None))
    )
    if year is not None:
        query = query.where(Notification.year == year)
    if semester is not None:
        query = query.where(Notification.semester == semester)
    result = await db.execute(query.order_by(Notification.created_at.desc()))
    return list(result.scalars().all())


async def results_for(
    db: AsyncSession,
    student_id: str,
    year: Optional[int] = None,
    semester: Optional[int] = None,
) -> List[Result]:
    query = select(Result).where(Result.student_id == str(student_id))
    if year is not None:
        query = query.where(Result.year == year)
    if semester is not None:
        query = query.where(Result.semester == semester)
    result = await db.execute(
        query.order_by(Result.year.desc(), Result.semester.desc(), Result.subject_code)
    )
    return list(result.scalars().all())


def cgpa_summary(student_id: str, results: List[Result]) -> dict:
    """
    SGPA per (year, semester) and CGPA over all results, weighted by credits.

    Grade points come from the stored letter grade.
    """
    by_term = defaultdict(list)
    for r in results:
        by_term[(r.year, r.semester)].append((points_for_letter(r.grade), r.credits))

    semesters = []
    for (year, semester), entries in sorted(by_term.items()):
        sgpa, credits = weighted_gpa(entries)
        semesters.append({"year": year, "semester": semester, "sgpa": sgpa, "credits": credits})

    cgpa, total_credits = weighted_gpa(
        (points_for_letter(r.grade), r.credits) for r in results
    )
    return {
        "student_id": str(student_id),
        "cgpa": cgpa,
        "total_credits": total_credits,
        "semesters": semesters,
    }


def sort_timetable(entries) -> list:
    return sorted(entries, key=lambda e: (DAY_ORDER[e.day_of_week], e.start_time))


async def timetable_for(
    db: AsyncSession,
    student: Student,
    year: Optional[int] = None,
    semester: Optional[int] = None,
) -> list:
    """
    Class schedule for the student's department and programme.

    Defaults to the student's current year and semester. Entries without a
    course apply to every programme in the department.
    """
    if student.department_id is None:
        return []
    query = select(Timetable).where(
        Timetable.department_id == student.department_id,
        Timetable.year == (year if year is not None else student.year),
        Timetable.semester == (semester if semester is not None else student.semester),
    )
    if student.course_id is not None:
        query = query.where(
            or_(Timetable.course_id == student.course_id, Timetable.course_id.is_(None))
        )
    result = await db.execute(query)
    return sort_timetable(result.scalars().all())
