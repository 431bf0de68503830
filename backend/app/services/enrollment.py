"""
Course enrollment.

Membership lives in one join table, so the student's course list and the
course's roster are two reads of the same rows. Capacity is checked with the
course row locked, and the unique (student_id, course_id) constraint backs
up the duplicate check.
"""

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_or_404
from app.core.exceptions import CapacityExceededError, DuplicateRecordError, ValidationError
from app.core.logging_config import logger
from app.models.course import Course, CourseStatus, Enrollment
from app.models.student import Student


async def enrolled_count(db: AsyncSession, course_id: str) -> int:
    return await db.scalar(
        select(func.count(Enrollment.id)).where(Enrollment.course_id == str(course_id))
    ) or 0


async def find_enrollment(db: AsyncSession, student_id: str, course_id: str):
    result = await db.execute(
        select(Enrollment).where(
            Enrollment.student_id == str(student_id),
            Enrollment.course_id == str(course_id),
        )
    )
    return result.scalar_one_or_none()


async def is_enrolled(db: AsyncSession, student_id: str, course_id: str) -> bool:
    return await find_enrollment(db, student_id, course_id) is not None


async def enroll(db: AsyncSession, student_id: str, course_id: str) -> int:
    """
    Add a student to a course and return the new enrolled count.

    The caller commits.
    """
    await get_or_404(db, Student, student_id, "Student")
    course = await get_or_404(db, Course, course_id, "Course", for_update=True)

    if course.status != CourseStatus.ACTIVE:
        raise ValidationError("Course is not active")
    if await is_enrolled(db, student_id, course_id):
        raise DuplicateRecordError("Student already enrolled in this course")

    count = await enrolled_count(db, course_id)
    if count >= course.max_students:
        raise CapacityExceededError("Course is full")

    try:
        async with db.begin_nested():
            db.add(Enrollment(student_id=str(student_id), course_id=str(course_id)))
    except IntegrityError:
        raise DuplicateRecordError("Student already enrolled in this course")

    logger.info(f"[Enrollment] Student {student_id} enrolled in {course.course_code} ({count + 1}/{course.max_students})")
    return count + 1


async def unenroll(db: AsyncSession, student_id: str, course_id: str) -> int:
    """Remove a student from a course and return the new enrolled count"""
    await get_or_404(db, Student, student_id, "Student")
    course = await get_or_404(db, Course, course_id, "Course", for_update=True)

    enrollment = await find_enrollment(db, student_id, course_id)
    if enrollment is None:
        raise ValidationError("Student is not enrolled in this course")

    await db.delete(enrollment)
    await db.flush()

    logger.info(f"[Enrollment] Student {student_id} unenrolled from {course.course_code}")
    return await enrolled_count(db, course_id)
