"""
Attendance register shared by /attendance and /faculty-operations.

One record per (student, course, date, class type). The pre-insert check
gives the friendly message; the unique constraint settles concurrent
markers.
"""

from collections import defaultdict
from datetime import date
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_or_404
from app.core.exceptions import DuplicateRecordError, ValidationError
from app.core.logging_config import logger
from app.models.attendance import Attendance, ClassType
from app.models.course import Course
from app.models.student import Student
from app.modules.auth import Principal, ensure_course_owner
from app.schemas.attendance import AttendanceBulkCreate, AttendanceCreate
from app.services.enrollment import is_enrolled
from app.services.grading import attendance_counts
from app.services.student_records import summarize_attendance

ALREADY_MARKED = "Attendance already marked for this class"


async def _already_marked(db: AsyncSession, student_id: str, course_id: str, day: date, class_type: ClassType) -> bool:
    result = await db.execute(
        select(Attendance.id).where(
            Attendance.student_id == str(student_id),
            Attendance.course_id == str(course_id),
            Attendance.date == day,
            Attendance.class_type == class_type,
        )
    )
    return result.scalar_one_or_none() is not None


async def _insert(db: AsyncSession, record: Attendance) -> Attendance:
    """Insert in a savepoint; losing a race only discards this row"""
    try:
        async with db.begin_nested():
            db.add(record)
    except IntegrityError:
        raise DuplicateRecordError(ALREADY_MARKED)
    return record


def _marker_id(principal: Principal) -> Optional[str]:
    # admins are not faculty rows; their marks carry no marker
    return principal.id if principal.is_faculty else None


async def mark(db: AsyncSession, principal: Principal, data: AttendanceCreate) -> Attendance:
    course = await get_or_404(db, Course, data.course_id, "Course")
    ensure_course_owner(principal, course, "mark attendance")
    await get_or_404(db, Student, data.student_id, "Student")

    if not await is_enrolled(db, data.student_id, data.course_id):
        raise ValidationError("Student is not enrolled in this course")
    if await _already_marked(db, data.student_id, data.course_id, data.date, data.class_type):
        raise DuplicateRecordError(ALREADY_MARKED)

    return await _insert(db, Attendance(**data.model_dump(), marked_by_id=_marker_id(principal)))


async def mark_session(
    db: AsyncSession,
    principal: Principal,
    data: AttendanceBulkCreate,
) -> Tuple[List[Attendance], List[str]]:
    """
    Mark one class session.

    Students already marked for the slot, or not enrolled in the course,
    are skipped and returned in the second list.
    """
    course = await get_or_404(db, Course, data.course_id, "Course")
    ensure_course_owner(principal, course, "mark attendance")

    created: List[Attendance] = []
    skipped: List[str] = []
    seen = set()
    for entry in data.records:
        if entry.student_id in seen:
            skipped.append(entry.student_id)
            continue
        seen.add(entry.student_id)

        if (
            not await is_enrolled(db, entry.student_id, data.course_id)
            or await _already_marked(db, entry.student_id, data.course_id, data.date, data.class_type)
        ):
            skipped.append(entry.student_id)
            continue

        record = Attendance(
            student_id=entry.student_id,
            course_id=data.course_id,
            date=data.date,
            class_type=data.class_type,
            duration=data.duration,
            status=entry.status,
            remarks=entry.remarks,
            marked_by_id=_marker_id(principal),
        )
        try:
            created.append(await _insert(db, record))
        except DuplicateRecordError:
            skipped.append(entry.student_id)

    logger.info(
        f"[Attendance] {course.course_code} {data.date} {data.class_type.value}: "
        f"{len(created)} marked, {len(skipped)} skipped"
    )
    return created, skipped


async def course_records(
    db: AsyncSession,
    course_id: str,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    ascending: bool = False,
) -> List[Attendance]:
    query = select(Attendance).where(Attendance.course_id == str(course_id))
    if start_date:
        query = query.where(Attendance.date >= start_date)
    if end_date:
        query = query.where(Attendance.date <= end_date)
    order = Attendance.date.asc() if ascending else Attendance.date.desc()
    result = await db.execute(query.order_by(order, Attendance.student_id))
    return list(result.scalars().all())


def group_by_date(records: List[Attendance]) -> List[dict]:
    groups = defaultdict(list)
    for record in records:
        groups[record.date].append(record)
    return [
        {"date": day, "records": rows, "counts": attendance_counts(r.status for r in rows)}
        for day, rows in groups.items()
    ]


def group_by_student(records: List[Attendance]) -> List[dict]:
    """Insertion order is preserved, so rows follow the order of `records`"""
    groups = defaultdict(list)
    for record in records:
        groups[record.student_id].append(record)
    return [
        {
            "student": rows[0].student,
            "records": rows,
            "total_classes": len(rows),
            "percentage": summarize_attendance(rows)["percentage"],
        }
        for rows in groups.values()
    ]


def student_summaries(records: List[Attendance]) -> List[dict]:
    groups = defaultdict(list)
    for record in records:
        groups[record.student_id].append(record)
    rows = [
        {"student": items[0].student, **summarize_attendance(items)}
        for items in groups.values()
    ]
    rows.sort(key=lambda r: r["student"].full_name)
    return rows
