"""
Per-student attendance lookups under /attendances.

Read-only views over the register kept by /attendance; a student sees
only their own rows.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List, Optional

from app.core.database import get_db, get_or_404
from app.models.attendance import Attendance
from app.models.course import Course
from app.modules.auth import Principal, require_student, ensure_self_or_staff
from app.schemas.attendance import AttendancePercentage, AttendanceResponse
from app.services import student_records

router = APIRouter()


async def _records(db: AsyncSession, student_id: str, course_id: Optional[str] = None) -> List[Attendance]:
    query = select(Attendance).where(Attendance.student_id == student_id)
    if course_id is not None:
        query = query.where(Attendance.course_id == course_id)
    result = await db.execute(query.order_by(Attendance.date.desc(), Attendance.class_type))
    return list(result.scalars().all())


@router.get("/student/{student_id}/attendance", response_model=List[AttendanceResponse])
async def list_student_attendance(
    student_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student)
):
    ensure_self_or_staff(principal, student_id)
    await student_records.load_student(db, student_id)
    return await _records(db, student_id)


@router.get("/student/{student_id}/attendance/{course_id}", response_model=List[AttendanceResponse])
async def list_student_course_attendance(
    student_id: str,
    course_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student)
):
    ensure_self_or_staff(principal, student_id)
    await student_records.load_student(db, student_id)
    await get_or_404(db, Course, course_id, "Course")
    return await _records(db, student_id, course_id)


@router.get("/student/{student_id}/attendance-percentage", response_model=AttendancePercentage)
async def student_attendance_percentage(
    student_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student)
):
    """Overall percentage across every course; excused classes count as attended"""
    ensure_self_or_staff(principal, student_id)
    await student_records.load_student(db, student_id)
    summary = student_records.summarize_attendance(await _records(db, student_id))
    return {
        "percentage": summary["percentage"],
        "total_classes": summary["total_classes"],
        "present_count": summary["present"],
    }
