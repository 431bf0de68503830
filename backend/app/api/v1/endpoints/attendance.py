from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from datetime import date
from typing import Optional, List

from app.core.database import get_db, get_or_404, get_many
from app.core.logging_config import logger
from app.models.attendance import Attendance, AttendanceStatus, ClassType
from app.models.course import Course
from app.modules.auth import Principal, require_faculty, require_student, ensure_course_owner, ensure_self_or_staff
from app.schemas.common import MessageResponse
from app.schemas.attendance import (
    AttendanceCreate,
    AttendanceBulkCreate,
    AttendanceUpdate,
    AttendanceResponse,
    AttendanceSummary,
    BulkAttendanceResult,
    CourseAttendanceReport,
    StudentAttendanceOverview,
)
from app.services import attendance_register, student_records

router = APIRouter()


@router.get("", response_model=List[AttendanceResponse])
async def list_attendance(
    student: Optional[str] = None,
    course: Optional[str] = None,
    status_filter: Optional[AttendanceStatus] = Query(None, alias="status"),
    class_type: Optional[ClassType] = Query(None, alias="classType"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_faculty)
):
    query = select(Attendance)
    if student:
        query = query.where(Attendance.student_id == student)
    if course:
        query = query.where(Attendance.course_id == course)
    if status_filter:
        query = query.where(Attendance.status == status_filter)
    if class_type:
        query = query.where(Attendance.class_type == class_type)
    if start_date:
        query = query.where(Attendance.date >= start_date)
    if end_date:
        query = query.where(Attendance.date <= end_date)

    result = await db.execute(query.order_by(Attendance.date.desc(), Attendance.student_id))
    return result.scalars().all()


@router.get("/summary/student/{student_id}/course/{course_id}", response_model=AttendanceSummary)
async def student_course_summary(
    student_id: str,
    course_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student)
):
    """Attendance counts and percentage for one student in one course"""
    ensure_self_or_staff(principal, student_id)
    await get_or_404(db, Course, course_id, "Course")

    result = await db.execute(
        select(Attendance).where(Attendance.student_id == student_id, Attendance.course_id == course_id)
    )
    return {
        "student_id": student_id,
        "course_id": course_id,
        **student_records.summarize_attendance(result.scalars().all()),
    }


@router.get("/summary/student/{student_id}", response_model=StudentAttendanceOverview)
async def student_summary(
    student_id: str,
    year: Optional[int] = None,
    semester: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student)
):
    ensure_self_or_staff(principal, student_id)
    await student_records.load_student(db, student_id)
    return await student_records.attendance_overview(db, student_id, year, semester)


@router.get("/report/course/{course_id}", response_model=CourseAttendanceReport)
async def course_report(
    course_id: str,
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_faculty)
):
    """Per-student attendance for a course over an optional date range"""
    course = await get_or_404(db, Course, course_id, "Course")
    ensure_course_owner(principal, course, "view attendance")

    records = await attendance_register.course_records(db, course_id, start_date, end_date, ascending=True)
    return {
        "course_id": course_id,
        "start_date": start_date,
        "end_date": end_date,
        "total_records": len(records),
        "students": attendance_register.group_by_student(records),
    }


@router.get("/{attendance_id}", response_model=AttendanceResponse)
async def get_attendance(
    attendance_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student)
):
    record = await get_or_404(db, Attendance, attendance_id, "Attendance record")
    ensure_self_or_staff(principal, record.student_id)
    return record


@router.post("", response_model=AttendanceResponse, status_code=status.HTTP_201_CREATED)
async def mark_attendance(
    data: AttendanceCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_faculty)
):
    record = await attendance_register.mark(db, principal, data)
    await db.commit()
    return await get_or_404(db, Attendance, record.id, "Attendance record")


@router.post("/bulk", response_model=BulkAttendanceResult, status_code=status.HTTP_201_CREATED)
async def mark_attendance_bulk(
    data: AttendanceBulkCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_faculty)
):
    created, skipped = await attendance_register.mark_session(db, principal, data)
    await db.commit()
    return {
        "message": f"Attendance marked for {len(created)} student(s)",
        "created": len(created),
        "skipped": skipped,
        "records": await get_many(db, Attendance, [r.id for r in created]),
    }


@router.put("/{attendance_id}", response_model=AttendanceResponse)
async def update_attendance(
    attendance_id: str,
    data: AttendanceUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_faculty)
):
    record = await get_or_404(db, Attendance, attendance_id, "Attendance record")
    ensure_course_owner(principal, record.course, "modify attendance")

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(record, field, value)
    await db.commit()

    logger.info(f"[Attendance] {principal.email} updated record {attendance_id}")
    return await get_or_404(db, Attendance, attendance_id, "Attendance record")


@router.delete("/{attendance_id}", response_model=MessageResponse)
async def delete_attendance(
    attendance_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_faculty)
):
    record = await get_or_404(db, Attendance, attendance_id, "Attendance record")
    ensure_course_owner(principal, record.course, "modify attendance")

    await db.delete(record)
    await db.commit()
    return {"message": "Attendance record deleted successfully"}
