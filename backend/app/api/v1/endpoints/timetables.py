from fastapi import APIRouter, Depends, status, Query, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from starlette.background import BackgroundTask
from typing import Optional, List, Literal

from app.core.database import get_db, get_or_404
from app.core.logging_config import logger
from app.models.course import Course
from app.models.department import Department
from app.models.faculty import Faculty
from app.models.timetable import Timetable
from app.modules.auth import Principal, require_admin, require_student, ensure_self_or_staff
from app.schemas.common import MessageResponse
from app.schemas.timetable import TimetableCreate, TimetableResponse
from app.services import student_records
from app.services.registry import get_report_service
from app.services.report_service import ReportService

router = APIRouter()


async def _filtered(
    db: AsyncSession,
    department_id: Optional[str],
    year: Optional[int],
    semester: Optional[int],
    course_id: Optional[str] = None,
) -> List[Timetable]:
    query = select(Timetable)
    if department_id:
        query = query.where(Timetable.department_id == department_id)
    if year is not None:
        query = query.where(Timetable.year == year)
    if semester is not None:
        query = query.where(Timetable.semester == semester)
    if course_id:
        query = query.where(Timetable.course_id == course_id)
    result = await db.execute(query)
    return student_records.sort_timetable(result.scalars().all())


@router.post("", response_model=TimetableResponse, status_code=status.HTTP_201_CREATED)
async def create_entry(
    data: TimetableCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    await get_or_404(db, Department, data.department_id, "Department")
    if data.course_id:
        await get_or_404(db, Course, data.course_id, "Course")
    if data.faculty_id:
        await get_or_404(db, Faculty, data.faculty_id, "Faculty")

    entry = Timetable(**data.model_dump())
    db.add(entry)
    await db.commit()

    logger.info(f"[Timetable] {principal.email} added {entry.day_of_week.value} {entry.start_time} {entry.subject_name}")
    return await get_or_404(db, Timetable, entry.id, "Timetable entry")


@router.get("", response_model=List[TimetableResponse])
async def list_entries(
    department: Optional[str] = None,
    course: Optional[str] = None,
    year: Optional[int] = None,
    semester: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student)
):
    """Entries ordered Monday to Saturday, then by start time"""
    return await _filtered(db, department, year, semester, course)


@router.get("/student/{student_id}/timetable", response_model=List[TimetableResponse])
async def student_timetable(
    student_id: str,
    year: Optional[int] = None,
    semester: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student)
):
    ensure_self_or_staff(principal, student_id)
    student = await student_records.load_student(db, student_id)
    return await student_records.timetable_for(db, student, year, semester)


@router.get("/timetable/export/{export_format}")
@router.get("/export/{export_format}")
async def export_timetable(
    export_format: Literal["csv", "pdf"],
    department: Optional[str] = None,
    year: Optional[int] = None,
    semester: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student),
    reports: ReportService = Depends(get_report_service)
):
    """
    Export as CSV or PDF.

    A student's export defaults to their own department, year and semester.
    """
    if principal.is_student:
        student = principal.record
        department = department or (str(student.department_id) if student.department_id else None)
        year = year if year is not None else student.year
        semester = semester if semester is not None else student.semester

    entries = await _filtered(db, department, year, semester)

    if export_format == "csv":
        return Response(
            content=reports.timetable_csv(entries),
            media_type="text/csv",
            headers={"Content-Disposition": 'attachment; filename="timetable.csv"'},
        )

    path = await run_in_threadpool(reports.generate_timetable_pdf, entries)
    return FileResponse(
        path,
        media_type="application/pdf",
        filename="timetable.pdf",
        background=BackgroundTask(path.unlink, missing_ok=True),
    )


@router.delete("/{entry_id}", response_model=MessageResponse)
async def delete_entry(
    entry_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    entry = await get_or_404(db, Timetable, entry_id, "Timetable entry")
    await db.delete(entry)
    await db.commit()
    return {"message": "Timetable entry deleted successfully"}
