"""
Examination results, CGPA and the grade-sheet PDF.

total = internal + external; a result passes at PASS_PERCENTAGE of the
maximum. The letter grade is derived from the marks unless given.
"""
from fastapi import APIRouter, Depends, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from starlette.background import BackgroundTask
from typing import Optional

from app.core.database import get_db, get_or_404
from app.core.exceptions import DuplicateRecordError
from app.core.logging_config import logger
from app.models.result import Result, ResultStatus
from app.models.student import Student
from app.modules.auth import Principal, require_faculty, require_student, ensure_self_or_staff
from app.schemas.result import ResultCreate, ResultResponse, ResultListResponse, CGPAResponse
from app.services import student_records
from app.services.grading import PASS_PERCENTAGE, grade_for_score, percentage_of
from app.services.registry import Outbound, get_outbound, get_report_service
from app.services.report_service import ReportService

router = APIRouter()

DUPLICATE_RESULT = "Result already exists for this subject and exam"


def result_status(total_marks: float, max_marks: float) -> ResultStatus:
    if percentage_of(total_marks, max_marks) >= PASS_PERCENTAGE:
        return ResultStatus.PASS
    return ResultStatus.FAIL


@router.post("", response_model=ResultResponse, status_code=status.HTTP_201_CREATED)
async def create_result(
    data: ResultCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_faculty),
    outbound: Outbound = Depends(get_outbound)
):
    """Record a result and email it to the student"""
    student = await get_or_404(db, Student, data.student_id, "Student")

    existing = await db.execute(
        select(Result.id).where(
            Result.student_id == student.id,
            Result.subject_code == data.subject_code,
            Result.semester == data.semester,
            Result.year == data.year,
            Result.exam_type == data.exam_type,
        )
    )
    if existing.scalar_one_or_none():
        raise DuplicateRecordError(DUPLICATE_RESULT)

    total = data.internal_marks + data.external_marks
    result = Result(**data.model_dump(exclude={"grade"}), total_marks=total)
    result.grade = data.grade or grade_for_score(total, data.max_marks)[0]
    result.status = result_status(total, data.max_marks)
    db.add(result)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise DuplicateRecordError(DUPLICATE_RESULT)

    logger.info(f"[Results] {principal.email} recorded {result.subject_code} for {student.registration_id}")
    outbound.email("send_result_notification", student.email, student.full_name, {
        "subject_name": result.subject_name,
        "subject_code": result.subject_code,
        "exam_type": result.exam_type.value,
        "total_marks": result.total_marks,
        "max_marks": result.max_marks,
        "grade": result.grade,
        "status": result.status.value,
        "semester": result.semester,
    })
    return await get_or_404(db, Result, result.id, "Result")


@router.get("/student/{student_id}/results", response_model=ResultListResponse)
async def student_results(
    student_id: str,
    year: Optional[int] = None,
    semester: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student)
):
    ensure_self_or_staff(principal, student_id)
    await student_records.load_student(db, student_id)
    return {"data": await student_records.results_for(db, student_id, year, semester)}


@router.get("/student/{student_id}/results/{semester}", response_model=ResultListResponse)
async def student_semester_results(
    student_id: str,
    semester: int,
    year: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student)
):
    ensure_self_or_staff(principal, student_id)
    await student_records.load_student(db, student_id)
    return {"data": await student_records.results_for(db, student_id, year, semester)}


@router.get("/student/{student_id}/cgpa", response_model=CGPAResponse)
async def student_cgpa(
    student_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student)
):
    """SGPA per term and CGPA over every result, weighted by credits"""
    ensure_self_or_staff(principal, student_id)
    await student_records.load_student(db, student_id)
    results = await student_records.results_for(db, student_id)
    return student_records.cgpa_summary(student_id, results)


@router.get("/student/{student_id}/grade-sheet")
async def grade_sheet(
    student_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student),
    reports: ReportService = Depends(get_report_service)
):
    ensure_self_or_staff(principal, student_id)
    student = await student_records.load_student(db, student_id)
    results = sorted(
        await student_records.results_for(db, student_id),
        key=lambda r: (r.year, r.semester, r.subject_code),
    )
    summary = student_records.cgpa_summary(student_id, results)

    path = await run_in_threadpool(
        reports.generate_grade_sheet, student, results, summary["cgpa"], summary["total_credits"]
    )
    return FileResponse(
        path,
        media_type="application/pdf",
        filename=f"grade_sheet_{student.registration_id}.pdf",
        background=BackgroundTask(path.unlink, missing_ok=True),
    )
