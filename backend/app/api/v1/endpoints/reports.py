"""
Admin reports. Each run renders a plain-text summary and stores it, with
the filters used, as a Report row.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Optional, List

from app.core.database import get_db, get_or_404
from app.core.logging_config import logger
from app.models.campus import Resource, InventoryItem
from app.models.report import Report, ReportType
from app.models.student import Student
from app.modules.auth import Principal, require_admin
from app.schemas.common import MessageResponse
from app.schemas.report import ReportRequest, ReportFilters, ReportResponse
from app.services.registry import get_report_service
from app.services.report_service import ReportService

router = APIRouter()

REPORT_TITLES = {
    ReportType.STUDENT_REGISTRATION: "Student Registration Report",
    ReportType.RESOURCE_USAGE: "Resource Usage Report",
    ReportType.INVENTORY: "Inventory Report",
}


def _filters(request: Optional[ReportRequest]) -> ReportFilters:
    if request is None or request.filters is None:
        return ReportFilters()
    return request.filters


async def _store(
    db: AsyncSession,
    principal: Principal,
    report_type: ReportType,
    content: str,
    filters: ReportFilters,
) -> Report:
    report = Report(
        title=REPORT_TITLES[report_type],
        type=report_type,
        content=content,
        filters=filters.model_dump(mode="json", exclude_none=True, by_alias=True),
        generated_by_id=principal.id,
    )
    db.add(report)
    await db.commit()

    logger.info(f"[Reports] {principal.email} generated {report_type.value}")
    return await get_or_404(db, Report, report.id, "Report")


@router.get("", response_model=List[ReportResponse])
async def list_reports(
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    result = await db.execute(select(Report).order_by(Report.generated_at.desc()))
    return result.scalars().all()


@router.post("/student-registration", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
async def student_registration_report(
    request: Optional[ReportRequest] = None,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin),
    reports: ReportService = Depends(get_report_service)
):
    filters = _filters(request)
    query = select(Student)
    if filters.status:
        query = query.where(Student.registration_status == filters.status)
    if filters.department_id:
        query = query.where(Student.department_id == filters.department_id)
    students = (await db.execute(query.order_by(Student.full_name))).scalars().all()

    content = reports.student_registration_text(students)
    return await _store(db, principal, ReportType.STUDENT_REGISTRATION, content, filters)


@router.post("/resource-usage", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
async def resource_usage_report(
    request: Optional[ReportRequest] = None,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin),
    reports: ReportService = Depends(get_report_service)
):
    filters = _filters(request)
    query = select(Resource)
    if filters.resource_type:
        query = query.where(Resource.type == filters.resource_type)
    if filters.resource_status:
        query = query.where(Resource.status == filters.resource_status)
    resources = (await db.execute(query.order_by(Resource.name))).scalars().all()

    content = reports.resource_usage_text(resources)
    return await _store(db, principal, ReportType.RESOURCE_USAGE, content, filters)


@router.post("/inventory", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
async def inventory_report(
    request: Optional[ReportRequest] = None,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin),
    reports: ReportService = Depends(get_report_service)
):
    filters = _filters(request)
    query = select(InventoryItem)
    if filters.category:
        query = query.where(InventoryItem.category == filters.category)
    if filters.inventory_status:
        query = query.where(InventoryItem.status == filters.inventory_status)
    items = (await db.execute(query.order_by(InventoryItem.item_name))).scalars().all()

    content = reports.inventory_text(items)
    return await _store(db, principal, ReportType.INVENTORY, content, filters)


@router.delete("/{report_id}", response_model=MessageResponse)
async def delete_report(
    report_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    report = await get_or_404(db, Report, report_id, "Report")
    await db.delete(report)
    await db.commit()
    return {"message": "Report deleted successfully"}
