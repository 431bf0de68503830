from typing import Optional, Dict, Any
from datetime import datetime

from app.models.campus import ResourceStatus, ResourceType, InventoryStatus
from app.models.report import ReportType
from app.models.student import RegistrationStatus
from app.schemas.common import CamelModel, AdminBrief


class ReportFilters(CamelModel):
    """Every filter is optional; absent filters do not constrain the report"""
    status: Optional[RegistrationStatus] = None
    department_id: Optional[str] = None
    resource_type: Optional[ResourceType] = None
    resource_status: Optional[ResourceStatus] = None
    category: Optional[str] = None
    inventory_status: Optional[InventoryStatus] = None


class ReportRequest(CamelModel):
    filters: Optional[ReportFilters] = None


class ReportResponse(CamelModel):
    id: str
    title: str
    type: ReportType
    content: str
    filters: Optional[Dict[str, Any]] = None
    generated_by: Optional[AdminBrief] = None
    generated_at: Optional[datetime] = None
