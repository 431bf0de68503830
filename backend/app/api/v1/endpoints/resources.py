from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Optional, List

from app.core.database import get_db, get_or_404
from app.core.exceptions import ValidationError
from app.core.logging_config import logger
from app.models.campus import Resource, ResourceType, ResourceStatus
from app.models.student import Student
from app.modules.auth import Principal, require_admin, require_faculty
from app.schemas.common import MessageResponse
from app.schemas.campus import ResourceCreate, ResourceUpdate, ResourceAssign, ResourceResponse

router = APIRouter()


@router.get("", response_model=List[ResourceResponse])
async def list_resources(
    status_filter: Optional[ResourceStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_faculty)
):
    query = select(Resource)
    if status_filter:
        query = query.where(Resource.status == status_filter)
    result = await db.execute(query.order_by(Resource.name))
    return result.scalars().all()


@router.get("/type/{resource_type}", response_model=List[ResourceResponse])
async def resources_by_type(
    resource_type: ResourceType,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_faculty)
):
    result = await db.execute(
        select(Resource).where(Resource.type == resource_type).order_by(Resource.name)
    )
    return result.scalars().all()


@router.post("", response_model=ResourceResponse, status_code=status.HTTP_201_CREATED)
async def create_resource(
    data: ResourceCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    resource = Resource(**data.model_dump(exclude={"available"}))
    resource.available = data.quantity if data.available is None else data.available
    db.add(resource)
    await db.commit()

    logger.info(f"[Resources] {principal.email} added {resource.name}")
    return await get_or_404(db, Resource, resource.id, "Resource")


@router.patch("/{resource_id}/assign", response_model=ResourceResponse)
async def assign_resource(
    resource_id: str,
    data: ResourceAssign,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    """Hand a resource to a student; it must be available"""
    resource = await get_or_404(db, Resource, resource_id, "Resource", for_update=True)
    student = await get_or_404(db, Student, data.student_id, "Student")

    if resource.status != ResourceStatus.AVAILABLE or resource.available < 1:
        raise ValidationError("Resource is not available")

    resource.assigned_to_id = student.id
    resource.status = ResourceStatus.IN_USE
    resource.available -= 1
    await db.commit()

    logger.info(f"[Resources] {resource.name} assigned to {student.registration_id}")
    return await get_or_404(db, Resource, resource_id, "Resource")


@router.patch("/{resource_id}/return", response_model=ResourceResponse)
async def return_resource(
    resource_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    resource = await get_or_404(db, Resource, resource_id, "Resource", for_update=True)
    if resource.status != ResourceStatus.IN_USE:
        raise ValidationError("Resource is not in use")

    resource.assigned_to_id = None
    resource.status = ResourceStatus.AVAILABLE
    resource.available = min(resource.available + 1, resource.quantity)
    await db.commit()
    return await get_or_404(db, Resource, resource_id, "Resource")


@router.patch("/{resource_id}", response_model=ResourceResponse)
async def update_resource(
    resource_id: str,
    data: ResourceUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    resource = await get_or_404(db, Resource, resource_id, "Resource")
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(resource, field, value)

    if resource.available > resource.quantity:
        raise ValidationError("Available count cannot exceed quantity", field="available")
    await db.commit()
    return await get_or_404(db, Resource, resource_id, "Resource")


@router.delete("/{resource_id}", response_model=MessageResponse)
async def delete_resource(
    resource_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    resource = await get_or_404(db, Resource, resource_id, "Resource")
    await db.delete(resource)
    await db.commit()
    return {"message": "Resource deleted successfully"}
