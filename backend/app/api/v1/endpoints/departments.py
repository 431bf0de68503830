from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from typing import List

from app.core.database import get_db, get_or_404
from app.core.exceptions import DuplicateRecordError
from app.core.logging_config import logger
from app.models.department import Department
from app.models.faculty import Faculty
from app.modules.auth import Principal, require_admin
from app.schemas.common import MessageResponse
from app.schemas.department import DepartmentCreate, DepartmentUpdate, DepartmentResponse

router = APIRouter()


async def _ensure_unique(db: AsyncSession, name: str = None, code: str = None, exclude_id: str = None) -> None:
    conditions = []
    if name:
        conditions.append(Department.name == name)
    if code:
        conditions.append(Department.code == code)
    if not conditions:
        return
    query = select(Department.id).where(or_(*conditions))
    if exclude_id:
        query = query.where(Department.id != exclude_id)
    if (await db.execute(query)).first():
        raise DuplicateRecordError("Department with this name or code already exists")


@router.get("", response_model=List[DepartmentResponse])
async def list_departments(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Department).order_by(Department.name))
    return result.scalars().all()


@router.get("/{department_id}", response_model=DepartmentResponse)
async def get_department(department_id: str, db: AsyncSession = Depends(get_db)):
    return await get_or_404(db, Department, department_id, "Department")


@router.post("", response_model=DepartmentResponse, status_code=status.HTTP_201_CREATED)
async def create_department(
    data: DepartmentCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    await _ensure_unique(db, data.name, data.code)
    if data.head_of_department_id:
        await get_or_404(db, Faculty, data.head_of_department_id, "Faculty")

    department = Department(**data.model_dump())
    db.add(department)
    await db.commit()

    logger.info(f"[Departments] {principal.email} created {department.name}")
    return await get_or_404(db, Department, department.id, "Department")


@router.put("/{department_id}", response_model=DepartmentResponse)
async def update_department(
    department_id: str,
    data: DepartmentUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    department = await get_or_404(db, Department, department_id, "Department")
    fields = data.model_dump(exclude_unset=True)
    await _ensure_unique(db, fields.get("name"), fields.get("code"), exclude_id=department.id)
    if fields.get("head_of_department_id"):
        await get_or_404(db, Faculty, fields["head_of_department_id"], "Faculty")

    for field, value in fields.items():
        setattr(department, field, value)
    await db.commit()
    return await get_or_404(db, Department, department_id, "Department")


@router.delete("/{department_id}", response_model=MessageResponse)
async def delete_department(
    department_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    department = await get_or_404(db, Department, department_id, "Department")
    await db.delete(department)
    await db.commit()

    logger.info(f"[Departments] {principal.email} deleted {department.name}")
    return {"message": "Department deleted successfully"}
