from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Optional, List

from app.core.database import get_db, get_or_404
from app.core.logging_config import logger
from app.models.campus import InventoryItem, InventoryStatus
from app.modules.auth import Principal, require_admin
from app.schemas.common import MessageResponse
from app.schemas.campus import InventoryCreate, InventoryUpdate, QuantityUpdate, InventoryResponse

router = APIRouter()


def status_for_quantity(quantity: int, current: Optional[InventoryStatus]) -> InventoryStatus:
    """Empty stock is out_of_stock; damaged items stay damaged while any remain"""
    if quantity <= 0:
        return InventoryStatus.OUT_OF_STOCK
    if current == InventoryStatus.DAMAGED:
        return InventoryStatus.DAMAGED
    return InventoryStatus.IN_STOCK


@router.get("", response_model=List[InventoryResponse])
async def list_inventory(
    status_filter: Optional[InventoryStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    query = select(InventoryItem)
    if status_filter:
        query = query.where(InventoryItem.status == status_filter)
    result = await db.execute(query.order_by(InventoryItem.item_name))
    return result.scalars().all()


@router.get("/category/{category}", response_model=List[InventoryResponse])
async def inventory_by_category(
    category: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    result = await db.execute(
        select(InventoryItem).where(InventoryItem.category == category).order_by(InventoryItem.item_name)
    )
    return result.scalars().all()


@router.post("", response_model=InventoryResponse, status_code=status.HTTP_201_CREATED)
async def create_item(
    data: InventoryCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    item = InventoryItem(**data.model_dump(exclude={"status"}))
    item.status = status_for_quantity(data.quantity, data.status)
    db.add(item)
    await db.commit()

    logger.info(f"[Inventory] {principal.email} added {item.item_name} x{item.quantity}")
    return await get_or_404(db, InventoryItem, item.id, "Inventory item")


@router.patch("/{item_id}", response_model=InventoryResponse)
async def update_item(
    item_id: str,
    data: InventoryUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    item = await get_or_404(db, InventoryItem, item_id, "Inventory item")
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(item, field, value)
    item.status = status_for_quantity(item.quantity, item.status)
    await db.commit()
    return await get_or_404(db, InventoryItem, item_id, "Inventory item")


@router.patch("/{item_id}/quantity", response_model=InventoryResponse)
async def update_quantity(
    item_id: str,
    data: QuantityUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    item = await get_or_404(db, InventoryItem, item_id, "Inventory item", for_update=True)
    item.quantity = data.quantity
    item.status = status_for_quantity(data.quantity, item.status)
    await db.commit()

    logger.info(f"[Inventory] {item.item_name} quantity set to {item.quantity} ({item.status.value})")
    return await get_or_404(db, InventoryItem, item_id, "Inventory item")


@router.delete("/{item_id}", response_model=MessageResponse)
async def delete_item(
    item_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    item = await get_or_404(db, InventoryItem, item_id, "Inventory item")
    await db.delete(item)
    await db.commit()
    return {"message": "Inventory item deleted successfully"}
