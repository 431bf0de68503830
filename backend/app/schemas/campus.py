from pydantic import Field, model_validator
from typing import Optional
from datetime import date, datetime
from decimal import Decimal

from app.models.campus import ResourceType, ResourceStatus, InventoryStatus
from app.schemas.common import CamelModel, StudentBrief


# ==================== Resources ====================

class ResourceCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    type: ResourceType
    description: Optional[str] = None
    quantity: int = Field(default=1, ge=0)
    # Defaults to quantity
    available: Optional[int] = Field(None, ge=0)
    location: Optional[str] = None

    @model_validator(mode="after")
    def available_within_quantity(self):
        if self.available is not None and self.available > self.quantity:
            raise ValueError("Available count cannot exceed quantity")
        return self


class ResourceUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    type: Optional[ResourceType] = None
    description: Optional[str] = None
    quantity: Optional[int] = Field(None, ge=0)
    available: Optional[int] = Field(None, ge=0)
    location: Optional[str] = None
    status: Optional[ResourceStatus] = None


class ResourceAssign(CamelModel):
    student_id: str


class ResourceResponse(CamelModel):
    id: str
    name: str
    type: ResourceType
    description: Optional[str] = None
    quantity: int
    available: int
    location: Optional[str] = None
    status: ResourceStatus
    assigned_to_id: Optional[str] = None
    assigned_to: Optional[StudentBrief] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ==================== Inventory ====================

class InventoryCreate(CamelModel):
    item_name: str = Field(..., min_length=1, max_length=255)
    category: str = Field(..., min_length=1, max_length=100)
    quantity: int = Field(default=0, ge=0)
    supplier: Optional[str] = None
    purchase_date: Optional[date] = None
    expiry_date: Optional[date] = None
    cost: Decimal = Field(default=Decimal("0"), ge=0)
    location: Optional[str] = None
    status: Optional[InventoryStatus] = None


class InventoryUpdate(CamelModel):
    item_name: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    supplier: Optional[str] = None
    purchase_date: Optional[date] = None
    expiry_date: Optional[date] = None
    cost: Optional[Decimal] = Field(None, ge=0)
    location: Optional[str] = None
    status: Optional[InventoryStatus] = None


class QuantityUpdate(CamelModel):
    quantity: int = Field(..., ge=0)


class InventoryResponse(CamelModel):
    id: str
    item_name: str
    category: str
    quantity: int
    supplier: Optional[str] = None
    purchase_date: Optional[date] = None
    expiry_date: Optional[date] = None
    cost: float
    location: Optional[str] = None
    status: InventoryStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
