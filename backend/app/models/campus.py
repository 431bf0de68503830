"""
Campus assets: shared resources that can be assigned to students,
and consumable inventory.
"""
from sqlalchemy import Column, String, DateTime, Date, Integer, Text, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
from decimal import Decimal
import enum

from app.core.database import Base
from app.core.types import GUID, Money, generate_uuid


class ResourceType(str, enum.Enum):
    EQUIPMENT = "equipment"
    LAB = "lab"
    STATIONERY = "stationery"


class ResourceStatus(str, enum.Enum):
    AVAILABLE = "available"
    IN_USE = "in_use"
    MAINTENANCE = "maintenance"


class InventoryStatus(str, enum.Enum):
    IN_STOCK = "in_stock"
    OUT_OF_STOCK = "out_of_stock"
    DAMAGED = "damaged"


class Resource(Base):
    """available never exceeds quantity"""
    __tablename__ = "resources"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    type = Column(
        SQLEnum(ResourceType, values_callable=lambda e: [m.value for m in e]),
        nullable=False
    )
    description = Column(Text, nullable=True)
    quantity = Column(Integer, nullable=False, default=1)
    available = Column(Integer, nullable=False, default=1)
    location = Column(String(255), nullable=True)
    status = Column(
        SQLEnum(ResourceStatus, values_callable=lambda e: [m.value for m in e]),
        default=ResourceStatus.AVAILABLE
    )
    assigned_to_id = Column(GUID, ForeignKey("students.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    assigned_to = relationship("Student", lazy="selectin")

    def __repr__(self):
        return f"<Resource {self.name}>"


class InventoryItem(Base):
    __tablename__ = "inventory_items"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    item_name = Column(String(255), nullable=False)
    category = Column(String(100), nullable=False, index=True)
    quantity = Column(Integer, nullable=False, default=0)
    supplier = Column(String(255), nullable=True)
    purchase_date = Column(Date, nullable=True)
    expiry_date = Column(Date, nullable=True)
    cost = Column(Money, nullable=False, default=Decimal("0.00"))
    location = Column(String(255), nullable=True)
    status = Column(
        SQLEnum(InventoryStatus, values_callable=lambda e: [m.value for m in e]),
        default=InventoryStatus.IN_STOCK
    )
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<InventoryItem {self.item_name}>"
