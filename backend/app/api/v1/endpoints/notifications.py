from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Optional, List

from app.core.database import get_db, get_or_404
from app.core.exceptions import AuthorizationError
from app.core.logging_config import logger
from app.models.notification import Notification, NotificationCategory
from app.models.student import Student
from app.modules.auth import Principal, require_faculty, require_student, ensure_self_or_staff
from app.schemas.common import MessageResponse
from app.schemas.notification import NotificationCreate, NotificationUpdate, NotificationResponse
from app.services import student_records

router = APIRouter()


def _ensure_visible(principal: Principal, notification: Notification) -> None:
    """Broadcasts are visible to everyone; direct notifications to their student and staff"""
    if notification.is_broadcast or not principal.is_student:
        return
    if principal.id != str(notification.student_id):
        raise AuthorizationError("Access denied")


@router.get("", response_model=List[NotificationResponse])
async def list_notifications(
    student: Optional[str] = None,
    category: Optional[NotificationCategory] = None,
    broadcast: Optional[bool] = None,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_faculty)
):
    query = select(Notification)
    if student:
        query = query.where(Notification.student_id == student)
    if category:
        query = query.where(Notification.category == category)
    if broadcast is True:
        query = query.where(Notification.student_id.is_(None))
    elif broadcast is False:
        query = query.where(Notification.student_id.is_not(None))

    result = await db.execute(query.order_by(Notification.created_at.desc()))
    return result.scalars().all()


@router.get("/student/{student_id}/notifications", response_model=List[NotificationResponse])
async def student_notifications(
    student_id: str,
    year: Optional[int] = None,
    semester: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student)
):
    """The student's own notifications plus broadcasts, newest first"""
    ensure_self_or_staff(principal, student_id)
    await student_records.load_student(db, student_id)
    return await student_records.notifications_for(db, student_id, year, semester)


@router.get("/{notification_id}", response_model=NotificationResponse)
async def get_notification(
    notification_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student)
):
    notification = await get_or_404(db, Notification, notification_id, "Notification")
    _ensure_visible(principal, notification)
    return notification


@router.post("", response_model=NotificationResponse, status_code=status.HTTP_201_CREATED)
async def create_notification(
    data: NotificationCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_faculty)
):
    if data.student_id:
        await get_or_404(db, Student, data.student_id, "Student")

    notification = Notification(**data.model_dump())
    db.add(notification)
    await db.commit()

    target = data.student_id or "all students"
    logger.info(f"[Notifications] {principal.email} sent '{notification.title}' to {target}")
    return await get_or_404(db, Notification, notification.id, "Notification")


@router.put("/{notification_id}", response_model=NotificationResponse)
async def update_notification(
    notification_id: str,
    data: NotificationUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_faculty)
):
    notification = await get_or_404(db, Notification, notification_id, "Notification")
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(notification, field, value)
    await db.commit()
    return await get_or_404(db, Notification, notification_id, "Notification")


@router.delete("/notifications/{notification_id}", response_model=MessageResponse)
@router.delete("/{notification_id}", response_model=MessageResponse)
async def delete_notification(
    notification_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_faculty)
):
    notification = await get_or_404(db, Notification, notification_id, "Notification")
    await db.delete(notification)
    await db.commit()
    return {"message": "Notification deleted successfully"}


@router.put("/notifications/{notification_id}/read", response_model=NotificationResponse)
@router.put("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student)
):
    """Broadcasts carry a single read flag shared by every reader"""
    notification = await get_or_404(db, Notification, notification_id, "Notification")
    _ensure_visible(principal, notification)

    notification.is_read = True
    await db.commit()
    return await get_or_404(db, Notification, notification_id, "Notification")
