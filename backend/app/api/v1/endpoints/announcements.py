"""
Campus announcements.

Creating one stores it and then pushes a snapshot to every live WebSocket
subscriber through the outbound queue. Students see announcements that are
active, unexpired and targeted at them.
"""
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from sqlalchemy.exc import IntegrityError
from datetime import datetime
from typing import Optional, List

from app.core.database import get_db, get_or_404
from app.core.exceptions import AuthorizationError
from app.core.logging_config import logger
from app.models.announcement import (
    Announcement,
    AnnouncementRead,
    AnnouncementCategory,
    AnnouncementPriority,
    TargetAudience,
    PRIORITY_RANK,
)
from app.models.student import Student
from app.modules.auth import Principal, require_admin, require_student
from app.schemas.common import MessageResponse
from app.schemas.announcement import (
    AnnouncementCreate,
    AnnouncementUpdate,
    AnnouncementResponse,
    StudentAnnouncementResponse,
)
from app.services.announcement_hub import HubEvent
from app.services.registry import Outbound, get_outbound

router = APIRouter()


def is_targeted_at(announcement: Announcement, student: Student) -> bool:
    audience = announcement.target_audience
    if audience == TargetAudience.ALL:
        return True
    if audience == TargetAudience.SPECIFIC_YEAR:
        return announcement.target_year == student.year
    if audience == TargetAudience.SPECIFIC_SEMESTER:
        return announcement.target_semester == student.semester
    if audience == TargetAudience.SPECIFIC_DEPARTMENT:
        department = student.department
        if department is None or not announcement.target_department:
            return False
        target = announcement.target_department.strip().lower()
        return target in {
            str(department.id).lower(),
            (department.name or "").lower(),
            (department.code or "").lower(),
        }
    return False


def sort_for_display(announcements: List[Announcement]) -> List[Announcement]:
    """Highest priority first, newest first within a priority"""
    return sorted(
        announcements,
        key=lambda a: (PRIORITY_RANK[a.priority], a.created_at or datetime.min),
        reverse=True,
    )


def _ensure_visible(principal: Principal, announcement: Announcement) -> None:
    if not principal.is_student:
        return
    if not announcement.is_active or not is_targeted_at(announcement, principal.record):
        raise AuthorizationError("Access denied")


@router.get("", response_model=List[AnnouncementResponse])
async def list_announcements(
    category: Optional[AnnouncementCategory] = None,
    priority: Optional[AnnouncementPriority] = None,
    is_active: Optional[bool] = Query(None, alias="isActive"),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    query = select(Announcement)
    if category:
        query = query.where(Announcement.category == category)
    if priority:
        query = query.where(Announcement.priority == priority)
    if is_active is not None:
        query = query.where(Announcement.is_active == is_active)

    result = await db.execute(query.order_by(Announcement.created_at.desc()))
    return result.scalars().all()


@router.get("/student/active", response_model=List[StudentAnnouncementResponse])
async def active_announcements(
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student)
):
    """Active, unexpired announcements for the reader, with their read flag"""
    now = datetime.utcnow()
    result = await db.execute(
        select(Announcement).where(
            Announcement.is_active.is_(True),
            or_(Announcement.expires_at.is_(None), Announcement.expires_at > now),
        )
    )
    announcements = list(result.scalars().all())

    read_ids = set()
    if principal.is_student:
        announcements = [a for a in announcements if is_targeted_at(a, principal.record)]
        reads = await db.execute(
            select(AnnouncementRead.announcement_id).where(AnnouncementRead.student_id == principal.id)
        )
        read_ids = {str(row) for row in reads.scalars().all()}

    return [
        StudentAnnouncementResponse.model_validate(a).model_copy(update={"is_read": str(a.id) in read_ids})
        for a in sort_for_display(announcements)
    ]


@router.get("/{announcement_id}", response_model=AnnouncementResponse)
async def get_announcement(
    announcement_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student)
):
    announcement = await get_or_404(db, Announcement, announcement_id, "Announcement")
    _ensure_visible(principal, announcement)
    return announcement


@router.post("", response_model=AnnouncementResponse, status_code=status.HTTP_201_CREATED)
async def create_announcement(
    data: AnnouncementCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin),
    outbound: Outbound = Depends(get_outbound)
):
    announcement = Announcement(**data.model_dump(), created_by_id=principal.id)
    db.add(announcement)
    await db.commit()

    announcement = await get_or_404(db, Announcement, announcement.id, "Announcement")
    snapshot = AnnouncementResponse.model_validate(announcement).model_dump(mode="json", by_alias=True)
    outbound.broadcast(HubEvent.NEW_ANNOUNCEMENT.value, snapshot)

    logger.info(f"[Announcements] {principal.email} published '{announcement.title}'")
    return announcement


@router.put("/{announcement_id}", response_model=AnnouncementResponse)
async def update_announcement(
    announcement_id: str,
    data: AnnouncementUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    announcement = await get_or_404(db, Announcement, announcement_id, "Announcement")
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(announcement, field, value)
    await db.commit()
    return await get_or_404(db, Announcement, announcement_id, "Announcement")


@router.delete("/{announcement_id}", response_model=MessageResponse)
async def delete_announcement(
    announcement_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    announcement = await get_or_404(db, Announcement, announcement_id, "Announcement")
    await db.delete(announcement)
    await db.commit()
    return {"message": "Announcement deleted successfully"}


@router.post("/{announcement_id}/read", response_model=MessageResponse)
async def mark_read(
    announcement_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student)
):
    """Idempotent per student"""
    announcement = await get_or_404(db, Announcement, announcement_id, "Announcement")
    if not principal.is_student:
        raise AuthorizationError("Only students can mark announcements as read")
    _ensure_visible(principal, announcement)

    existing = await db.execute(
        select(AnnouncementRead.id).where(
            AnnouncementRead.announcement_id == announcement.id,
            AnnouncementRead.student_id == principal.id,
        )
    )
    if existing.scalar_one_or_none() is None:
        db.add(AnnouncementRead(announcement_id=announcement.id, student_id=principal.id))
        try:
            await db.commit()
        except IntegrityError:
            # concurrent read receipt already stored
            await db.rollback()

    return {"message": "Announcement marked as read"}
