"""
Course materials: files or links published by a course's faculty.

Uploads are multipart; the stored file lives under UPLOAD_PATH/materials/<course>.
Only the uploader (or an admin) may edit or remove a material.
"""
from fastapi import APIRouter, Depends, status, Query, UploadFile, File, Form
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from datetime import datetime
from typing import Optional, List

from app.core.config import settings
from app.core.database import get_db, get_or_404
from app.core.exceptions import AuthorizationError, DuplicateRecordError, ValidationError
from app.core.logging_config import logger
from app.models.course import Course
from app.models.course_material import CourseMaterial, MaterialType
from app.modules.auth import Principal, require_faculty, require_student, ensure_course_owner
from app.schemas.common import MessageResponse
from app.schemas.course_material import CourseMaterialUpdate, CourseMaterialResponse
from app.services.enrollment import is_enrolled
from app.services.file_storage import UploadStore
from app.services.registry import get_upload_store

router = APIRouter()

DUPLICATE_MATERIAL = "Material with this title and type already exists for this course"
UPLOAD_URL_PREFIX = "/uploads/"


def _ensure_uploader(principal: Principal, material: CourseMaterial, action: str) -> None:
    if principal.is_admin:
        return
    if material.faculty_id is None or str(material.faculty_id) != principal.id:
        raise AuthorizationError(f"You are not authorized to {action} this material")


async def _ensure_readable(db: AsyncSession, principal: Principal, material: CourseMaterial) -> None:
    """Students need the material visible and an enrollment in its course"""
    if not principal.is_student:
        return
    if not material.is_visible or not await is_enrolled(db, principal.id, material.course_id):
        raise AuthorizationError("Access denied")


def _relative_path(material: CourseMaterial) -> Optional[str]:
    if material.file_url and material.file_url.startswith(UPLOAD_URL_PREFIX):
        return material.file_url[len(UPLOAD_URL_PREFIX):]
    return None


def _parse_tags(tags: Optional[str]) -> List[str]:
    if not tags:
        return []
    return [t.strip() for t in tags.split(",") if t.strip()]


@router.get("/course/{course_id}", response_model=List[CourseMaterialResponse])
async def course_materials(
    course_id: str,
    material_type: Optional[MaterialType] = Query(None, alias="type"),
    is_visible: Optional[bool] = Query(None, alias="isVisible"),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student)
):
    """Materials for a course, newest first; students only see visible ones"""
    await get_or_404(db, Course, course_id, "Course")

    query = select(CourseMaterial).where(CourseMaterial.course_id == course_id)
    if material_type:
        query = query.where(CourseMaterial.type == material_type)
    if principal.is_student:
        query = query.where(CourseMaterial.is_visible.is_(True))
    elif is_visible is not None:
        query = query.where(CourseMaterial.is_visible == is_visible)

    result = await db.execute(query.order_by(CourseMaterial.uploaded_at.desc()))
    return result.scalars().all()


@router.get("/{material_id}", response_model=CourseMaterialResponse)
async def get_material(
    material_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student)
):
    material = await get_or_404(db, CourseMaterial, material_id, "Course material")
    await _ensure_readable(db, principal, material)
    return material


@router.post("", response_model=CourseMaterialResponse, status_code=status.HTTP_201_CREATED)
async def upload_material(
    course_id: str = Form(..., alias="courseId"),
    title: str = Form(..., min_length=1, max_length=255),
    material_type: MaterialType = Form(..., alias="type"),
    description: Optional[str] = Form(None),
    external_link: Optional[str] = Form(None, alias="externalLink"),
    is_visible: bool = Form(True, alias="isVisible"),
    tags: Optional[str] = Form(None),
    due_date: Optional[datetime] = Form(None, alias="dueDate"),
    max_marks: Optional[int] = Form(None, alias="maxMarks", ge=0),
    instructions: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_faculty),
    uploads: UploadStore = Depends(get_upload_store)
):
    course = await get_or_404(db, Course, course_id, "Course")
    ensure_course_owner(principal, course, "upload materials")

    has_file = file is not None and bool(file.filename)
    if not has_file and not external_link:
        raise ValidationError("Either a file or an external link is required", field="file")

    existing = await db.execute(
        select(CourseMaterial.id).where(
            CourseMaterial.course_id == course.id,
            CourseMaterial.title == title,
            CourseMaterial.type == material_type,
        )
    )
    if existing.scalar_one_or_none():
        raise DuplicateRecordError(DUPLICATE_MATERIAL)

    material = CourseMaterial(
        course_id=course.id,
        faculty_id=principal.id if principal.is_faculty else course.faculty_id,
        title=title,
        description=description,
        type=material_type,
        external_link=external_link,
        is_visible=is_visible,
        tags=_parse_tags(tags),
        semester=course.semester,
        year=course.year,
        due_date=due_date,
        max_marks=max_marks,
        instructions=instructions,
    )

    stored = None
    if has_file:
        stored = await uploads.save(file, f"materials/{course.id}", settings.ALLOWED_MATERIAL_EXTENSIONS)
        material.file_url = stored.url
        material.file_name = stored.file_name
        material.file_size = stored.size

    db.add(material)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        if stored:
            await uploads.delete(stored.relative_path)
        raise DuplicateRecordError(DUPLICATE_MATERIAL)

    logger.info(f"[Materials] {principal.email} uploaded '{title}' to {course.course_code}")
    return await get_or_404(db, CourseMaterial, material.id, "Course material")


@router.put("/{material_id}", response_model=CourseMaterialResponse)
async def update_material(
    material_id: str,
    data: CourseMaterialUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_faculty)
):
    material = await get_or_404(db, CourseMaterial, material_id, "Course material")
    _ensure_uploader(principal, material, "update")

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(material, field, value)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise DuplicateRecordError(DUPLICATE_MATERIAL)
    return await get_or_404(db, CourseMaterial, material_id, "Course material")


@router.delete("/{material_id}", response_model=MessageResponse)
async def delete_material(
    material_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_faculty),
    uploads: UploadStore = Depends(get_upload_store)
):
    material = await get_or_404(db, CourseMaterial, material_id, "Course material")
    _ensure_uploader(principal, material, "delete")

    relative_path = _relative_path(material)
    await db.delete(material)
    await db.commit()
    await uploads.delete(relative_path)

    return {"message": "Course material deleted successfully"}


@router.get("/{material_id}/download")
async def download_material(
    material_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student),
    uploads: UploadStore = Depends(get_upload_store)
):
    """Stream the stored file, or return the external link; counts every download"""
    material = await get_or_404(db, CourseMaterial, material_id, "Course material")
    await _ensure_readable(db, principal, material)

    material.download_count = (material.download_count or 0) + 1
    await db.commit()

    relative_path = _relative_path(material)
    if relative_path:
        path = uploads.resolve(relative_path)
        if path.exists():
            return FileResponse(path, filename=material.file_name or path.name)
    if material.external_link:
        return {"url": material.external_link, "download_count": material.download_count}
    raise ValidationError("File is no longer available")
