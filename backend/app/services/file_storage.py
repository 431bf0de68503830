"""
Local upload storage for course materials and student documents.

Files live under UPLOAD_PATH/<subdir>/<uuid>_<name>; rows keep the path
relative to UPLOAD_PATH so the directory can move between hosts.
"""

import os
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import aiofiles
import aiofiles.os
from fastapi import UploadFile

from app.core.config import settings
from app.core.exceptions import InvalidFileTypeError, ValidationError
from app.core.logging_config import logger

CHUNK_SIZE = 1024 * 1024


@dataclass
class StoredFile:
    file_name: str
    relative_path: str
    size: int

    @property
    def url(self) -> str:
        return f"/uploads/{self.relative_path}"


class UploadStore:

    def __init__(self, base_dir: Optional[Path] = None, max_size: Optional[int] = None):
        self.base_dir = Path(base_dir or settings.UPLOAD_DIR)
        self.max_size = max_size or settings.MAX_UPLOAD_SIZE

    def resolve(self, relative_path: str) -> Path:
        """Absolute path for a stored file; refuses paths that escape base_dir"""
        path = (self.base_dir / relative_path).resolve()
        if self.base_dir.resolve() not in path.parents:
            raise ValidationError("Invalid file path")
        return path

    @staticmethod
    def _safe_name(filename: str) -> str:
        name = os.path.basename(filename or "upload").replace(" ", "_")
        return "".join(c for c in name if c.isalnum() or c in "._-") or "upload"

    async def save(
        self,
        upload: UploadFile,
        subdir: str,
        allowed_extensions: Optional[List[str]] = None,
    ) -> StoredFile:
        """Stream an upload to disk, enforcing extension and size limits"""
        file_name = self._safe_name(upload.filename)
        extension = Path(file_name).suffix.lower().lstrip(".")
        if allowed_extensions and extension not in allowed_extensions:
            raise InvalidFileTypeError(extension or "none", allowed_extensions)

        relative_path = f"{subdir}/{uuid.uuid4().hex}_{file_name}"
        target = self.base_dir / relative_path
        target.parent.mkdir(parents=True, exist_ok=True)

        size = 0
        async with aiofiles.open(target, "wb") as f:
            while chunk := await upload.read(CHUNK_SIZE):
                size += len(chunk)
                if size > self.max_size:
                    break
                await f.write(chunk)

        if size > self.max_size:
            await aiofiles.os.remove(target)
            raise ValidationError(
                f"File too large. Maximum size is {self.max_size // (1024 * 1024)}MB",
                field="file"
            )
        if size == 0:
            await aiofiles.os.remove(target)
            raise ValidationError("Empty file", field="file")

        logger.info(f"[Uploads] Stored {relative_path} ({size} bytes)")
        return StoredFile(file_name=file_name, relative_path=relative_path, size=size)

    async def delete(self, relative_path: Optional[str]) -> None:
        if not relative_path:
            return
        path = self.resolve(relative_path)
        if path.exists():
            await aiofiles.os.remove(path)
            logger.info(f"[Uploads] Deleted {relative_path}")
