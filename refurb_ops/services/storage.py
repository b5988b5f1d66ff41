"""
Storage for purchase order PDFs and delivery challans.

Uploads get a key of the form ``<folder>/<timestamp>-<uuid>-<safe name>``; the
key is what gets stored on records and served back by /files. STORAGE_PROVIDER
picks where the bytes live: the stored_documents table ("database", the
default) or files under UPLOAD_DIR ("local").
"""

from __future__ import annotations

import logging
import mimetypes
import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.ext.asyncio import AsyncSession

from refurb_ops.core.errors import DomainError, NotFoundError
from refurb_ops.core.settings import get_app_settings
from refurb_ops.db.models.storage import StoredDocument
from refurb_ops.repositories.storage import StoredDocumentRepository
from .base import BaseService

logger = logging.getLogger(__name__)

ALLOWED_TYPES: Dict[str, Tuple[str, ...]] = {
    "purchase-orders": ("application/pdf",),
    "delivery-challans": ("image/jpeg", "image/png", "image/webp", "application/pdf"),
}

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass
class StoredFile:
    key: str
    url: str
    file_name: str
    size: int
    content_type: str


@dataclass
class StoredContent:
    """A stored document ready to serve: a path on disk or the bytes themselves."""

    file_name: str
    content_type: str
    path: Optional[Path] = None
    data: Optional[bytes] = None


def sanitize_filename(file_name: str) -> str:
    """Strip directories and anything outside [A-Za-z0-9._-]."""
    base = Path(file_name or "").name
    cleaned = _UNSAFE_CHARS.sub("_", base).strip("._")
    return cleaned[:120] or "file"


def _root() -> Path:
    return Path(get_app_settings().UPLOAD_DIR).resolve()


def _checked_upload(folder: str, file_name: str, data: bytes, content_type: str) -> StoredFile:
    """Validate an upload and assign its key."""
    settings = get_app_settings()
    if folder not in ALLOWED_TYPES:
        raise DomainError('Invalid folder. Must be "purchase-orders" or "delivery-challans"')
    if len(data) > settings.MAX_UPLOAD_BYTES:
        raise DomainError(f"File too large. Maximum size is {settings.MAX_UPLOAD_BYTES // (1024 * 1024)}MB")
    allowed = ALLOWED_TYPES[folder]
    if content_type not in allowed:
        raise DomainError(f"Invalid file type. Allowed types: {', '.join(allowed)}")

    safe_name = sanitize_filename(file_name)
    stamp = datetime.now(tz=timezone.utc).strftime("%Y%m%d%H%M%S")
    key = f"{folder}/{stamp}-{uuid.uuid4().hex[:8]}-{safe_name}"
    return StoredFile(key=key, url=f"/api/v1/files/{key}", file_name=safe_name, size=len(data), content_type=content_type)


def _key_parts(key: str) -> List[str]:
    parts = [p for p in key.split("/") if p]
    if len(parts) < 2 or parts[0] not in ALLOWED_TYPES or ".." in parts:
        raise DomainError("Invalid file path")
    return parts


# PUBLIC_INTERFACE
def store_upload(folder: str, file_name: str, data: bytes, content_type: str) -> StoredFile:
    """Validate and write an upload to disk."""
    stored = _checked_upload(folder, file_name, data, content_type)
    target = _root() / stored.key
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(data)
    logger.info("Stored upload %s on disk (%d bytes)", stored.key, stored.size)
    return stored


# PUBLIC_INTERFACE
def resolve_stored_file(key: str) -> Tuple[Path, str]:
    """Map a stored key back to a path inside UPLOAD_DIR, with its content type."""
    parts = _key_parts(key)
    root = _root()
    path = (root / Path(*parts)).resolve()
    if root not in path.parents:
        raise DomainError("Invalid file path")
    if not path.is_file():
        raise NotFoundError("File not found")
    content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    return path, content_type


class DocumentStorage(BaseService):
    """Saves and fetches uploads with the configured STORAGE_PROVIDER."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.documents = StoredDocumentRepository(session)
        self.provider = get_app_settings().STORAGE_PROVIDER

    # PUBLIC_INTERFACE
    async def save(self, folder: str, file_name: str, data: bytes, content_type: str) -> StoredFile:
        if self.provider == "local":
            return await run_in_threadpool(store_upload, folder, file_name, data, content_type)

        stored = _checked_upload(folder, file_name, data, content_type)
        await self.documents.add(
            StoredDocument(
                folder=folder,
                key=stored.key,
                file_name=stored.file_name,
                content_type=stored.content_type,
                size=stored.size,
                data=data,
            )
        )
        await self.documents.commit()
        logger.info("Stored upload %s in the database (%d bytes)", stored.key, stored.size)
        return stored

    # PUBLIC_INTERFACE
    async def fetch(self, key: str) -> StoredContent:
        if self.provider == "local":
            path, content_type = resolve_stored_file(key)
            return StoredContent(file_name=path.name, content_type=content_type, path=path)

        document = await self.documents.get_by_key("/".join(_key_parts(key)))
        if document is None:
            raise NotFoundError("File not found")
        return StoredContent(file_name=document.file_name, content_type=document.content_type, data=document.data)
