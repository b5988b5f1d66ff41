from __future__ import annotations

from typing import Optional

from sqlalchemy import select

from refurb_ops.db.models.storage import StoredDocument
from .base import BaseRepository


class StoredDocumentRepository(BaseRepository):
    async def get_by_key(self, key: str) -> Optional[StoredDocument]:
        return await self.scalar_one_or_none(select(StoredDocument).where(StoredDocument.key == key))
