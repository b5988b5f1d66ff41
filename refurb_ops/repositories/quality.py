from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, select

from refurb_ops.db.models.quality import ChecklistItem, QCRecord
from .base import BaseRepository


class ChecklistItemRepository(BaseRepository):
    """Repository for persisted inspection checklist results."""

    async def list_for_device(self, device_id: UUID) -> List[ChecklistItem]:
        stmt = select(ChecklistItem).where(ChecklistItem.device_id == device_id).order_by(ChecklistItem.item_index)
        result = await self.scalars(stmt)
        return list(result)

    async def get_item(self, item_id: UUID) -> Optional[ChecklistItem]:
        return await self.get(ChecklistItem, item_id)

    async def clear_for_device(self, device_id: UUID) -> None:
        await self.execute(delete(ChecklistItem).where(ChecklistItem.device_id == device_id))


class QCRecordRepository(BaseRepository):
    """Repository for QC records."""

    async def list_records(
        self, *, status: Optional[str] = None, device_id: Optional[UUID] = None, limit: int = 100, offset: int = 0
    ) -> List[QCRecord]:
        stmt = select(QCRecord)
        if status:
            stmt = stmt.where(QCRecord.status == status)
        if device_id:
            stmt = stmt.where(QCRecord.device_id == device_id)
        stmt = stmt.order_by(QCRecord.created_at.desc()).offset(offset).limit(limit)
        result = await self.scalars(stmt)
        return list(result)
