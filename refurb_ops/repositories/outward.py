from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select

from refurb_ops.db.models.outward import OutwardRecord
from .base import BaseRepository


class OutwardRecordRepository(BaseRepository):
    """Repository for dispatch records."""

    async def list_records(self, *, type: Optional[str] = None, limit: int = 100, offset: int = 0) -> List[OutwardRecord]:
        stmt = select(OutwardRecord)
        if type:
            stmt = stmt.where(OutwardRecord.type == type)
        stmt = stmt.order_by(OutwardRecord.date.desc()).offset(offset).limit(limit)
        result = await self.scalars(stmt)
        return list(result)

    async def get_record(self, record_id: UUID) -> Optional[OutwardRecord]:
        return await self.get(OutwardRecord, record_id)

    async def count_for_year(self, year: int) -> int:
        stmt = select(OutwardRecord.id).where(OutwardRecord.outward_id.like(f"OUT-{year}-%"))
        return await self.count(stmt)
