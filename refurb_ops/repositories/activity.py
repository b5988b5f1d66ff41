from __future__ import annotations

from typing import List

from sqlalchemy import String, cast, select

from refurb_ops.db.models.activity import ActivityLog
from .base import BaseRepository


class ActivityLogRepository(BaseRepository):
    """Repository for the activity log."""

    async def recent(self, limit: int = 10) -> List[ActivityLog]:
        stmt = select(ActivityLog).order_by(ActivityLog.created_at.desc()).limit(limit)
        result = await self.scalars(stmt)
        return list(result)

    async def mentioning(self, text: str, limit: int = 200) -> List[ActivityLog]:
        """Entries whose details or metadata mention the given text (a barcode, a batch id)."""
        pattern = f"%{text}%"
        stmt = (
            select(ActivityLog)
            .where(ActivityLog.details.ilike(pattern) | cast(ActivityLog.extra, String).ilike(pattern))
            .order_by(ActivityLog.created_at)
            .limit(limit)
        )
        result = await self.scalars(stmt)
        return list(result)
