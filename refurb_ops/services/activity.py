from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from refurb_ops.db.models.activity import ActivityLog
from refurb_ops.repositories.activity import ActivityLogRepository
from refurb_ops.workflow.enums import ActivityAction
from .base import BaseService

logger = logging.getLogger(__name__)


class ActivityService(BaseService):
    """
    Append-only activity feed.

    Callers record activity after their own commit; a failure here is logged and
    rolled back so it never undoes or interrupts the action being recorded.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = ActivityLogRepository(session)

    # PUBLIC_INTERFACE
    async def record(
        self,
        action: ActivityAction | str,
        *,
        user_id: Optional[UUID],
        details: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[ActivityLog]:
        """Persist an activity entry; returns None when it could not be written."""
        try:
            entry = ActivityLog(
                action=ActivityAction(action).value,
                details=details,
                user_id=user_id,
                extra=metadata,
            )
            await self.repo.add(entry)
            await self.repo.commit()
            return entry
        except Exception:
            logger.exception("Failed to log activity %s", action)
            await self.session.rollback()
            return None
