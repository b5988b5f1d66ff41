from __future__ import annotations

from typing import Dict, List, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from refurb_ops.db.models.activity import ActivityLog
from refurb_ops.repositories.activity import ActivityLogRepository
from refurb_ops.repositories.inventory import DeviceRepository, SparePartRepository
from refurb_ops.repositories.repair import RepairJobRepository
from refurb_ops.repositories.security import UserRepository
from refurb_ops.schemas.dashboard import ActivityRead, DashboardStats, PipelineSummary
from refurb_ops.workflow.enums import DeviceStatus, RepairJobStatus
from refurb_ops.workflow.identifiers import is_repair_overdue
from .base import BaseService

PIPELINE_BUCKETS: Dict[str, Sequence[DeviceStatus]] = {
    "inward": (DeviceStatus.RECEIVED,),
    "inspection": (DeviceStatus.PENDING_INSPECTION,),
    "spares": (DeviceStatus.WAITING_FOR_SPARES,),
    "repair": (DeviceStatus.READY_FOR_REPAIR, DeviceStatus.UNDER_REPAIR, DeviceStatus.QC_FAILED_REWORK),
    "paint": (DeviceStatus.IN_PAINT_SHOP,),
    "qc": (DeviceStatus.AWAITING_QC,),
    "ready": (DeviceStatus.READY_FOR_STOCK, DeviceStatus.QC_PASSED),
    "dispatched": (DeviceStatus.STOCK_OUT_SOLD, DeviceStatus.STOCK_OUT_RENTAL),
}

# Job statuses where the TAT clock is running.
TAT_TRACKED_STATUSES = (
    RepairJobStatus.UNDER_REPAIR,
    RepairJobStatus.IN_PAINT_SHOP,
    RepairJobStatus.AWAITING_QC,
)


def pipeline_summary(status_counts: Dict[str, int]) -> PipelineSummary:
    return PipelineSummary(
        **{
            bucket: sum(status_counts.get(s.value, 0) for s in statuses)
            for bucket, statuses in PIPELINE_BUCKETS.items()
        }
    )


class DashboardService(BaseService):
    """Aggregate numbers for the landing page."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.devices = DeviceRepository(session)
        self.repair_jobs = RepairJobRepository(session)
        self.parts = SparePartRepository(session)
        self.activity = ActivityLogRepository(session)
        self.users = UserRepository(session)

    # PUBLIC_INTERFACE
    async def activity_feed(self, limit: int = 10) -> List[ActivityRead]:
        """Recent activity with the acting user's name and role."""
        entries: List[ActivityLog] = await self.activity.recent(limit)
        users = {u.id: u for u in await self.users.get_users_by_ids({e.user_id for e in entries})}
        feed = []
        for entry in entries:
            user = users.get(entry.user_id)
            feed.append(
                ActivityRead(
                    id=entry.id,
                    action=entry.action,
                    details=entry.details,
                    user_id=entry.user_id,
                    user_name=user.name if user else None,
                    user_role=user.role if user else None,
                    metadata=entry.extra,
                    created_at=entry.created_at,
                )
            )
        return feed

    # PUBLIC_INTERFACE
    async def stats(self, activity_limit: int = 10) -> DashboardStats:
        status_counts = await self.devices.count_by_status()
        tracked = await self.repair_jobs.list_with_tat(TAT_TRACKED_STATUSES)
        return DashboardStats(
            total_devices=sum(status_counts.values()),
            status_counts=status_counts,
            pipeline=pipeline_summary(status_counts),
            overdue_repairs=sum(1 for job in tracked if is_repair_overdue(job.tat_due_date)),
            low_stock_parts=await self.parts.count_low_stock(),
            recent_activity=await self.activity_feed(activity_limit),
        )
