from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from refurb_ops.core.deps import get_current_active_user
from refurb_ops.db.session import get_async_session
from refurb_ops.schemas.dashboard import ActivityRead, DashboardStats
from refurb_ops.services.dashboard import DashboardService

router = APIRouter(tags=["Dashboard"], dependencies=[Depends(get_current_active_user)])


# PUBLIC_INTERFACE
@router.get(
    "/dashboard/stats",
    response_model=DashboardStats,
    summary="Dashboard statistics",
    description="Device counts by status and pipeline stage, overdue repairs, low-stock parts and recent activity.",
)
async def dashboard_stats(
    session: AsyncSession = Depends(get_async_session),
    activity_limit: int = Query(10, ge=1, le=100),
) -> DashboardStats:
    return await DashboardService(session).stats(activity_limit=activity_limit)


# PUBLIC_INTERFACE
@router.get(
    "/activity",
    response_model=List[ActivityRead],
    summary="Recent activity",
)
async def recent_activity(
    session: AsyncSession = Depends(get_async_session),
    limit: int = Query(20, ge=1, le=200),
) -> List[ActivityRead]:
    return await DashboardService(session).activity_feed(limit)
