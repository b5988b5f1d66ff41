from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from refurb_ops.core.deps import require_roles
from refurb_ops.db.models.security import User
from refurb_ops.db.session import get_async_session
from refurb_ops.schemas.inward import DeviceRead
from refurb_ops.schemas.repair import BulkPanelStatusUpdate, PaintPanelRead, PaintQueueEntry, PanelStatusUpdate
from refurb_ops.services.paint import PaintService
from refurb_ops.workflow.users import PAINT_ROLES

router = APIRouter(prefix="/paint", tags=["Paint Shop"])


# PUBLIC_INTERFACE
@router.get(
    "/queue",
    response_model=List[PaintQueueEntry],
    summary="Paint shop queue",
    description="Devices with panels awaiting or in paint, with per-status progress.",
    dependencies=[Depends(require_roles(*PAINT_ROLES))],
)
async def paint_queue(session: AsyncSession = Depends(get_async_session)) -> List[PaintQueueEntry]:
    return await PaintService(session).queue()


# PUBLIC_INTERFACE
@router.patch(
    "/panels/{panel_id}",
    response_model=PaintPanelRead,
    summary="Advance panel status",
    description="Panels move AWAITING_PAINT -> IN_PAINT -> READY_FOR_COLLECTION one step at a time.",
)
async def update_panel(
    payload: PanelStatusUpdate,
    panel_id: UUID = Path(...),
    actor: User = Depends(require_roles(*PAINT_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> PaintPanelRead:
    panel = await PaintService(session).update_panel(panel_id, payload.status, actor)
    return PaintPanelRead.model_validate(panel)


# PUBLIC_INTERFACE
@router.post(
    "/panels/bulk-update",
    response_model=List[PaintPanelRead],
    summary="Advance several panels",
    description="All panels must be allowed to move to the target status or none are changed.",
)
async def bulk_update(
    payload: BulkPanelStatusUpdate,
    actor: User = Depends(require_roles(*PAINT_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> List[PaintPanelRead]:
    panels = await PaintService(session).bulk_update(payload.panel_ids, payload.status, actor)
    return [PaintPanelRead.model_validate(p) for p in panels]


# PUBLIC_INTERFACE
@router.post(
    "/devices/{device_id}/collect",
    response_model=DeviceRead,
    summary="Collect painted device",
    description="Fit the painted panels; the device returns to repair if unfinished, else goes to QC.",
)
async def collect_device(
    device_id: UUID = Path(...),
    actor: User = Depends(require_roles(*PAINT_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> DeviceRead:
    return DeviceRead.model_validate(await PaintService(session).collect(device_id, actor))
