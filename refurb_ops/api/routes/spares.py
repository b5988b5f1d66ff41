from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from refurb_ops.core.deps import get_current_active_user, require_roles
from refurb_ops.db.models.security import User
from refurb_ops.db.session import get_async_session
from refurb_ops.schemas.repair import IssueSparesRequest, RepairJobWithDevice
from refurb_ops.schemas.spares import SparePartCreate, SparePartRead, SparePartUpdate, StockAdjustment
from refurb_ops.services.repair import job_with_device
from refurb_ops.services.spares import SparesService, part_read
from refurb_ops.workflow.users import INVENTORY_ROLES, SPARE_PART_ADMIN_ROLES

router = APIRouter(prefix="/spares", tags=["Spares"])


# PUBLIC_INTERFACE
@router.get(
    "/queue",
    response_model=List[RepairJobWithDevice],
    summary="Spares queue",
    description="Repair jobs waiting for spares, oldest first.",
    dependencies=[Depends(require_roles(*INVENTORY_ROLES))],
)
async def spares_queue(session: AsyncSession = Depends(get_async_session)) -> List[RepairJobWithDevice]:
    jobs = await SparesService(session).queue()
    return [job_with_device(j) for j in jobs]


# PUBLIC_INTERFACE
@router.post(
    "/jobs/{job_id}/issue",
    response_model=RepairJobWithDevice,
    summary="Issue spares",
    description="Hand over parts for a job; stocked parts are decremented and the job becomes READY_FOR_REPAIR.",
)
async def issue_spares(
    payload: IssueSparesRequest,
    job_id: UUID = Path(..., description="Repair job primary key"),
    actor: User = Depends(require_roles(*INVENTORY_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> RepairJobWithDevice:
    job = await SparesService(session).issue_spares(job_id, payload, actor)
    return job_with_device(job)


# PUBLIC_INTERFACE
@router.get(
    "/parts",
    response_model=List[SparePartRead],
    summary="List spare parts",
    dependencies=[Depends(get_current_active_user)],
)
async def list_parts(
    session: AsyncSession = Depends(get_async_session),
    q: Optional[str] = Query(None, description="Matches part code or description"),
    category: Optional[str] = Query(None),
    low_stock: bool = Query(False, description="Only parts at or below minimum stock"),
) -> List[SparePartRead]:
    return await SparesService(session).list_parts(q=q, category=category, low_stock=low_stock)


# PUBLIC_INTERFACE
@router.get(
    "/parts/compatible",
    response_model=List[SparePartRead],
    summary="Parts compatible with a model",
    dependencies=[Depends(get_current_active_user)],
)
async def compatible_parts(
    model: str = Query(..., description="Device model name"),
    session: AsyncSession = Depends(get_async_session),
) -> List[SparePartRead]:
    return await SparesService(session).compatible_parts(model)


# PUBLIC_INTERFACE
@router.post(
    "/parts",
    response_model=SparePartRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create spare part",
    dependencies=[Depends(require_roles(*SPARE_PART_ADMIN_ROLES))],
)
async def create_part(
    payload: SparePartCreate,
    session: AsyncSession = Depends(get_async_session),
) -> SparePartRead:
    return part_read(await SparesService(session).create_part(payload))


# PUBLIC_INTERFACE
@router.patch(
    "/parts/{part_id}",
    response_model=SparePartRead,
    summary="Update spare part",
    dependencies=[Depends(require_roles(*SPARE_PART_ADMIN_ROLES))],
)
async def update_part(
    payload: SparePartUpdate,
    part_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> SparePartRead:
    return part_read(await SparesService(session).update_part(part_id, payload))


# PUBLIC_INTERFACE
@router.delete(
    "/parts/{part_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete spare part",
    dependencies=[Depends(require_roles(*SPARE_PART_ADMIN_ROLES))],
)
async def delete_part(
    part_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> None:
    await SparesService(session).delete_part(part_id)


# PUBLIC_INTERFACE
@router.post(
    "/parts/{part_id}/adjust",
    response_model=SparePartRead,
    summary="Adjust stock",
    description="Add or remove stock with a reason. Stock never goes below zero.",
)
async def adjust_stock(
    payload: StockAdjustment,
    part_id: UUID = Path(...),
    actor: User = Depends(require_roles(*SPARE_PART_ADMIN_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> SparePartRead:
    return part_read(await SparesService(session).adjust_stock(part_id, payload, actor))
