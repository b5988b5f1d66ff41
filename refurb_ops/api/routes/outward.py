from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from refurb_ops.core.deps import require_roles
from refurb_ops.db.models.security import User
from refurb_ops.db.session import get_async_session
from refurb_ops.schemas.inward import DeviceRead
from refurb_ops.schemas.outward import OutwardCreate, OutwardDetail, OutwardRead, OutwardUpdate
from refurb_ops.services.outward import OutwardService
from refurb_ops.workflow.users import OUTWARD_ROLES

router = APIRouter(prefix="/outward", tags=["Outward"])


def _detail(record, devices, warnings=()) -> OutwardDetail:
    return OutwardDetail(
        **OutwardRead.model_validate(record).model_dump(),
        devices=[DeviceRead.model_validate(d) for d in devices],
        warnings=list(warnings),
    )


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[OutwardRead],
    summary="List outward records",
    dependencies=[Depends(require_roles(*OUTWARD_ROLES))],
)
async def list_records(
    session: AsyncSession = Depends(get_async_session),
    type: Optional[str] = Query(None, description="SALES or RENTAL"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
) -> List[OutwardRead]:
    records = await OutwardService(session).list_records(type=type, limit=limit, offset=offset)
    return [OutwardRead.model_validate(r) for r in records]


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=OutwardDetail,
    status_code=status.HTTP_201_CREATED,
    summary="Dispatch devices",
    description=(
        "Dispatch READY_FOR_STOCK devices as a sale or rental. Shipping details and packed/checked "
        "by are advisory and come back as warnings when missing."
    ),
)
async def create_outward(
    payload: OutwardCreate,
    actor: User = Depends(require_roles(*OUTWARD_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> OutwardDetail:
    record, devices, warnings = await OutwardService(session).create(payload, actor)
    return _detail(record, devices, warnings)


# PUBLIC_INTERFACE
@router.get(
    "/{record_id}",
    response_model=OutwardDetail,
    summary="Get outward record",
    dependencies=[Depends(require_roles(*OUTWARD_ROLES))],
)
async def get_record(
    record_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> OutwardDetail:
    record, devices = await OutwardService(session).get_with_devices(record_id)
    return _detail(record, devices)


# PUBLIC_INTERFACE
@router.patch("/{record_id}", response_model=OutwardRead, summary="Update outward record")
async def update_record(
    payload: OutwardUpdate,
    record_id: UUID = Path(...),
    actor: User = Depends(require_roles(*OUTWARD_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> OutwardRead:
    return OutwardRead.model_validate(await OutwardService(session).update(record_id, payload, actor))
