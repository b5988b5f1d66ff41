from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from refurb_ops.core.deps import require_roles
from refurb_ops.db.models.security import User
from refurb_ops.db.session import get_async_session
from refurb_ops.schemas.quality import ChecklistItemRead, ChecklistItemUpdate, QCRecordRead, QCStart, QCSubmit
from refurb_ops.services.quality import QCService
from refurb_ops.workflow.users import QC_ROLES

router = APIRouter(prefix="/qc", tags=["Quality"])


# PUBLIC_INTERFACE
@router.post(
    "/start/{barcode}",
    response_model=QCStart,
    summary="Start QC",
    description="Scan a device awaiting QC; returns its inspection checklist with counts and inspection notes.",
    dependencies=[Depends(require_roles(*QC_ROLES))],
)
async def start_qc(
    barcode: str = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> QCStart:
    return await QCService(session).start(barcode)


# PUBLIC_INTERFACE
@router.patch(
    "/checklist/{item_id}",
    response_model=ChecklistItemRead,
    summary="Update checklist item",
    dependencies=[Depends(require_roles(*QC_ROLES))],
)
async def update_checklist_item(
    payload: ChecklistItemUpdate,
    item_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> ChecklistItemRead:
    return ChecklistItemRead.model_validate(await QCService(session).update_item(item_id, payload))


# PUBLIC_INTERFACE
@router.post(
    "/devices/{device_id}/submit",
    response_model=QCRecordRead,
    summary="Submit QC result",
    description=(
        "PASSED requires grade A or B and a fully checked list; the device becomes READY_FOR_STOCK. "
        "FAILED_REWORK requires remarks and sends the device back for repair or paint."
    ),
)
async def submit_qc(
    payload: QCSubmit,
    device_id: UUID = Path(...),
    actor: User = Depends(require_roles(*QC_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> QCRecordRead:
    return QCRecordRead.model_validate(await QCService(session).submit(device_id, payload, actor))


# PUBLIC_INTERFACE
@router.get(
    "/records",
    response_model=List[QCRecordRead],
    summary="List QC records",
    dependencies=[Depends(require_roles(*QC_ROLES))],
)
async def list_records(
    session: AsyncSession = Depends(get_async_session),
    status: Optional[str] = Query(None, description="PASSED or FAILED_REWORK"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
) -> List[QCRecordRead]:
    records = await QCService(session).list_records(status=status, limit=limit, offset=offset)
    return [QCRecordRead.model_validate(r) for r in records]
