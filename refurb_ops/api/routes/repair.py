from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from refurb_ops.core.deps import require_roles
from refurb_ops.db.models.security import User
from refurb_ops.db.session import get_async_session
from refurb_ops.schemas.repair import CompleteRepairRequest, RepairJobWithDevice, SendToPaintRequest
from refurb_ops.services.repair import RepairService, job_with_device
from refurb_ops.workflow.users import REPAIR_ROLES

router = APIRouter(prefix="/repair", tags=["Repair"])


# PUBLIC_INTERFACE
@router.get(
    "/my-jobs",
    response_model=List[RepairJobWithDevice],
    summary="My repair queue",
    description="Jobs assigned to me plus unassigned jobs that are ready for repair.",
)
async def my_jobs(
    actor: User = Depends(require_roles(*REPAIR_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> List[RepairJobWithDevice]:
    return [job_with_device(j) for j in await RepairService(session).my_jobs(actor)]


# PUBLIC_INTERFACE
@router.get(
    "/jobs",
    response_model=List[RepairJobWithDevice],
    summary="List repair jobs",
    dependencies=[Depends(require_roles(*REPAIR_ROLES))],
)
async def list_jobs(
    session: AsyncSession = Depends(get_async_session),
    status: Optional[str] = Query(None, description="Filter by job status"),
    limit: int = Query(200, ge=1, le=1000),
    offset: int = Query(0, ge=0),
) -> List[RepairJobWithDevice]:
    jobs = await RepairService(session).list_jobs(status=status, limit=limit, offset=offset)
    return [job_with_device(j) for j in jobs]


# PUBLIC_INTERFACE
@router.get(
    "/jobs/{job_id}",
    response_model=RepairJobWithDevice,
    summary="Get repair job",
    dependencies=[Depends(require_roles(*REPAIR_ROLES))],
)
async def get_job(
    job_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> RepairJobWithDevice:
    return job_with_device(await RepairService(session).get_job(job_id))


# PUBLIC_INTERFACE
@router.post(
    "/jobs/{job_id}/start",
    response_model=RepairJobWithDevice,
    summary="Start repair",
    description="Take a READY_FOR_REPAIR job; starts the TAT clock. Engineers are limited in how many jobs they hold.",
)
async def start_repair(
    job_id: UUID = Path(...),
    actor: User = Depends(require_roles(*REPAIR_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> RepairJobWithDevice:
    return job_with_device(await RepairService(session).start_repair(job_id, actor))


# PUBLIC_INTERFACE
@router.post(
    "/jobs/{job_id}/complete",
    response_model=RepairJobWithDevice,
    summary="Complete repair",
    description="Finish the repair; the device goes to the paint shop if paint is outstanding, else to QC.",
)
async def complete_repair(
    payload: CompleteRepairRequest,
    job_id: UUID = Path(...),
    actor: User = Depends(require_roles(*REPAIR_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> RepairJobWithDevice:
    return job_with_device(await RepairService(session).complete_repair(job_id, payload, actor))


# PUBLIC_INTERFACE
@router.post(
    "/jobs/{job_id}/send-to-paint",
    response_model=RepairJobWithDevice,
    summary="Send to paint shop",
)
async def send_to_paint(
    payload: SendToPaintRequest,
    job_id: UUID = Path(...),
    actor: User = Depends(require_roles(*REPAIR_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> RepairJobWithDevice:
    return job_with_device(await RepairService(session).send_to_paint(job_id, payload.panels, actor))
