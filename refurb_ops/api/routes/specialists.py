"""
Specialist queues: L3 repair, display repair and battery boost.

Each queue lists jobs as mine / pending / others for the signed-in technician.
Completing a job here closes it; the owning L2 engineer then collects the device.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from refurb_ops.core.deps import require_roles
from refurb_ops.db.models.security import User
from refurb_ops.db.session import get_async_session
from refurb_ops.schemas.repair import (
    CompleteBatteryRequest,
    CompleteDisplayRequest,
    CompleteL3Request,
    ParallelJobCompletion,
    ParallelJobRead,
    TechnicianQueue,
)
from refurb_ops.services.parallel import SpecialistQueueService
from refurb_ops.workflow.users import BATTERY_ROLES, DISPLAY_ROLES, L3_ROLES

l3_router = APIRouter(prefix="/l3", tags=["L3 Repair"])
display_router = APIRouter(prefix="/display", tags=["Display Repair"])
battery_router = APIRouter(prefix="/battery", tags=["Battery Boost"])


async def _queue(kind: str, session: AsyncSession, actor: User) -> TechnicianQueue:
    grouped = await SpecialistQueueService(session, kind).queue(actor)
    return TechnicianQueue(
        mine=[ParallelJobRead.model_validate(j) for j in grouped.mine],
        pending=[ParallelJobRead.model_validate(j) for j in grouped.pending],
        others=[ParallelJobRead.model_validate(j) for j in grouped.others],
    )


async def _start(kind: str, job_id: UUID, session: AsyncSession, actor: User) -> ParallelJobRead:
    job = await SpecialistQueueService(session, kind).start(job_id, actor)
    return ParallelJobRead.model_validate(job)


# L3

# PUBLIC_INTERFACE
@l3_router.get("/queue", response_model=TechnicianQueue, summary="L3 queue")
async def l3_queue(
    actor: User = Depends(require_roles(*L3_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> TechnicianQueue:
    return await _queue("l3", session, actor)


# PUBLIC_INTERFACE
@l3_router.post("/jobs/{job_id}/start", response_model=ParallelJobRead, summary="Start L3 job")
async def l3_start(
    job_id: UUID = Path(...),
    actor: User = Depends(require_roles(*L3_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> ParallelJobRead:
    return await _start("l3", job_id, session, actor)


# PUBLIC_INTERFACE
@l3_router.post(
    "/jobs/{job_id}/complete",
    response_model=ParallelJobRead,
    summary="Complete L3 job",
    description="A resolution is required.",
)
async def l3_complete(
    payload: CompleteL3Request,
    job_id: UUID = Path(...),
    actor: User = Depends(require_roles(*L3_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> ParallelJobRead:
    job, _ = await SpecialistQueueService(session, "l3").complete(
        job_id, actor, notes=payload.notes, resolution=payload.resolution
    )
    return ParallelJobRead.model_validate(job)


# Display

# PUBLIC_INTERFACE
@display_router.get("/queue", response_model=TechnicianQueue, summary="Display repair queue")
async def display_queue(
    actor: User = Depends(require_roles(*DISPLAY_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> TechnicianQueue:
    return await _queue("display", session, actor)


# PUBLIC_INTERFACE
@display_router.post("/jobs/{job_id}/start", response_model=ParallelJobRead, summary="Start display job")
async def display_start(
    job_id: UUID = Path(...),
    actor: User = Depends(require_roles(*DISPLAY_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> ParallelJobRead:
    return await _start("display", job_id, session, actor)


# PUBLIC_INTERFACE
@display_router.post("/jobs/{job_id}/complete", response_model=ParallelJobRead, summary="Complete display job")
async def display_complete(
    payload: CompleteDisplayRequest,
    job_id: UUID = Path(...),
    actor: User = Depends(require_roles(*DISPLAY_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> ParallelJobRead:
    job, _ = await SpecialistQueueService(session, "display").complete(job_id, actor, notes=payload.notes)
    return ParallelJobRead.model_validate(job)


# Battery

# PUBLIC_INTERFACE
@battery_router.get("/queue", response_model=TechnicianQueue, summary="Battery boost queue")
async def battery_queue(
    actor: User = Depends(require_roles(*BATTERY_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> TechnicianQueue:
    return await _queue("battery", session, actor)


# PUBLIC_INTERFACE
@battery_router.post("/jobs/{job_id}/start", response_model=ParallelJobRead, summary="Start battery job")
async def battery_start(
    job_id: UUID = Path(...),
    actor: User = Depends(require_roles(*BATTERY_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> ParallelJobRead:
    return await _start("battery", job_id, session, actor)


# PUBLIC_INTERFACE
@battery_router.post(
    "/jobs/{job_id}/complete",
    response_model=ParallelJobCompletion,
    summary="Complete battery job",
    description="Records the final capacity and reports whether it meets the target.",
)
async def battery_complete(
    payload: CompleteBatteryRequest,
    job_id: UUID = Path(...),
    actor: User = Depends(require_roles(*BATTERY_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> ParallelJobCompletion:
    job, target_met = await SpecialistQueueService(session, "battery").complete(
        job_id, actor, notes=payload.notes, final_capacity=payload.final_capacity
    )
    return ParallelJobCompletion(job=ParallelJobRead.model_validate(job), target_met=target_met)
