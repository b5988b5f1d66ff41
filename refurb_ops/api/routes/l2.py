"""
L2 engineer bench.

An L2 engineer claims a device after inspection and owns it until QC. Display,
battery, L3 and paint work fan out from here and come back through collect.
"""

from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from refurb_ops.core.deps import require_roles
from refurb_ops.db.models.security import User
from refurb_ops.db.session import get_async_session
from refurb_ops.schemas.inward import DeviceRead
from refurb_ops.schemas.repair import (
    CompleteBatteryRequest,
    CompleteDisplayRequest,
    L2DeviceSummary,
    PaintPanelRead,
    ParallelJobCompletion,
    ParallelJobRead,
    RepairJobWithDevice,
    SendToBatteryRequest,
    SendToDisplayRequest,
    SendToL3Request,
    SendToPaintRequest,
    SparesRequest,
)
from refurb_ops.services.l2 import L2Service
from refurb_ops.services.repair import job_with_device
from refurb_ops.workflow.users import L2_ROLES

router = APIRouter(prefix="/l2", tags=["L2 Repair"])


# PUBLIC_INTERFACE
@router.get(
    "/ready",
    response_model=List[RepairJobWithDevice],
    summary="Devices ready to claim",
    dependencies=[Depends(require_roles(*L2_ROLES))],
)
async def ready_to_claim(session: AsyncSession = Depends(get_async_session)) -> List[RepairJobWithDevice]:
    return [job_with_device(j) for j in await L2Service(session).ready_to_claim()]


# PUBLIC_INTERFACE
@router.get(
    "/my-devices",
    response_model=List[L2DeviceSummary],
    summary="My claimed devices",
    description="Every open device I own with its parallel work and what still blocks QC.",
)
async def my_devices(
    actor: User = Depends(require_roles(*L2_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> List[L2DeviceSummary]:
    return await L2Service(session).my_devices(actor)


# PUBLIC_INTERFACE
@router.get("/devices/{device_id}", response_model=L2DeviceSummary, summary="Device on my bench")
async def device_summary(
    device_id: UUID = Path(...),
    actor: User = Depends(require_roles(*L2_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> L2DeviceSummary:
    return await L2Service(session).device_summary(device_id, actor)


# PUBLIC_INTERFACE
@router.post("/devices/{device_id}/claim", response_model=RepairJobWithDevice, summary="Claim device")
async def claim_device(
    device_id: UUID = Path(...),
    actor: User = Depends(require_roles(*L2_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> RepairJobWithDevice:
    return job_with_device(await L2Service(session).claim(device_id, actor))


# PUBLIC_INTERFACE
@router.post("/devices/{device_id}/send-to-display", response_model=ParallelJobRead, summary="Send to display repair")
async def send_to_display(
    payload: SendToDisplayRequest,
    device_id: UUID = Path(...),
    actor: User = Depends(require_roles(*L2_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> ParallelJobRead:
    return ParallelJobRead.model_validate(await L2Service(session).send_to_display(device_id, payload, actor))


# PUBLIC_INTERFACE
@router.post("/devices/{device_id}/send-to-battery", response_model=ParallelJobRead, summary="Send to battery boost")
async def send_to_battery(
    payload: SendToBatteryRequest,
    device_id: UUID = Path(...),
    actor: User = Depends(require_roles(*L2_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> ParallelJobRead:
    return ParallelJobRead.model_validate(await L2Service(session).send_to_battery(device_id, payload, actor))


# PUBLIC_INTERFACE
@router.post("/devices/{device_id}/send-to-l3", response_model=ParallelJobRead, summary="Escalate to L3")
async def send_to_l3(
    payload: SendToL3Request,
    device_id: UUID = Path(...),
    actor: User = Depends(require_roles(*L2_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> ParallelJobRead:
    return ParallelJobRead.model_validate(await L2Service(session).send_to_l3(device_id, payload, actor))


# PUBLIC_INTERFACE
@router.post(
    "/devices/{device_id}/send-to-paint",
    response_model=List[PaintPanelRead],
    summary="Send panels to paint",
    description="Paint runs alongside the repair; the device keeps its status.",
)
async def send_to_paint(
    payload: SendToPaintRequest,
    device_id: UUID = Path(...),
    actor: User = Depends(require_roles(*L2_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> List[PaintPanelRead]:
    panels = await L2Service(session).send_to_paint(device_id, payload.panels, actor)
    return [PaintPanelRead.model_validate(p) for p in panels]


# PUBLIC_INTERFACE
@router.post(
    "/devices/{device_id}/complete-display",
    response_model=ParallelJobRead,
    summary="Complete display repair myself",
)
async def complete_display(
    payload: CompleteDisplayRequest,
    device_id: UUID = Path(...),
    actor: User = Depends(require_roles(*L2_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> ParallelJobRead:
    job = await L2Service(session).complete_display(device_id, payload.notes, actor)
    return ParallelJobRead.model_validate(job)


# PUBLIC_INTERFACE
@router.post(
    "/devices/{device_id}/complete-battery",
    response_model=ParallelJobCompletion,
    summary="Complete battery boost myself",
)
async def complete_battery(
    payload: CompleteBatteryRequest,
    device_id: UUID = Path(...),
    actor: User = Depends(require_roles(*L2_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> ParallelJobCompletion:
    job, target_met = await L2Service(session).complete_battery(device_id, payload, actor)
    return ParallelJobCompletion(job=ParallelJobRead.model_validate(job), target_met=target_met)


# PUBLIC_INTERFACE
@router.post(
    "/devices/{device_id}/collect/{kind}",
    response_model=DeviceRead,
    summary="Collect finished work",
    description="kind is display, battery, l3 or paint. Marks the work done on the device.",
)
async def collect(
    device_id: UUID = Path(...),
    kind: str = Path(..., description="display | battery | l3 | paint"),
    actor: User = Depends(require_roles(*L2_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> DeviceRead:
    return DeviceRead.model_validate(await L2Service(session).collect(kind, device_id, actor))


# PUBLIC_INTERFACE
@router.post("/devices/{device_id}/request-spares", response_model=RepairJobWithDevice, summary="Request spares")
async def request_spares(
    payload: SparesRequest,
    device_id: UUID = Path(...),
    actor: User = Depends(require_roles(*L2_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> RepairJobWithDevice:
    job = await L2Service(session).request_spares(device_id, payload.spares_required, actor)
    return job_with_device(job)


# PUBLIC_INTERFACE
@router.post(
    "/devices/{device_id}/send-to-qc",
    response_model=RepairJobWithDevice,
    summary="Send to QC",
    description="Allowed once every required display, battery, L3 and paint step is completed.",
)
async def send_to_qc(
    device_id: UUID = Path(...),
    actor: User = Depends(require_roles(*L2_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> RepairJobWithDevice:
    return job_with_device(await L2Service(session).send_to_qc(device_id, actor))
