from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from refurb_ops.core.deps import require_roles
from refurb_ops.db.models.security import User
from refurb_ops.db.session import get_async_session
from refurb_ops.schemas.inspection import InspectionResult, InspectionStart, InspectionSubmit
from refurb_ops.schemas.inward import DeviceRead
from refurb_ops.schemas.quality import ChecklistDefinitionRead
from refurb_ops.schemas.repair import RepairJobRead
from refurb_ops.services.inspection import InspectionService
from refurb_ops.workflow.users import INSPECTION_ROLES

router = APIRouter(prefix="/inspection", tags=["Inspection"])


# PUBLIC_INTERFACE
@router.post(
    "/start/{barcode}",
    response_model=InspectionStart,
    summary="Start inspection",
    description="Scan a RECEIVED or PENDING_INSPECTION device and get the checklist for its category.",
    dependencies=[Depends(require_roles(*INSPECTION_ROLES))],
)
async def start_inspection(
    barcode: str = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> InspectionStart:
    device, definitions = await InspectionService(session).start(barcode)
    return InspectionStart(
        device=DeviceRead.model_validate(device),
        checklist=[ChecklistDefinitionRead(**d._asdict()) for d in definitions],
    )


# PUBLIC_INTERFACE
@router.post(
    "/{device_id}/submit",
    response_model=InspectionResult,
    summary="Submit inspection",
    description=(
        "Record checklist results and issues. Devices with issues get a repair job and go to "
        "WAITING_FOR_SPARES or READY_FOR_REPAIR; clean devices go to AWAITING_QC, or to the "
        "paint shop when panels were selected."
    ),
)
async def submit_inspection(
    payload: InspectionSubmit,
    device_id: UUID = Path(...),
    actor: User = Depends(require_roles(*INSPECTION_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> InspectionResult:
    device, job = await InspectionService(session).submit(device_id, payload, actor)
    return InspectionResult(
        device=DeviceRead.model_validate(device),
        repair_job=RepairJobRead.model_validate(job) if job else None,
    )
