from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Path, Query, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from refurb_ops.core.deps import require_roles
from refurb_ops.db.models.security import User
from refurb_ops.db.session import get_async_session
from refurb_ops.schemas.inward import (
    BatchFromPurchaseOrder,
    BulkUploadResult,
    DeviceAdded,
    DeviceCreate,
    DeviceRead,
    InwardBatchCreate,
    InwardBatchDetail,
    InwardBatchRead,
    InwardBatchUpdate,
    VerificationOverride,
)
from refurb_ops.services.inward import InwardService
from refurb_ops.services.labels import render_labels_pdf
from refurb_ops.workflow.users import INWARD_ROLES

router = APIRouter(prefix="/inward", tags=["Inward"])


def _detail(batch, devices) -> InwardBatchDetail:
    return InwardBatchDetail(
        **InwardBatchRead.model_validate(batch).model_dump(),
        devices=[DeviceRead.model_validate(d) for d in devices],
    )


def _pdf(content: bytes, filename: str) -> Response:
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="{filename}"'},
    )


# PUBLIC_INTERFACE
@router.get(
    "/batches",
    response_model=List[InwardBatchRead],
    summary="List inward batches",
    description="Newest first, optionally filtered by inward type.",
    dependencies=[Depends(require_roles(*INWARD_ROLES))],
)
async def list_batches(
    session: AsyncSession = Depends(get_async_session),
    type: Optional[str] = Query(None, description="REFURB_PURCHASE or RENTAL_RETURN"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
) -> List[InwardBatchRead]:
    batches = await InwardService(session).list_batches(type=type, limit=limit, offset=offset)
    return [InwardBatchRead.model_validate(b) for b in batches]


# PUBLIC_INTERFACE
@router.post(
    "/batches",
    response_model=InwardBatchRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create inward batch",
)
async def create_batch(
    payload: InwardBatchCreate,
    actor: User = Depends(require_roles(*INWARD_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> InwardBatchRead:
    batch = await InwardService(session).create_batch(payload, actor)
    return InwardBatchRead.model_validate(batch)


# PUBLIC_INTERFACE
@router.post(
    "/batches/from-purchase-order",
    response_model=InwardBatchRead,
    status_code=status.HTTP_201_CREATED,
    summary="Receive a purchase order",
    description=(
        "Open a batch for a purchase order delivery. Requires the delivery challan, vehicle number "
        "and driver name, and enough free slots in RECEIVED racks for the expected devices."
    ),
)
async def create_batch_from_purchase_order(
    payload: BatchFromPurchaseOrder,
    actor: User = Depends(require_roles(*INWARD_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> InwardBatchRead:
    batch = await InwardService(session).create_batch_from_purchase_order(payload, actor)
    return InwardBatchRead.model_validate(batch)


# PUBLIC_INTERFACE
@router.get(
    "/batches/{batch_id}",
    response_model=InwardBatchDetail,
    summary="Get inward batch with devices",
    dependencies=[Depends(require_roles(*INWARD_ROLES))],
)
async def get_batch(
    batch_id: UUID = Path(..., description="Batch primary key"),
    session: AsyncSession = Depends(get_async_session),
) -> InwardBatchDetail:
    batch, devices = await InwardService(session).get_batch_with_devices(batch_id)
    return _detail(batch, devices)


# PUBLIC_INTERFACE
@router.patch(
    "/batches/{batch_id}",
    response_model=InwardBatchRead,
    summary="Update inward batch",
    description="Edit header fields. Verified or overridden batches are locked.",
)
async def update_batch(
    payload: InwardBatchUpdate,
    batch_id: UUID = Path(...),
    actor: User = Depends(require_roles(*INWARD_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> InwardBatchRead:
    batch = await InwardService(session).update_batch(batch_id, payload, actor)
    return InwardBatchRead.model_validate(batch)


# PUBLIC_INTERFACE
@router.post(
    "/batches/{batch_id}/devices",
    response_model=DeviceAdded,
    status_code=status.HTTP_201_CREATED,
    summary="Add device to batch",
    description="Register one device; a barcode is generated and the device is parked in a RECEIVED rack if one has room.",
)
async def add_device(
    payload: DeviceCreate,
    batch_id: UUID = Path(...),
    actor: User = Depends(require_roles(*INWARD_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> DeviceAdded:
    device, warnings = await InwardService(session).add_device(batch_id, payload, actor)
    return DeviceAdded(device=DeviceRead.model_validate(device), warnings=warnings)


# PUBLIC_INTERFACE
@router.post(
    "/batches/{batch_id}/bulk-upload",
    response_model=BulkUploadResult,
    summary="Bulk upload devices",
    description="Upload an .xlsx workbook (one sheet per category). Valid rows are created; invalid rows are reported with row numbers.",
)
async def bulk_upload(
    batch_id: UUID = Path(...),
    file: UploadFile = File(..., description="Excel workbook"),
    actor: User = Depends(require_roles(*INWARD_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> BulkUploadResult:
    content = await file.read()
    return await InwardService(session).bulk_upload(batch_id, content, actor)


# PUBLIC_INTERFACE
@router.post(
    "/batches/{batch_id}/verify",
    response_model=Dict[str, Any],
    summary="Verify against purchase order",
    description="Compare received devices with the purchase order's expected items and lock the batch with the result.",
)
async def verify_batch(
    batch_id: UUID = Path(...),
    actor: User = Depends(require_roles(*INWARD_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> Dict[str, Any]:
    outcome = await InwardService(session).verify_against_purchase_order(batch_id, actor)
    return outcome.as_dict()


# PUBLIC_INTERFACE
@router.post(
    "/batches/{batch_id}/override",
    response_model=InwardBatchRead,
    summary="Accept batch without verification",
)
async def override_verification(
    payload: VerificationOverride,
    batch_id: UUID = Path(...),
    actor: User = Depends(require_roles(*INWARD_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> InwardBatchRead:
    batch = await InwardService(session).override_verification(batch_id, payload.reason, actor)
    return InwardBatchRead.model_validate(batch)


# PUBLIC_INTERFACE
@router.get(
    "/batches/{batch_id}/labels",
    summary="Barcode labels for a batch",
    description="PDF with two labels per device, four labels per page.",
    response_class=Response,
    dependencies=[Depends(require_roles(*INWARD_ROLES))],
)
async def batch_labels(
    batch_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> Response:
    svc = InwardService(session)
    batch = await svc.get_batch(batch_id)
    devices = await svc.label_devices(batch_pk=batch.id)
    return _pdf(render_labels_pdf(devices), f"labels-{batch.batch_id}.pdf")


# PUBLIC_INTERFACE
@router.get(
    "/devices/{device_id}/labels",
    summary="Barcode labels for one device",
    response_class=Response,
    dependencies=[Depends(require_roles(*INWARD_ROLES))],
)
async def device_labels(
    device_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> Response:
    devices = await InwardService(session).label_devices(device_id=device_id)
    return _pdf(render_labels_pdf(devices), f"labels-{devices[0].barcode}.pdf")
