from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from refurb_ops.core.deps import get_current_active_user, require_roles
from refurb_ops.db.models.security import User
from refurb_ops.db.session import get_async_session
from refurb_ops.schemas.devices import (
    DeviceDetail,
    DeviceUpdate,
    HistoryEvent,
    InventoryPage,
    StockMoveRequest,
)
from refurb_ops.schemas.inward import DeviceRead
from refurb_ops.services.devices import DeviceService
from refurb_ops.workflow.users import INVENTORY_ROLES

router = APIRouter(prefix="/devices", tags=["Inventory"])


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=InventoryPage,
    summary="Search inventory",
    description=(
        "Paged device search. Free text matches barcode, brand, model and serial. "
        "Dispatched devices are hidden unless include_out_of_stock is set."
    ),
    dependencies=[Depends(require_roles(*INVENTORY_ROLES))],
)
async def search_devices(
    session: AsyncSession = Depends(get_async_session),
    q: Optional[str] = Query(None, description="Search text"),
    category: Optional[str] = Query(None),
    ownership: Optional[str] = Query(None),
    grade: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    include_out_of_stock: bool = Query(False),
    sort_by: str = Query("created_at"),
    sort_order: str = Query("desc", description="asc or desc"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
) -> InventoryPage:
    return await DeviceService(session).search(
        q=q,
        category=category,
        ownership=ownership,
        grade=grade,
        status=status,
        include_out_of_stock=include_out_of_stock,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )


# PUBLIC_INTERFACE
@router.get(
    "/barcode/{barcode}",
    response_model=DeviceDetail,
    summary="Look up device by barcode",
    description="Scanner lookup used by every station; includes the latest repair job, QC records and paint panels.",
    dependencies=[Depends(get_current_active_user)],
)
async def get_device_by_barcode(
    barcode: str = Path(..., description="Scanned barcode"),
    session: AsyncSession = Depends(get_async_session),
) -> DeviceDetail:
    return await DeviceService(session).get_detail(barcode)


# PUBLIC_INTERFACE
@router.get(
    "/{device_id}",
    response_model=DeviceRead,
    summary="Get device",
    dependencies=[Depends(get_current_active_user)],
)
async def get_device(
    device_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> DeviceRead:
    return DeviceRead.model_validate(await DeviceService(session).get_device(device_id))


# PUBLIC_INTERFACE
@router.patch(
    "/{device_id}",
    response_model=DeviceRead,
    summary="Edit device",
    description="Edit identity and category-specific attributes. Dispatched devices cannot be edited.",
)
async def update_device(
    payload: DeviceUpdate,
    device_id: UUID = Path(...),
    actor: User = Depends(require_roles(*INVENTORY_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> DeviceRead:
    device = await DeviceService(session).update_device(device_id, payload, actor)
    return DeviceRead.model_validate(device)


# PUBLIC_INTERFACE
@router.post(
    "/{device_id}/move",
    response_model=DeviceRead,
    summary="Move device",
    description="Relocate a device, optionally into a rack with free capacity. Records a MOVE stock movement.",
)
async def move_device(
    payload: StockMoveRequest,
    device_id: UUID = Path(...),
    actor: User = Depends(require_roles(*INVENTORY_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> DeviceRead:
    device = await DeviceService(session).move_device(device_id, payload, actor)
    return DeviceRead.model_validate(device)


# PUBLIC_INTERFACE
@router.get(
    "/{device_id}/history",
    response_model=List[HistoryEvent],
    summary="Device history",
    description="Chronological timeline of movements, jobs, paint, QC and activity for the device.",
    dependencies=[Depends(get_current_active_user)],
)
async def device_history(
    device_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> List[HistoryEvent]:
    return await DeviceService(session).history(device_id)
