from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from refurb_ops.core.deps import require_roles
from refurb_ops.db.models.security import User
from refurb_ops.db.session import get_async_session
from refurb_ops.schemas.common import MessageResponse
from refurb_ops.schemas.procurement import (
    PurchaseOrderCreate,
    PurchaseOrderDetail,
    PurchaseOrderRead,
    RackCreate,
    RackRead,
    RackStageStats,
    RackUpdate,
)
from refurb_ops.services.procurement import PurchaseOrderService, RackService
from refurb_ops.workflow.users import INVENTORY_ROLES, INWARD_ROLES, RACK_ROLES

router = APIRouter(tags=["Procurement"])


# PUBLIC_INTERFACE
@router.get(
    "/purchase-orders",
    response_model=List[PurchaseOrderRead],
    summary="List purchase orders",
    dependencies=[Depends(require_roles(*INWARD_ROLES))],
)
async def list_purchase_orders(
    session: AsyncSession = Depends(get_async_session),
    is_addressed: Optional[bool] = Query(None, description="Filter by whether the delivery has been received"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
) -> List[PurchaseOrderRead]:
    orders = await PurchaseOrderService(session).list_orders(is_addressed=is_addressed, limit=limit, offset=offset)
    return [PurchaseOrderRead.model_validate(o) for o in orders]


# PUBLIC_INTERFACE
@router.post(
    "/purchase-orders",
    response_model=PurchaseOrderRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create purchase order",
    description="Record the devices a supplier is expected to deliver.",
)
async def create_purchase_order(
    payload: PurchaseOrderCreate,
    actor: User = Depends(require_roles(*INWARD_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> PurchaseOrderRead:
    return PurchaseOrderRead.model_validate(await PurchaseOrderService(session).create(payload, actor))


# PUBLIC_INTERFACE
@router.get(
    "/purchase-orders/{po_id}",
    response_model=PurchaseOrderDetail,
    summary="Get purchase order",
    description="Includes the free RECEIVED rack capacity and batches opened for it.",
    dependencies=[Depends(require_roles(*INWARD_ROLES))],
)
async def get_purchase_order(
    po_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> PurchaseOrderDetail:
    return await PurchaseOrderService(session).get_detail(po_id)


# PUBLIC_INTERFACE
@router.delete(
    "/purchase-orders/{po_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete purchase order",
    description="Only purchase orders that have not been received can be deleted.",
)
async def delete_purchase_order(
    po_id: UUID = Path(...),
    actor: User = Depends(require_roles(*INWARD_ROLES)),
    session: AsyncSession = Depends(get_async_session),
) -> None:
    await PurchaseOrderService(session).delete(po_id, actor)


# PUBLIC_INTERFACE
@router.get(
    "/racks",
    response_model=List[RackRead],
    summary="List racks",
    dependencies=[Depends(require_roles(*INVENTORY_ROLES))],
)
async def list_racks(
    session: AsyncSession = Depends(get_async_session),
    stage: Optional[str] = Query(None, description="Filter by rack stage"),
) -> List[RackRead]:
    return await RackService(session).list_racks(stage=stage)


# PUBLIC_INTERFACE
@router.get(
    "/racks/stats",
    response_model=List[RackStageStats],
    summary="Rack occupancy per stage",
    dependencies=[Depends(require_roles(*INVENTORY_ROLES))],
)
async def rack_stats(session: AsyncSession = Depends(get_async_session)) -> List[RackStageStats]:
    return await RackService(session).stage_stats()


# PUBLIC_INTERFACE
@router.post(
    "/racks/initialize",
    response_model=MessageResponse,
    summary="Create default racks",
    description="Idempotent: adds any missing default racks for every stage.",
    dependencies=[Depends(require_roles(*RACK_ROLES))],
)
async def initialize_racks(session: AsyncSession = Depends(get_async_session)) -> MessageResponse:
    created = await RackService(session).initialize_defaults()
    return MessageResponse(message=f"Created {created} racks", details={"created": created})


# PUBLIC_INTERFACE
@router.post(
    "/racks",
    response_model=RackRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create rack",
    dependencies=[Depends(require_roles(*RACK_ROLES))],
)
async def create_rack(
    payload: RackCreate,
    session: AsyncSession = Depends(get_async_session),
) -> RackRead:
    return await RackService(session).create(payload)


# PUBLIC_INTERFACE
@router.patch(
    "/racks/{rack_id}",
    response_model=RackRead,
    summary="Update rack",
    description="Capacity cannot be reduced below the number of devices in the rack.",
    dependencies=[Depends(require_roles(*RACK_ROLES))],
)
async def update_rack(
    payload: RackUpdate,
    rack_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> RackRead:
    return await RackService(session).update(rack_id, payload)


# PUBLIC_INTERFACE
@router.delete(
    "/racks/{rack_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete rack",
    description="Only empty racks can be deleted.",
    dependencies=[Depends(require_roles(*RACK_ROLES))],
)
async def delete_rack(
    rack_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> None:
    await RackService(session).delete(rack_id)
