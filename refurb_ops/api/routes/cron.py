"""
Endpoints for an external scheduler (e.g. a platform cron hitting the URL daily).

When CRON_SECRET is configured the caller must send it as a bearer token or in
the x-cron-secret header.
"""

from __future__ import annotations

import secrets
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from refurb_ops.core.settings import get_app_settings
from refurb_ops.db.session import get_async_session
from refurb_ops.services.cron import CronService

router = APIRouter(prefix="/cron", tags=["Cron"])


def verify_cron_secret(
    authorization: Optional[str] = Header(None),
    x_cron_secret: Optional[str] = Header(None),
) -> None:
    expected = get_app_settings().CRON_SECRET
    if not expected:
        return
    supplied = x_cron_secret
    if authorization and authorization.lower().startswith("bearer "):
        supplied = authorization[7:].strip()
    if not supplied or not secrets.compare_digest(supplied, expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


# PUBLIC_INTERFACE
@router.api_route(
    "/tat-notifications",
    methods=["GET", "POST"],
    response_model=Dict[str, Any],
    summary="TAT notifications",
    description="Email engineers and managers about repair jobs due within 24 hours or already overdue.",
    dependencies=[Depends(verify_cron_secret)],
)
async def tat_notifications(session: AsyncSession = Depends(get_async_session)) -> Dict[str, Any]:
    return await CronService(session).tat_notifications()


# PUBLIC_INTERFACE
@router.api_route(
    "/po-aging",
    methods=["GET", "POST"],
    response_model=Dict[str, Any],
    summary="Purchase order aging alerts",
    description="Alert the warehouse manager about purchase orders not received within PO_AGING_DAYS.",
    dependencies=[Depends(verify_cron_secret)],
)
async def po_aging(session: AsyncSession = Depends(get_async_session)) -> Dict[str, Any]:
    return await CronService(session).po_aging()
