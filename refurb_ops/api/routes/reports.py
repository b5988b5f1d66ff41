from __future__ import annotations

import io
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from refurb_ops.core.deps import require_roles
from refurb_ops.db.session import get_async_session
from refurb_ops.schemas.inward import DeviceRead
from refurb_ops.services.exports import ExportFile, ExportService, export_dataframe
from refurb_ops.workflow.users import INVENTORY_ROLES, QC_ROLES, REPAIR_ROLES

# PUBLIC_INTERFACE
router = APIRouter(prefix="/reports", tags=["Reports"])

FORMAT_QUERY = Query("csv", description="Export format: csv | xlsx | pdf")


def _stream(export: ExportFile) -> StreamingResponse:
    headers = {"Content-Disposition": f'attachment; filename="{export.filename}"'}
    return StreamingResponse(io.BytesIO(export.content), media_type=export.media_type, headers=headers)


# PUBLIC_INTERFACE
@router.get(
    "/inventory",
    summary="Inventory report",
    description="Every device currently in stock with its attributes, status, grade and location.",
    response_description="File stream (CSV/XLSX/PDF)",
    dependencies=[Depends(require_roles(*INVENTORY_ROLES))],
)
async def inventory_report(
    session: AsyncSession = Depends(get_async_session),
    include_out_of_stock: bool = Query(False, description="Include dispatched devices"),
    format: str = FORMAT_QUERY,
):
    df = await ExportService(session).inventory_frame(include_out_of_stock=include_out_of_stock)
    return _stream(export_dataframe(df, "inventory", format))


# PUBLIC_INTERFACE
@router.get(
    "/repair-jobs",
    summary="Repair jobs report",
    response_description="File stream (CSV/XLSX/PDF)",
    dependencies=[Depends(require_roles(*REPAIR_ROLES, *INVENTORY_ROLES))],
)
async def repair_jobs_report(
    session: AsyncSession = Depends(get_async_session),
    status: Optional[str] = Query(None, description="Filter by job status"),
    format: str = FORMAT_QUERY,
):
    df = await ExportService(session).repair_jobs_frame(status=status)
    return _stream(export_dataframe(df, "repair-jobs", format))


# PUBLIC_INTERFACE
@router.get(
    "/qc",
    summary="QC report",
    response_description="File stream (CSV/XLSX/PDF)",
    dependencies=[Depends(require_roles(*QC_ROLES, *INVENTORY_ROLES))],
)
async def qc_report(
    session: AsyncSession = Depends(get_async_session),
    status: Optional[str] = Query(None, description="PASSED or FAILED_REWORK"),
    format: str = FORMAT_QUERY,
):
    df = await ExportService(session).qc_records_frame(status=status)
    return _stream(export_dataframe(df, "qc-records", format))


# PUBLIC_INTERFACE
@router.get(
    "/rental-returns",
    response_model=List[DeviceRead],
    summary="Rental returns",
    description="Devices that came back from rental customers.",
    dependencies=[Depends(require_roles(*INVENTORY_ROLES))],
)
async def rental_returns(session: AsyncSession = Depends(get_async_session)) -> List[DeviceRead]:
    devices = await ExportService(session).rental_returns()
    return [DeviceRead.model_validate(d) for d in devices]


# PUBLIC_INTERFACE
@router.get(
    "/rental-returns/export",
    summary="Rental returns export",
    response_description="File stream (CSV/XLSX/PDF)",
    dependencies=[Depends(require_roles(*INVENTORY_ROLES))],
)
async def rental_returns_export(
    session: AsyncSession = Depends(get_async_session),
    format: str = FORMAT_QUERY,
):
    df = await ExportService(session).rental_returns_frame()
    return _stream(export_dataframe(df, "rental-returns", format))
