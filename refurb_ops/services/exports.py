from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from refurb_ops.db.models.inventory import Device
from refurb_ops.db.models.quality import QCRecord
from refurb_ops.db.models.repair import RepairJob
from refurb_ops.db.models.security import User
from refurb_ops.repositories.inventory import DeviceRepository
from refurb_ops.workflow.enums import Ownership
from .base import BaseService

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@dataclass
class ExportFile:
    content: bytes
    media_type: str
    filename: str


def format_cell(value: Any) -> Any:
    """None becomes empty, dates become ISO strings and booleans Yes/No."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def build_dataframe(rows: Sequence[Dict[str, Any]], columns: Sequence[str]) -> pd.DataFrame:
    data = [{col: format_cell(row.get(col)) for col in columns} for row in rows]
    return pd.DataFrame(data, columns=list(columns))


def export_filename(name: str, extension: str, today: Optional[date] = None) -> str:
    today = today or datetime.now(tz=timezone.utc).date()
    return f"{name}-{today.isoformat()}.{extension}"


# PUBLIC_INTERFACE
def export_dataframe(df: pd.DataFrame, name: str, export_format: str = "csv") -> ExportFile:
    """
    Convert a DataFrame to csv, xlsx or pdf.

    Unknown formats fall back to csv.
    """
    export_format = (export_format or "csv").lower()

    if export_format in ("xlsx", "excel"):
        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            df.to_excel(writer, index=False, sheet_name="Report")
        return ExportFile(buffer.getvalue(), XLSX_MEDIA_TYPE, export_filename(name, "xlsx"))

    if export_format == "pdf":
        from reportlab.lib import colors
        from reportlab.lib.pagesizes import A4, landscape
        from reportlab.lib.styles import getSampleStyleSheet
        from reportlab.platypus import Paragraph, SimpleDocTemplate, Table, TableStyle

        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer, pagesize=landscape(A4), leftMargin=18, rightMargin=18, topMargin=18, bottomMargin=18
        )
        styles = getSampleStyleSheet()
        stamp = datetime.now(tz=timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
        elements: list = [Paragraph(f"{name.replace('-', ' ').title()} ({stamp})", styles["Title"])]
        table = Table([list(df.columns)] + df.astype(str).values.tolist(), repeatRows=1)
        table.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
                    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                    ("FONTSIZE", (0, 0), (-1, -1), 7),
                    ("ALIGN", (0, 0), (-1, -1), "LEFT"),
                    ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
                ]
            )
        )
        elements.append(table)
        doc.build(elements)
        return ExportFile(buffer.getvalue(), "application/pdf", export_filename(name, "pdf"))

    buffer = io.StringIO()
    df.to_csv(buffer, index=False)
    return ExportFile(buffer.getvalue().encode("utf-8"), "text/csv", export_filename(name, "csv"))


INVENTORY_COLUMNS = (
    "barcode", "category", "brand", "model", "cpu", "ram", "ssd", "gpu", "screen_size",
    "serial", "status", "ownership", "grade", "location", "repair_required",
    "paint_required", "created_at",
)
REPAIR_JOB_COLUMNS = (
    "job_id", "barcode", "model", "status", "repair_engineer", "reported_issues",
    "spares_required", "spares_issued", "repair_start_date", "repair_end_date",
    "tat_due_date", "notes",
)
QC_COLUMNS = ("barcode", "model", "status", "final_grade", "qc_engineer", "remarks", "completed_at")
RENTAL_RETURN_COLUMNS = ("barcode", "category", "brand", "model", "serial", "status", "grade", "location", "created_at")


class ExportService(BaseService):
    """Builds the tabular reports offered for download."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.devices = DeviceRepository(session)

    async def _user_names(self) -> Dict[Any, str]:
        result = await self.session.execute(select(User.id, User.name))
        return {uid: name for uid, name in result.all()}

    # PUBLIC_INTERFACE
    async def inventory_frame(self, *, include_out_of_stock: bool = False) -> pd.DataFrame:
        devices, _ = await self.devices.search(include_out_of_stock=include_out_of_stock, limit=100000)
        rows = [{col: getattr(d, col) for col in INVENTORY_COLUMNS} for d in devices]
        return build_dataframe(rows, INVENTORY_COLUMNS)

    # PUBLIC_INTERFACE
    async def repair_jobs_frame(self, *, status: Optional[str] = None) -> pd.DataFrame:
        stmt = select(RepairJob).order_by(RepairJob.created_at.desc())
        if status:
            stmt = stmt.where(RepairJob.status == status)
        jobs = list((await self.session.execute(stmt)).scalars())
        names = await self._user_names()
        rows: List[Dict[str, Any]] = []
        for job in jobs:
            rows.append(
                {
                    "job_id": job.job_id,
                    "barcode": job.device.barcode,
                    "model": job.device.model,
                    "status": job.status,
                    "repair_engineer": names.get(job.repair_eng_id),
                    "reported_issues": job.reported_issues,
                    "spares_required": job.spares_required,
                    "spares_issued": job.spares_issued,
                    "repair_start_date": job.repair_start_date,
                    "repair_end_date": job.repair_end_date,
                    "tat_due_date": job.tat_due_date,
                    "notes": job.notes,
                }
            )
        return build_dataframe(rows, REPAIR_JOB_COLUMNS)

    # PUBLIC_INTERFACE
    async def qc_records_frame(self, *, status: Optional[str] = None) -> pd.DataFrame:
        stmt = select(QCRecord).order_by(QCRecord.created_at.desc())
        if status:
            stmt = stmt.where(QCRecord.status == status)
        records = list((await self.session.execute(stmt)).scalars())
        names = await self._user_names()
        rows = [
            {
                "barcode": r.device.barcode,
                "model": r.device.model,
                "status": r.status,
                "final_grade": r.final_grade,
                "qc_engineer": names.get(r.qc_eng_id),
                "remarks": r.remarks,
                "completed_at": r.completed_at,
            }
            for r in records
        ]
        return build_dataframe(rows, QC_COLUMNS)

    # PUBLIC_INTERFACE
    async def rental_returns(self) -> List[Device]:
        return await self.devices.list_by_ownership(Ownership.RENTAL_RETURN.value)

    async def rental_returns_frame(self) -> pd.DataFrame:
        devices = await self.rental_returns()
        rows = [{col: getattr(d, col) for col in RENTAL_RETURN_COLUMNS} for d in devices]
        return build_dataframe(rows, RENTAL_RETURN_COLUMNS)
