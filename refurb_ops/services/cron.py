from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from refurb_ops.core.settings import get_app_settings
from refurb_ops.repositories.procurement import PurchaseOrderRepository
from refurb_ops.repositories.repair import RepairJobRepository
from refurb_ops.workflow.identifiers import as_utc, utcnow
from .base import BaseService
from .dashboard import TAT_TRACKED_STATUSES
from .email import po_aging_email, send_email
from .notifications import NotificationService

logger = logging.getLogger(__name__)

APPROACHING_WINDOW = timedelta(hours=24)


def hours_remaining(due: datetime, now: datetime) -> int:
    return math.ceil((as_utc(due) - now).total_seconds() / 3600)


def days_overdue(due: datetime, now: datetime) -> int:
    return math.ceil((now - as_utc(due)).total_seconds() / 86400)


class CronService(BaseService):
    """Scheduled checks triggered over HTTP by an external scheduler."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repair_jobs = RepairJobRepository(session)
        self.orders = PurchaseOrderRepository(session)
        self.notifications = NotificationService(session)

    # PUBLIC_INTERFACE
    async def tat_notifications(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Email about repair jobs whose TAT is due within 24 hours or already passed.

        Only jobs with a running clock (under repair, in paint, awaiting QC) count.
        """
        now = as_utc(now or utcnow())
        approaching: List[str] = []
        breached: List[str] = []
        emails = 0

        for job in await self.repair_jobs.list_with_tat(TAT_TRACKED_STATUSES):
            due = as_utc(job.tat_due_date)
            device = job.device
            model = f"{device.brand} {device.model}"
            if due < now:
                results = await self.notifications.notify_tat_breached(
                    device_barcode=device.barcode,
                    device_model=model,
                    due_date=due,
                    days_overdue=days_overdue(due, now),
                    repair_eng_id=job.repair_eng_id,
                )
                breached.append(job.job_id)
            elif due <= now + APPROACHING_WINDOW:
                results = await self.notifications.notify_tat_approaching(
                    device_barcode=device.barcode,
                    device_model=model,
                    due_date=due,
                    hours_remaining=hours_remaining(due, now),
                    repair_eng_id=job.repair_eng_id,
                )
                approaching.append(job.job_id)
            else:
                continue
            emails += sum(1 for r in results if r.success)

        logger.info("TAT check: %d approaching, %d breached", len(approaching), len(breached))
        return {
            "success": True,
            "approaching": approaching,
            "breached": breached,
            "emails_sent": emails,
            "checked_at": now.isoformat(),
        }

    # PUBLIC_INTERFACE
    async def po_aging(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Alert the warehouse manager about purchase orders nobody has received yet."""
        settings = get_app_settings()
        if not settings.WAREHOUSE_MANAGER_EMAIL:
            logger.warning("PO aging check skipped: WAREHOUSE_MANAGER_EMAIL not configured")
            return {"success": False, "message": "WAREHOUSE_MANAGER_EMAIL not configured"}

        now = as_utc(now or utcnow())
        cutoff = now - timedelta(days=settings.PO_AGING_DAYS)
        aging = await self.orders.list_aging(cutoff)
        alerted: List[str] = []
        for po in aging:
            created = as_utc(po.created_at)
            template = po_aging_email(
                po.po_number,
                po.supplier_code,
                po.expected_devices,
                created,
                (now - created).days,
            )
            result = await send_email(settings.WAREHOUSE_MANAGER_EMAIL, template.subject, template.html)
            if result.success:
                alerted.append(po.po_number)

        logger.info("PO aging check: %d aging, %d alerted", len(aging), len(alerted))
        return {
            "success": True,
            "aging": [po.po_number for po in aging],
            "alerted": alerted,
            "message": f"Processed {len(aging)} aging purchase orders",
        }
