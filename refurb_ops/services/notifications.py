from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from refurb_ops.db.models.security import User
from refurb_ops.repositories.security import UserRepository
from refurb_ops.workflow.enums import Role
from .base import BaseService
from .email import (
    EmailResult,
    EmailTemplate,
    paint_ready_email,
    qc_failed_email,
    send_email,
    spares_requested_email,
    tat_approaching_email,
    tat_breached_email,
)

logger = logging.getLogger(__name__)

SPARES_RECIPIENT_ROLES = (Role.WAREHOUSE_MANAGER, Role.MIS_WAREHOUSE_EXECUTIVE, Role.ADMIN)
TAT_APPROACHING_ROLES = (Role.ADMIN, Role.WAREHOUSE_MANAGER)
TAT_BREACHED_ROLES = (Role.ADMIN, Role.WAREHOUSE_MANAGER, Role.SUPERADMIN)


def dedupe_by_email(users: Iterable[User]) -> List[User]:
    """Keep the first user seen for each email address, preserving order."""
    seen = set()
    unique: List[User] = []
    for user in users:
        key = user.email.lower()
        if key in seen:
            continue
        seen.add(key)
        unique.append(user)
    return unique


class NotificationService(BaseService):
    """
    Works out who should hear about a workflow event and emails them.

    Notification failures are logged; they never propagate into the workflow
    action that triggered them.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.users = UserRepository(session)

    async def _active_user(self, user_id: Optional[UUID]) -> Optional[User]:
        if not user_id:
            return None
        user = await self.users.get_user_by_id(user_id)
        if user is None or not user.active or user.is_deleted:
            return None
        return user

    async def _recipients(self, engineer_id: Optional[UUID], roles: Sequence[Role]) -> List[User]:
        recipients: List[User] = []
        engineer = await self._active_user(engineer_id)
        if engineer is not None:
            recipients.append(engineer)
        recipients.extend(await self.users.list_active_by_roles(roles))
        return dedupe_by_email(recipients)

    async def _deliver(self, kind: str, recipients: Sequence[User], build) -> List[EmailResult]:
        results: List[EmailResult] = []
        for recipient in recipients:
            try:
                template: EmailTemplate = build(recipient)
                results.append(await send_email(recipient.email, template.subject, template.html))
            except Exception:
                logger.exception("Failed to notify %s about %s", recipient.email, kind)
        logger.info("%s: notified %d recipients", kind, len(results))
        return results

    # PUBLIC_INTERFACE
    async def notify_spares_requested(
        self, *, device_barcode: str, device_model: str, spares_required: str, requested_by: str
    ) -> List[EmailResult]:
        recipients = dedupe_by_email(await self.users.list_active_by_roles(SPARES_RECIPIENT_ROLES))
        return await self._deliver(
            "Spares requested",
            recipients,
            lambda r: spares_requested_email(r.name, device_barcode, device_model, spares_required, requested_by),
        )

    # PUBLIC_INTERFACE
    async def notify_qc_failed(
        self,
        *,
        device_barcode: str,
        device_model: str,
        remarks: Optional[str],
        qc_engineer: str,
        repair_eng_id: Optional[UUID],
    ) -> List[EmailResult]:
        engineer = await self._active_user(repair_eng_id)
        if engineer is None:
            logger.info("QC failed for %s: no repair engineer to notify", device_barcode)
            return []
        return await self._deliver(
            "QC failed",
            [engineer],
            lambda r: qc_failed_email(
                r.name, device_barcode, device_model, remarks or "No remarks provided", qc_engineer
            ),
        )

    # PUBLIC_INTERFACE
    async def notify_paint_ready(
        self,
        *,
        device_barcode: str,
        device_model: str,
        panels: Sequence[str],
        repair_eng_id: Optional[UUID],
    ) -> List[EmailResult]:
        engineer = await self._active_user(repair_eng_id)
        if engineer is None:
            logger.info("Paint ready for %s: no repair engineer to notify", device_barcode)
            return []
        return await self._deliver(
            "Paint ready",
            [engineer],
            lambda r: paint_ready_email(r.name, device_barcode, device_model, panels),
        )

    # PUBLIC_INTERFACE
    async def notify_tat_approaching(
        self, *, device_barcode: str, device_model: str, due_date, hours_remaining: int, repair_eng_id: Optional[UUID]
    ) -> List[EmailResult]:
        recipients = await self._recipients(repair_eng_id, TAT_APPROACHING_ROLES)
        return await self._deliver(
            "TAT approaching",
            recipients,
            lambda r: tat_approaching_email(r.name, device_barcode, device_model, due_date, hours_remaining),
        )

    # PUBLIC_INTERFACE
    async def notify_tat_breached(
        self, *, device_barcode: str, device_model: str, due_date, days_overdue: int, repair_eng_id: Optional[UUID]
    ) -> List[EmailResult]:
        recipients = await self._recipients(repair_eng_id, TAT_BREACHED_ROLES)
        return await self._deliver(
            "TAT breached",
            recipients,
            lambda r: tat_breached_email(r.name, device_barcode, device_model, due_date, days_overdue),
        )
