from __future__ import annotations

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from refurb_ops.core.errors import NotFoundError
from refurb_ops.db.base import utcnow
from refurb_ops.db.models.inventory import Device
from refurb_ops.repositories.inventory import DeviceRepository
from refurb_ops.repositories.repair import RepairJobRepository
from refurb_ops.workflow.identifiers import generate_job_id


class BaseService:
    """
    Base class for services. Holds the request session shared by the
    repositories a service uses.

    Services own the workflow rules and commit boundaries; queries stay in
    repositories.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def load_device(self, device_id: UUID) -> Device:
        device = await DeviceRepository(self.session).get_device(device_id)
        if device is None:
            raise NotFoundError("Device not found")
        return device

    async def new_job_id(self) -> str:
        """Next JOB-YYYY-NNNN id for a repair job opened now."""
        year = utcnow().year
        return generate_job_id(year, await RepairJobRepository(self.session).count_for_year(year))
