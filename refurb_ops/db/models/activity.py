from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import ForeignKey, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from refurb_ops.db.base import Base, JSONType, UUIDPkMixin, TimestampMixin


class ActivityLog(UUIDPkMixin, TimestampMixin, Base):
    """Who did what, for the dashboard feed and device history."""
    __tablename__ = "activity_logs"

    action: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    # "metadata" is reserved on declarative classes, so the attribute is renamed.
    extra: Mapped[Optional[dict]] = mapped_column("metadata", JSONType, nullable=True)
