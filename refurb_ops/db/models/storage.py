from __future__ import annotations

from sqlalchemy import Integer, LargeBinary, Text
from sqlalchemy.orm import Mapped, mapped_column

from refurb_ops.db.base import Base, UUIDPkMixin, TimestampMixin


class StoredDocument(UUIDPkMixin, TimestampMixin, Base):
    """An uploaded purchase order or delivery challan kept in the database."""
    __tablename__ = "stored_documents"

    folder: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    key: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    file_name: Mapped[str] = mapped_column(Text, nullable=False)
    content_type: Mapped[str] = mapped_column(Text, nullable=False)
    size: Mapped[int] = mapped_column(Integer, nullable=False)
    data: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
