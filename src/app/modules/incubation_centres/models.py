"""
Incubation Centre Models

Lookup table mapping a centre's display name (as chosen on the
application form) to the reviewer address that receives approval links.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class IncubationCentre(Base):
    """An incubation centre and the admin who reviews its applications."""

    __tablename__ = "incubation_centres"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    name: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    admin_email: Mapped[str] = mapped_column(String(255), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<IncubationCentre(id={self.id}, name={self.name})>"
