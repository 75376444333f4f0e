from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from playjazz_crm.db.base import Base
from playjazz_crm.domain.enums import LEAD_SOURCES, LEAD_STATUS_CODES


class Lead(Base):
    __tablename__ = "leads"

    __table_args__ = (
        CheckConstraint(f"status in {LEAD_STATUS_CODES}", name="ck_lead_status_valido"),
        CheckConstraint(f"source in {LEAD_SOURCES}", name="ck_lead_source_valido"),
        Index("ix_lead_unit_status", "unit_id", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    unit_id: Mapped[int] = mapped_column(
        ForeignKey("units.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )

    name: Mapped[str] = mapped_column(String(160), nullable=False)
    phone: Mapped[str] = mapped_column(String(30), nullable=False)
    email: Mapped[str] = mapped_column(String(160), nullable=False, default="")
    instrument: Mapped[str] = mapped_column(String(120), nullable=False, default="")
    source: Mapped[str] = mapped_column(String(20), nullable=False)

    # código compacto (NEW, CONTACTED...); o rótulo é papel do cliente
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="NEW")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False), nullable=False, server_default=func.now()
    )
