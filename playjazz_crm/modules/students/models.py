from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Integer, Text, DateTime, ForeignKey, CheckConstraint, func
from playjazz_crm.db.base import Base
from playjazz_crm.domain.enums import LOG_TYPES, STUDENT_STATUSES


class Student(Base):
    __tablename__ = "students"
    __table_args__ = (
        CheckConstraint(f"status in {STUDENT_STATUSES}", name="ck_student_status_valido"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    unit_id: Mapped[int] = mapped_column(Integer, ForeignKey("units.id", ondelete="CASCADE"), index=True, nullable=False)

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    phone: Mapped[str] = mapped_column(String(40), nullable=False)
    email: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    birth_date: Mapped[str] = mapped_column(String(10), nullable=False, default="")  # YYYY-MM-DD
    responsible_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    course: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="Active")

    # ordem de exibição = ordem de inserção (id)
    timeline: Mapped[list["TimelineLog"]] = relationship(
        "TimelineLog",
        back_populates="student",
        order_by="TimelineLog.id.asc()",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class TimelineLog(Base):
    __tablename__ = "timeline_logs"
    __table_args__ = (
        CheckConstraint(f"type in {LOG_TYPES}", name="ck_timeline_type_valido"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    student_id: Mapped[int] = mapped_column(
        ForeignKey("students.id", ondelete="CASCADE"), index=True, nullable=False
    )
    date: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, server_default=func.now())
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)

    student: Mapped["Student"] = relationship("Student", back_populates="timeline")
