from __future__ import annotations

from decimal import Decimal

from sqlalchemy import (
    Integer,
    String,
    ForeignKey,
    Numeric,
    CheckConstraint,
    Index,
)
from sqlalchemy.orm import Mapped, mapped_column

from playjazz_crm.db.base import Base
from playjazz_crm.domain.enums import PAYMENT_STATUS_CODES
from playjazz_crm.modules.students.models import Student as StudentModel


class Payment(Base):
    __tablename__ = "payments"

    __table_args__ = (
        # guarda só valores conhecidos de status
        CheckConstraint(
            f"status in {PAYMENT_STATUS_CODES}",
            name="ck_payment_status_valido",
        ),
        Index("ix_payment_unit_status", "unit_id", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    student_id: Mapped[int] = mapped_column(
        ForeignKey(f"{StudentModel.__tablename__}.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )

    # duplicado do aluno para filtrar por unidade sem join
    unit_id: Mapped[int] = mapped_column(
        ForeignKey("units.id", ondelete="CASCADE"), index=True, nullable=False
    )

    # Decimal é mais seguro p/ dinheiro
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    # "YYYY-MM-DD"
    due_date: Mapped[str] = mapped_column(String(10), nullable=False, index=True)

    # PENDING | PAID | OVERDUE (definido externamente, nunca calculado aqui)
    status: Mapped[str] = mapped_column(String(16), default="PENDING", nullable=False)

    description: Mapped[str] = mapped_column(String(200), nullable=False, default="")
