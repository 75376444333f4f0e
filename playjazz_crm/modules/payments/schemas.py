# playjazz_crm/modules/payments/schemas.py
from __future__ import annotations
from typing import Optional, Literal
from datetime import date
from decimal import Decimal
from pydantic import Field, field_serializer, field_validator

from playjazz_crm.core.schemas import WireModel

PaymentStatusCode = Literal["PENDING", "PAID", "OVERDUE"]


def _check_iso_date(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    date.fromisoformat(v)  # valida; mantém texto
    return v


class PaymentOut(WireModel):
    id: int
    student_id: int
    unit_id: int
    amount: Decimal
    due_date: str
    status: PaymentStatusCode
    description: str

    @field_serializer("amount")
    def _serialize_amount(self, v: Decimal, _info):
        # texto decimal de ponto fixo, ex.: "350.00"
        return f"{Decimal(v):.2f}"


class PaymentCreate(WireModel):
    student_id: int
    unit_id: Optional[int] = None  # vazio = unidade do aluno
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    due_date: str
    status: PaymentStatusCode = "PENDING"
    description: str = ""

    @field_validator("due_date")
    @classmethod
    def _valid_due_date(cls, v):
        return _check_iso_date(v)


class PaymentUpdate(WireModel):
    amount: Optional[Decimal] = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    due_date: Optional[str] = None
    status: Optional[PaymentStatusCode] = None
    description: Optional[str] = None

    @field_validator("due_date")
    @classmethod
    def _valid_due_date(cls, v):
        return _check_iso_date(v)
