# playjazz_crm/client/mapping.py
"""
Conversão entre as linhas da API e as formas do domínio.

Do lado do servidor: ids inteiros, status em código compacto (``NEW``,
``PENDING``), valores monetários em texto decimal (``"350.00"``) e datas
com hora. Do lado do cliente: ids em texto, status pelo rótulo, valores
em float e datas ISO (``YYYY-MM-DD``).
"""
from __future__ import annotations

import functools
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Optional, TypeVar

from playjazz_crm.domain.enums import LeadStatus, PaymentStatus
from playjazz_crm.domain.models import (
    Lead,
    Payment,
    Student,
    SystemConfig,
    TimelineLog,
    Unit,
    User,
)

R = TypeVar("R")


# ---------------- helpers ----------------
def _id_out(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _id_in(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    return int(value)


def _iso_day(value: Any) -> str:
    """'2023-10-01T12:30:00' -> '2023-10-01'; vazio -> ''."""
    if not value:
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)[:10]


def _coded(enum_cls, raw: str):
    # aceita código (caso normal) e, por tolerância, o próprio rótulo
    try:
        return enum_cls.from_code(raw)
    except ValueError:
        return enum_cls.from_label(raw)


def parse_amount(raw: Any) -> float:
    try:
        return float(Decimal(str(raw)))
    except (InvalidOperation, ValueError):
        raise ValueError(f"Valor monetário inválido: {raw!r}") from None


def format_amount(amount: float) -> str:
    return f"{Decimal(str(amount)):.2f}"


def _row_converter(func: Callable[..., R]) -> Callable[..., R]:
    """Linha malformada (campo ausente, tipo errado) vira ``ValueError``."""
    @functools.wraps(func)
    def wrapper(row: Any) -> R:
        try:
            return func(row)
        except (KeyError, TypeError, AttributeError) as e:
            raise ValueError(f"Linha inválida para {func.__name__}: {e!r}") from e
    return wrapper


# ---------------- units / users ----------------
@_row_converter
def unit_from_row(row: Dict[str, Any]) -> Unit:
    return Unit(id=str(row["id"]), name=row["name"])


@_row_converter
def user_from_row(row: Dict[str, Any]) -> User:
    return User(
        id=str(row["id"]),
        name=row["name"],
        email=row["email"],
        role=row.get("role") or "manager",
        unit_id=_id_out(row.get("unitId")),
    )


def user_to_row(user: User) -> Dict[str, Any]:
    return {
        "name": user.name,
        "email": user.email,
        "role": user.role.value,
        "unitId": _id_in(user.unit_id),
    }


# ---------------- leads ----------------
@_row_converter
def lead_from_row(row: Dict[str, Any]) -> Lead:
    created = _iso_day(row.get("createdAt"))
    return Lead(
        id=str(row["id"]),
        unit_id=str(row["unitId"]),
        name=row["name"],
        phone=row["phone"],
        email=row.get("email") or "",
        instrument=row.get("instrument") or "",
        source=row["source"],
        status=_coded(LeadStatus, row["status"]),
        created_at=date.fromisoformat(created) if created else None,
    )


def lead_to_row(lead: Lead) -> Dict[str, Any]:
    return {
        "unitId": _id_in(lead.unit_id),
        "name": lead.name,
        "phone": lead.phone,
        "email": lead.email,
        "instrument": lead.instrument,
        "source": lead.source.value,
        "status": LeadStatus(lead.status).code,
    }


# ---------------- students ----------------
@_row_converter
def timeline_from_row(row: Dict[str, Any]) -> TimelineLog:
    return TimelineLog(
        id=str(row["id"]),
        date=_iso_day(row.get("date")),
        type=row["type"],
        message=row["message"],
    )


def timeline_to_row(log: TimelineLog) -> Dict[str, Any]:
    body: Dict[str, Any] = {"type": log.type.value, "message": log.message}
    if log.date:
        body["date"] = f"{log.date[:10]}T00:00:00"
    return body


@_row_converter
def student_from_row(row: Dict[str, Any]) -> Student:
    return Student(
        id=str(row["id"]),
        unit_id=str(row["unitId"]),
        name=row["name"],
        phone=row["phone"],
        email=row.get("email") or "",
        birth_date=row.get("birthDate") or "",
        responsible_name=row.get("responsibleName"),
        course=row.get("course") or "",
        status=row.get("status") or "Active",
        timeline=[timeline_from_row(log) for log in (row.get("timeline") or [])],
    )


def student_to_row(student: Student) -> Dict[str, Any]:
    # timeline não vai no corpo; é gerida por endpoint próprio
    return {
        "unitId": _id_in(student.unit_id),
        "name": student.name,
        "phone": student.phone,
        "email": student.email,
        "birthDate": student.birth_date,
        "responsibleName": student.responsible_name,
        "course": student.course,
        "status": student.status.value,
    }


# ---------------- payments ----------------
@_row_converter
def payment_from_row(row: Dict[str, Any]) -> Payment:
    return Payment(
        id=str(row["id"]),
        student_id=str(row["studentId"]),
        unit_id=str(row["unitId"]),
        amount=parse_amount(row["amount"]),
        due_date=_iso_day(row.get("dueDate")),
        status=_coded(PaymentStatus, row["status"]),
        description=row.get("description") or "",
    )


def payment_to_row(payment: Payment) -> Dict[str, Any]:
    return {
        "studentId": _id_in(payment.student_id),
        "unitId": _id_in(payment.unit_id),
        "amount": format_amount(payment.amount),
        "dueDate": payment.due_date,
        "status": PaymentStatus(payment.status).code,
        "description": payment.description,
    }


# ---------------- config ----------------
@_row_converter
def config_from_json(data: Dict[str, Any]) -> SystemConfig:
    return SystemConfig.model_validate(data or {})


def config_to_json(config: SystemConfig) -> Dict[str, Any]:
    return config.to_dict()
