# playjazz_crm/domain/billing.py
"""
Seleção das mensalidades que vencem em breve.

O status do pagamento é definido externamente; aqui só se escolhe o
conjunto que dispara o lembrete de cobrança. O envio da mensagem em si
fica fora deste módulo.
"""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Iterable, List, Optional

from pydantic import BaseModel

from playjazz_crm.utils.br import whatsapp_link
from .enums import PaymentStatus
from .models import Payment, Student

logger = logging.getLogger(__name__)

DEFAULT_DUE_SOON_DAYS = 5


def _as_date(value: date | datetime | str) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def days_until_due(payment: Payment, now: date | datetime) -> Optional[int]:
    due = _as_date(payment.due_date)
    if due is None:
        logger.debug("Pagamento %s com vencimento inválido: %r", payment.id, payment.due_date)
        return None
    return (due - _as_date(now)).days


def is_due_soon(payment: Payment, now: date | datetime, days: int = DEFAULT_DUE_SOON_DAYS) -> bool:
    """Pendente e com vencimento entre hoje e ``now + days`` (inclusive)."""
    if PaymentStatus(payment.status) != PaymentStatus.PENDING:
        return False
    delta = days_until_due(payment, now)
    return delta is not None and 0 <= delta <= days


def due_soon(
    payments: Iterable[Payment],
    now: date | datetime,
    days: int = DEFAULT_DUE_SOON_DAYS,
) -> List[Payment]:
    return [p for p in payments if is_due_soon(p, now, days)]


# ---------------- lembretes ----------------
class Reminder(BaseModel):
    payment_id: str
    student_id: str
    student_name: str
    phone: str
    message: str
    link: str


def reminder_message(student: Student, days: int = DEFAULT_DUE_SOON_DAYS) -> str:
    return f"Olá {student.name}, tudo bem? Sua fatura da PlayJazz vence em {days} dias."


def build_reminders(
    payments: Iterable[Payment],
    students: Iterable[Student],
    now: date | datetime,
    days: int = DEFAULT_DUE_SOON_DAYS,
) -> List[Reminder]:
    """Um lembrete por pagamento que vence em breve e cujo aluno é conhecido."""
    by_id = {s.id: s for s in students}
    reminders: List[Reminder] = []
    for p in due_soon(payments, now, days):
        student = by_id.get(p.student_id)
        if student is None:
            logger.warning("Pagamento %s sem aluno %s no cache; lembrete ignorado", p.id, p.student_id)
            continue
        msg = reminder_message(student, days)
        reminders.append(
            Reminder(
                payment_id=p.id,
                student_id=student.id,
                student_name=student.name,
                phone=student.phone,
                message=msg,
                link=whatsapp_link(student.phone, msg),
            )
        )
    return reminders
