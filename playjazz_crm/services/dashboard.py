# playjazz_crm/services/dashboard.py
from __future__ import annotations

from typing import Dict, Iterable

from pydantic import BaseModel

from playjazz_crm.domain.enums import LeadSource, PaymentStatus, StudentStatus
from playjazz_crm.domain.models import Lead, Payment, Student
from playjazz_crm.domain.pipeline import group_by_source


class DashboardKpis(BaseModel):
    total_leads: int = 0
    active_students: int = 0
    revenue: float = 0.0
    overdue_count: int = 0
    leads_by_source: Dict[LeadSource, int] = {}


def compute_kpis(
    leads: Iterable[Lead],
    students: Iterable[Student],
    payments: Iterable[Payment],
) -> DashboardKpis:
    """
    Indicadores do painel para a fatia de uma unidade.
    Receita = soma dos pagamentos já Pagos (não considera pendentes).
    """
    leads = list(leads)
    payments = list(payments)

    revenue = sum(p.amount for p in payments if PaymentStatus(p.status) == PaymentStatus.PAID)
    overdue = sum(1 for p in payments if PaymentStatus(p.status) == PaymentStatus.OVERDUE)
    active = sum(1 for s in students if StudentStatus(s.status) == StudentStatus.ACTIVE)

    return DashboardKpis(
        total_leads=len(leads),
        active_students=active,
        revenue=round(revenue, 2),
        overdue_count=overdue,
        leads_by_source={src: len(items) for src, items in group_by_source(leads).items()},
    )
