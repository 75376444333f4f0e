# playjazz_crm/domain/pipeline.py
"""
Funil comercial dos leads.

O "avançar" automático é linear (uma etapa por vez, nunca sai de
Matriculado/Perdido). A atribuição direta (arrastar o card para outra
coluna) é livre: qualquer status a partir de qualquer status.
"""
from __future__ import annotations

from typing import Iterable, List, Dict, Optional

from .enums import LeadSource, LeadStatus
from .models import Lead

PIPELINE_ORDER: tuple[LeadStatus, ...] = (
    LeadStatus.NEW,
    LeadStatus.CONTACTED,
    LeadStatus.TRIAL,
    LeadStatus.NEGOTIATION,
    LeadStatus.WON,
    LeadStatus.LOST,
)

TERMINAL_STATUSES = frozenset({LeadStatus.WON, LeadStatus.LOST})


def is_terminal(status: LeadStatus) -> bool:
    return LeadStatus(status) in TERMINAL_STATUSES


def next_status(status: LeadStatus) -> Optional[LeadStatus]:
    """Próxima etapa do funil, ou ``None`` se o status for terminal."""
    status = LeadStatus(status)
    if status in TERMINAL_STATUSES:
        return None
    idx = PIPELINE_ORDER.index(status)
    return PIPELINE_ORDER[idx + 1]


def advance(lead: Lead) -> Lead:
    """Avança uma etapa. Em status terminal devolve o próprio lead (no-op)."""
    nxt = next_status(lead.status)
    if nxt is None:
        return lead
    return lead.model_copy(update={"status": nxt})


def set_status(lead: Lead, status: LeadStatus | str) -> Lead:
    """Atribuição direta, sem restrição de origem/destino."""
    return lead.model_copy(update={"status": LeadStatus(status)})


# ---------------- helpers de visualização ----------------
def group_by_status(leads: Iterable[Lead]) -> Dict[LeadStatus, List[Lead]]:
    """Colunas do quadro, na ordem do funil (colunas vazias inclusas)."""
    columns: Dict[LeadStatus, List[Lead]] = {s: [] for s in PIPELINE_ORDER}
    for lead in leads:
        columns[LeadStatus(lead.status)].append(lead)
    return columns


def group_by_source(leads: Iterable[Lead]) -> Dict[LeadSource, List[Lead]]:
    groups: Dict[LeadSource, List[Lead]] = {s: [] for s in LeadSource}
    for lead in leads:
        groups[LeadSource(lead.source)].append(lead)
    return groups


def available_instruments(leads: Iterable[Lead]) -> List[str]:
    return sorted({lead.instrument for lead in leads if lead.instrument})


def filter_by_instrument(leads: Iterable[Lead], instrument: str | None) -> List[Lead]:
    # vazio = todos os instrumentos
    if not instrument:
        return list(leads)
    return [lead for lead in leads if lead.instrument == instrument]
