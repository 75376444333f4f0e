# playjazz_crm/domain/enums.py
"""
Enumerações do domínio.

Status de lead e de pagamento têm duas representações: o código compacto
gravado no banco (``NEW``, ``PENDING``...) e o rótulo exibido ao usuário
(``Novo Lead``, ``Pendente``...). O valor do Enum é o rótulo; o nome do
membro é o código. A conversão nos dois sentidos passa sempre por aqui.
"""
from __future__ import annotations

from enum import Enum


class _CodedEnum(str, Enum):
    """Enum cujo ``name`` é o código do banco e ``value`` o rótulo de exibição."""

    @property
    def code(self) -> str:
        return self.name

    @property
    def label(self) -> str:
        return self.value

    @classmethod
    def from_code(cls, code: str):
        try:
            return cls[code]
        except KeyError:
            raise ValueError(f"Código inválido para {cls.__name__}: {code!r}") from None

    @classmethod
    def from_label(cls, label: str):
        return cls(label)

    @classmethod
    def codes(cls) -> tuple[str, ...]:
        return tuple(m.name for m in cls)


class LeadStatus(_CodedEnum):
    NEW = "Novo Lead"
    CONTACTED = "Contato Feito"
    TRIAL = "Aula Exp. Agendada"
    NEGOTIATION = "Negociação"
    WON = "Matriculado"
    LOST = "Perdido"


class PaymentStatus(_CodedEnum):
    PENDING = "Pendente"
    PAID = "Pago"
    OVERDUE = "Atrasado"


class LogType(str, Enum):
    SYSTEM = "Sistema"
    WHATSAPP = "WhatsApp"
    FINANCIAL = "Financeiro"
    NOTE = "Nota"


class LeadSource(str, Enum):
    INSTAGRAM = "Instagram"
    GOOGLE = "Google"
    REFERRAL = "Indicação"


class StudentStatus(str, Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"


class UserRole(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"


class WhatsAppProvider(str, Enum):
    CLOUD_API = "cloud_api"
    GATEWAY = "gateway"


# ---------- conversão código <-> rótulo ----------
def lead_status_to_code(label: str | LeadStatus) -> str:
    return LeadStatus(label).code


def lead_status_from_code(code: str) -> LeadStatus:
    return LeadStatus.from_code(code)


def payment_status_to_code(label: str | PaymentStatus) -> str:
    return PaymentStatus(label).code


def payment_status_from_code(code: str) -> PaymentStatus:
    return PaymentStatus.from_code(code)


# valores aceitos pelas colunas do banco
LEAD_STATUS_CODES = LeadStatus.codes()
PAYMENT_STATUS_CODES = PaymentStatus.codes()
LEAD_SOURCES = tuple(s.value for s in LeadSource)
STUDENT_STATUSES = tuple(s.value for s in StudentStatus)
LOG_TYPES = tuple(t.value for t in LogType)
USER_ROLES = tuple(r.value for r in UserRole)
