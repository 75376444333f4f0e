# playjazz_crm/domain/models.py
"""
Formas do domínio usadas pelo cliente (cache em memória e provedores).

Ids são sempre ``str`` deste lado da fronteira; os status usam os rótulos
de exibição. Os campos aceitam/exportam camelCase (``unitId``) para casar
com o formato que o front consome.
"""
from __future__ import annotations

from datetime import date
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from .enums import (
    LeadSource,
    LeadStatus,
    LogType,
    PaymentStatus,
    StudentStatus,
    UserRole,
    WhatsAppProvider,
)


class DomainModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=False,
    )

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class Unit(DomainModel):
    id: str
    name: str


class User(DomainModel):
    id: str
    name: str
    email: str
    role: UserRole = UserRole.MANAGER
    unit_id: Optional[str] = None  # só gerente fica preso a uma unidade

    @model_validator(mode="after")
    def _admin_sem_unidade(self):
        if self.role == UserRole.ADMIN and self.unit_id is not None:
            raise ValueError("Usuário admin não pode estar vinculado a uma unidade")
        return self


class Lead(DomainModel):
    id: str
    unit_id: str
    name: str
    phone: str
    email: str = ""
    instrument: str = ""
    source: LeadSource = LeadSource.INSTAGRAM
    status: LeadStatus = LeadStatus.NEW
    created_at: Optional[date] = None


class TimelineLog(DomainModel):
    id: str
    date: str  # ISO (YYYY-MM-DD)
    type: LogType
    message: str


class Student(DomainModel):
    id: str
    unit_id: str
    name: str
    phone: str
    email: str = ""
    birth_date: str = ""
    responsible_name: Optional[str] = None
    course: str = ""
    status: StudentStatus = StudentStatus.ACTIVE
    timeline: List[TimelineLog] = Field(default_factory=list)


class Payment(DomainModel):
    id: str
    student_id: str
    unit_id: str
    amount: float
    due_date: str  # ISO (YYYY-MM-DD)
    status: PaymentStatus = PaymentStatus.PENDING
    description: str = ""


# ---------------- Configuração do sistema ----------------
class WhatsAppConfig(DomainModel):
    provider: WhatsAppProvider = WhatsAppProvider.GATEWAY
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    phone_number_id: Optional[str] = None


class GeminiConfig(DomainModel):
    api_key: Optional[str] = ""


class SystemConfig(DomainModel):
    whatsapp: WhatsAppConfig = Field(default_factory=WhatsAppConfig)
    gemini: GeminiConfig = Field(default_factory=GeminiConfig)
    notification_email: Optional[str] = None


def default_config() -> SystemConfig:
    """Configuração devolvida quando nada foi salvo ainda."""
    return SystemConfig(
        whatsapp=WhatsAppConfig(provider=WhatsAppProvider.GATEWAY, base_url="", api_key="", phone_number_id=""),
        gemini=GeminiConfig(api_key=""),
        notification_email="",
    )
