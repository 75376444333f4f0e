# playjazz_crm/client/provider.py
from __future__ import annotations

from typing import List, Optional, Protocol

from playjazz_crm.domain.models import Lead, Payment, Student, SystemConfig, TimelineLog, Unit, User


class DataProvider(Protocol):
    """Contrato comum de ``ApiClient`` (rede) e ``LocalDataProvider`` (memória)."""

    async def get_units(self) -> List[Unit]: ...
    async def get_users(self) -> List[User]: ...
    async def create_user(self, user: User) -> User: ...
    async def delete_user(self, user_id: str) -> None: ...

    async def get_leads(self, unit_id: Optional[str] = None) -> List[Lead]: ...
    async def create_lead(self, lead: Lead) -> Lead: ...
    async def update_lead(self, lead: Lead) -> Lead: ...
    async def delete_lead(self, lead_id: str) -> None: ...

    async def get_students(self, unit_id: Optional[str] = None) -> List[Student]: ...
    async def create_student(self, student: Student) -> Student: ...
    async def update_student(self, student: Student) -> Student: ...
    async def delete_student(self, student_id: str) -> None: ...
    async def add_timeline_log(self, student_id: str, log: TimelineLog) -> TimelineLog: ...

    async def get_payments(self, unit_id: Optional[str] = None) -> List[Payment]: ...
    async def create_payment(self, payment: Payment) -> Payment: ...
    async def update_payment(self, payment: Payment) -> Payment: ...

    async def get_config(self) -> SystemConfig: ...
    async def save_config(self, config: SystemConfig) -> SystemConfig: ...
