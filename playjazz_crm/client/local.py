# playjazz_crm/client/local.py
"""
Provedor local (sem rede), intercambiável com ``ApiClient``.

Mantém os dados de demonstração em memória e persiste apenas a
configuração do sistema no armazenamento chave/valor, sob a chave
``playjazz_config``. As leituras passam pelo mesmo retry e por uma
latência simulada, para o cache se comportar igual nos dois modos.
"""
from __future__ import annotations

import asyncio
import itertools
import logging
from datetime import date
from typing import Dict, List, Optional, TypeVar

from playjazz_crm.core.config import settings
from playjazz_crm.domain.enums import LeadStatus, PaymentStatus
from playjazz_crm.domain.models import (
    Lead,
    Payment,
    Student,
    SystemConfig,
    TimelineLog,
    Unit,
    User,
    default_config,
)
from playjazz_crm.domain.tenancy import filter_by_unit
from playjazz_crm import seed_data
from .errors import TransportError
from .retry import with_retry
from .storage import LocalStorage

logger = logging.getLogger(__name__)

CONFIG_KEY = "playjazz_config"

M = TypeVar("M")


def _copy(items: List[M]) -> List[M]:
    return [item.model_copy(deep=True) for item in items]


class LocalDataProvider:
    def __init__(
        self,
        storage: Optional[LocalStorage] = None,
        *,
        latency: Optional[float] = None,
        retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        seed: bool = True,
        today: Optional[date] = None,
    ):
        self.storage = storage or LocalStorage(settings.LOCAL_STORE_PATH)
        self.latency = settings.LOCAL_LATENCY if latency is None else latency
        self.retries = settings.FETCH_RETRIES if retries is None else retries
        self.retry_delay = settings.FETCH_RETRY_DELAY if retry_delay is None else retry_delay
        self._ids: Dict[str, itertools.count] = {}

        self.units: List[Unit] = []
        self.users: List[User] = []
        self.leads: List[Lead] = []
        self.students: List[Student] = []
        self.payments: List[Payment] = []
        if seed:
            self._seed(today or date.today())

    # ---------- helpers ----------
    def _next_id(self, kind: str) -> str:
        counter = self._ids.setdefault(kind, itertools.count(1))
        return str(next(counter))

    async def _latency(self) -> None:
        if self.latency > 0:
            await asyncio.sleep(self.latency)

    def _ensure_unit(self, unit_id: Optional[str]) -> None:
        if unit_id is not None and not any(u.id == unit_id for u in self.units):
            raise TransportError("Unidade inválida", 400)

    @staticmethod
    def _index_of(items: list, entity_id: str, what: str) -> int:
        for i, item in enumerate(items):
            if item.id == entity_id:
                return i
        raise TransportError(f"{what} não encontrado", 404)

    def _seed(self, today: date) -> None:
        self.units = [Unit(id=self._next_id("unit"), name=u["name"]) for u in seed_data.UNITS]
        unit_ids = [u.id for u in self.units]

        self.users = [
            User(
                id=self._next_id("user"),
                name=u["name"],
                email=u["email"],
                role=u["role"],
                unit_id=None if u["unit"] is None else unit_ids[u["unit"]],
            )
            for u in seed_data.USERS
        ]
        self.leads = [
            Lead(
                id=self._next_id("lead"),
                unit_id=unit_ids[row["unit"]],
                name=row["name"],
                phone=row["phone"],
                email=row["email"],
                instrument=row["instrument"],
                source=row["source"],
                status=LeadStatus.from_code(row["status"]),
                created_at=date.fromisoformat(row["created_at"]),
            )
            for row in seed_data.LEADS
        ]
        self.students = [
            Student(
                id=self._next_id("student"),
                unit_id=unit_ids[row["unit"]],
                name=row["name"],
                phone=row["phone"],
                email=row["email"],
                birth_date=row["birth_date"],
                responsible_name=row["responsible_name"],
                course=row["course"],
                status=row["status"],
                timeline=[
                    TimelineLog(id=self._next_id("log"), date=log["date"], type=log["type"], message=log["message"])
                    for log in row["timeline"]
                ],
            )
            for row in seed_data.STUDENTS
        ]
        student_ids = [s.id for s in self.students]
        self.payments = [
            Payment(
                id=self._next_id("payment"),
                student_id=student_ids[row["student"]],
                unit_id=unit_ids[row["unit"]],
                amount=float(row["amount"]),
                due_date=row["due_date"],
                status=PaymentStatus.from_code(row["status"]),
                description=row["description"],
            )
            for row in seed_data.payments(today)
        ]

    # ---------- units / users ----------
    @with_retry
    async def get_units(self) -> List[Unit]:
        await self._latency()
        return _copy(self.units)

    @with_retry
    async def get_users(self) -> List[User]:
        await self._latency()
        return _copy(self.users)

    async def create_user(self, user: User) -> User:
        self._ensure_unit(user.unit_id)
        if any(u.email == user.email for u in self.users):
            raise TransportError("E-mail já cadastrado", 409)
        created = user.model_copy(update={"id": self._next_id("user")})
        self.users.append(created)
        return created.model_copy()

    async def delete_user(self, user_id: str) -> None:
        del self.users[self._index_of(self.users, user_id, "Usuário")]

    # ---------- leads ----------
    @with_retry
    async def get_leads(self, unit_id: Optional[str] = None) -> List[Lead]:
        await self._latency()
        return _copy(filter_by_unit(self.leads, unit_id) if unit_id else self.leads)

    async def create_lead(self, lead: Lead) -> Lead:
        self._ensure_unit(lead.unit_id)
        created = lead.model_copy(
            update={"id": self._next_id("lead"), "created_at": lead.created_at or date.today()}
        )
        self.leads.append(created)
        return created.model_copy()

    async def update_lead(self, lead: Lead) -> Lead:
        idx = self._index_of(self.leads, lead.id, "Lead")
        self._ensure_unit(lead.unit_id)
        # createdAt é do servidor; não muda no update
        updated = lead.model_copy(update={"created_at": self.leads[idx].created_at})
        self.leads[idx] = updated
        return updated.model_copy()

    async def delete_lead(self, lead_id: str) -> None:
        del self.leads[self._index_of(self.leads, lead_id, "Lead")]

    # ---------- students ----------
    @with_retry
    async def get_students(self, unit_id: Optional[str] = None) -> List[Student]:
        await self._latency()
        return _copy(filter_by_unit(self.students, unit_id) if unit_id else self.students)

    async def create_student(self, student: Student) -> Student:
        self._ensure_unit(student.unit_id)
        # timeline não faz parte do cadastro, igual à API
        created = student.model_copy(update={"id": self._next_id("student"), "timeline": []})
        self.students.append(created)
        return created.model_copy(deep=True)

    async def update_student(self, student: Student) -> Student:
        idx = self._index_of(self.students, student.id, "Aluno")
        self._ensure_unit(student.unit_id)
        updated = student.model_copy(update={"timeline": self.students[idx].timeline})
        self.students[idx] = updated
        return updated.model_copy(deep=True)

    async def delete_student(self, student_id: str) -> None:
        idx = self._index_of(self.students, student_id, "Aluno")
        # timeline vai junto com o aluno; pagamentos em cascata, como na API
        self.payments = [p for p in self.payments if p.student_id != student_id]
        del self.students[idx]

    async def add_timeline_log(self, student_id: str, log: TimelineLog) -> TimelineLog:
        idx = self._index_of(self.students, student_id, "Aluno")
        created = log.model_copy(update={"id": self._next_id("log")})
        st = self.students[idx]
        self.students[idx] = st.model_copy(update={"timeline": [*st.timeline, created]})
        return created.model_copy()

    # ---------- payments ----------
    @with_retry
    async def get_payments(self, unit_id: Optional[str] = None) -> List[Payment]:
        await self._latency()
        return _copy(filter_by_unit(self.payments, unit_id) if unit_id else self.payments)

    async def create_payment(self, payment: Payment) -> Payment:
        st = self.students[self._index_of(self.students, payment.student_id, "Aluno")]
        if payment.unit_id != st.unit_id:
            raise TransportError("Unidade do pagamento difere da unidade do aluno", 400)
        created = payment.model_copy(update={"id": self._next_id("payment")})
        self.payments.append(created)
        return created.model_copy()

    async def update_payment(self, payment: Payment) -> Payment:
        idx = self._index_of(self.payments, payment.id, "Pagamento")
        current = self.payments[idx]
        updated = payment.model_copy(update={"student_id": current.student_id, "unit_id": current.unit_id})
        self.payments[idx] = updated
        return updated.model_copy()

    # ---------- config ----------
    @with_retry
    async def get_config(self) -> SystemConfig:
        await self._latency()
        data = self.storage.get_json(CONFIG_KEY)
        if data is None:
            return default_config()
        return SystemConfig.model_validate(data)

    async def save_config(self, config: SystemConfig) -> SystemConfig:
        self.storage.set_json(CONFIG_KEY, config.to_dict())
        logger.info("Configuração salva no armazenamento local (%s)", self.storage.path)
        return config.model_copy(deep=True)
