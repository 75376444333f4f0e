# playjazz_crm/client/state.py
"""
Estado da aplicação no cliente (cache em memória).

Carrega todas as coleções de uma vez, deriva a fatia da unidade
selecionada e aplica as mutações de forma otimista:

1. altera o cache local na hora (update: troca por id; create: append;
   delete: remove por id);
2. dispara a escrita no provedor;
3. no create, troca o registro provisório pelo do servidor (id definitivo);
4. se a escrita falhar NÃO há rollback automático: a operação fica como
   ``failed``, um aviso de erro entra em ``notices`` e a exceção sobe. O
   estado anterior fica guardado na operação e ``rollback(op_id)`` desfaz
   localmente quando quem chamou decidir.

Operações sobre o mesmo registro são serializadas (um ``asyncio.Lock`` por
id), então uma escrita antiga nunca chega ao servidor depois de uma nova.
Locks, contadores e operações aplicadas são descartados assim que deixam
de ser usados; só as operações que falharam ficam guardadas, até serem
desfeitas (``rollback``) ou reconhecidas (``acknowledge``).
O cache guarda tudo, de todas as unidades; a segregação é feita nas
propriedades ``filtered_*``.
"""
from __future__ import annotations

import asyncio
import itertools
import logging
from contextlib import asynccontextmanager
from datetime import date, datetime
from enum import Enum
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict

from playjazz_crm.core.config import settings
from playjazz_crm.domain import billing, pipeline
from playjazz_crm.domain.enums import LeadSource, LeadStatus, LogType, UserRole
from playjazz_crm.domain.models import Lead, Payment, Student, SystemConfig, TimelineLog, Unit, User
from playjazz_crm.domain.students import append_log, new_log, search_students
from playjazz_crm.domain.tenancy import filter_by_unit
from playjazz_crm.services.dashboard import DashboardKpis, compute_kpis
from .errors import ClientValidationError, EntityNotFoundError, StartupLoadError, TransportError
from .ids import is_placeholder, new_placeholder_id
from .provider import DataProvider

logger = logging.getLogger(__name__)

T = TypeVar("T")

# entidade -> atributo da coleção no estado
_COLLECTIONS = {"lead": "leads", "student": "students", "user": "users"}


class OpStatus(str, Enum):
    PENDING = "pending"
    APPLIED = "applied"
    FAILED = "failed"


class Operation(BaseModel):
    """Registro de uma mutação otimista."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: int
    kind: Literal["create", "update", "delete", "save"]
    entity: str
    entity_id: Optional[str] = None
    status: OpStatus = OpStatus.PENDING
    reason: Optional[str] = None
    # estado antes da mutação, usado só por rollback() explícito
    previous: Any = None
    previous_index: Optional[int] = None
    # registros removidos junto (pagamentos do aluno), com a posição original
    cascade: List[tuple[int, Any]] = []
    compensated: bool = False


class _LockEntry:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = asyncio.Lock()
        self.users = 0


class Notice(BaseModel):
    level: Literal["info", "error"]
    message: str


class AppState:
    def __init__(self, provider: DataProvider, *, due_soon_days: Optional[int] = None):
        self.provider = provider
        self.due_soon_days = settings.DUE_SOON_DAYS if due_soon_days is None else due_soon_days

        self.units: List[Unit] = []
        self.users: List[User] = []
        self.leads: List[Lead] = []
        self.students: List[Student] = []
        self.payments: List[Payment] = []
        self.config: Optional[SystemConfig] = None
        self.current_unit: Optional[Unit] = None
        self.loaded = False

        self.notices: List[Notice] = []
        self.operations: List[Operation] = []

        # id provisório -> (entidade, id do servidor)
        self._aliases: Dict[str, tuple[str, str]] = {}
        self._locks: Dict[tuple[str, str], _LockEntry] = {}
        self._inflight: Dict[tuple[str, str], int] = {}
        self._op_seq = itertools.count(1)

    # ======================================================================
    # carga inicial
    # ======================================================================
    async def load(self) -> None:
        """Busca tudo em paralelo; qualquer falha bloqueia a aplicação."""
        try:
            units, users, leads, students, payments, config = await asyncio.gather(
                self.provider.get_units(),
                self.provider.get_users(),
                self.provider.get_leads(),
                self.provider.get_students(),
                self.provider.get_payments(),
                self.provider.get_config(),
            )
        except (TransportError, ValueError) as e:
            logger.error("Erro ao carregar dados: %s", e)
            self.notices.append(Notice(level="error", message="Erro ao conectar com o servidor."))
            raise StartupLoadError("Erro ao conectar com o servidor.") from e

        self.units, self.users = units, users
        self.leads, self.students, self.payments = leads, students, payments
        self.config = config
        if self.current_unit is None or not self._unit_known(self.current_unit.id):
            self.current_unit = units[0] if units else None
        self.loaded = True
        logger.info(
            "Dados carregados: %d unidades, %d leads, %d alunos, %d pagamentos",
            len(units), len(leads), len(students), len(payments),
        )

    # ======================================================================
    # unidade selecionada e visões filtradas
    # ======================================================================
    def _unit_known(self, unit_id: str) -> bool:
        return any(u.id == unit_id for u in self.units)

    def select_unit(self, unit_id: str) -> bool:
        """Troca a unidade atual. Unidade desconhecida é ignorada."""
        unit = next((u for u in self.units if u.id == unit_id), None)
        if unit is None:
            logger.warning("Unidade %s desconhecida; seleção mantida", unit_id)
            return False
        self.current_unit = unit
        return True

    @property
    def current_unit_id(self) -> Optional[str]:
        return self.current_unit.id if self.current_unit else None

    @property
    def filtered_leads(self) -> List[Lead]:
        return filter_by_unit(self.leads, self.current_unit_id)

    @property
    def filtered_students(self) -> List[Student]:
        return filter_by_unit(self.students, self.current_unit_id)

    @property
    def filtered_payments(self) -> List[Payment]:
        return filter_by_unit(self.payments, self.current_unit_id)

    def pipeline_columns(self, instrument: Optional[str] = None) -> Dict[LeadStatus, List[Lead]]:
        leads = pipeline.filter_by_instrument(self.filtered_leads, instrument)
        return pipeline.group_by_status(leads)

    def search_students(self, term: Optional[str] = None) -> List[Student]:
        return search_students(self.filtered_students, term)

    def due_soon_payments(self, now: date | datetime | None = None) -> List[Payment]:
        return billing.due_soon(self.filtered_payments, now or date.today(), self.due_soon_days)

    def billing_reminders(self, now: date | datetime | None = None) -> List[billing.Reminder]:
        reminders = billing.build_reminders(
            self.filtered_payments, self.students, now or date.today(), self.due_soon_days
        )
        for r in reminders:
            # envio fica fora daqui; só registra
            logger.info("[SIMULAÇÃO] Lembrete para %s (%s): %s", r.student_name, r.phone, r.message)
        return reminders

    def dashboard(self) -> DashboardKpis:
        return compute_kpis(self.filtered_leads, self.filtered_students, self.filtered_payments)

    # ======================================================================
    # rascunhos (registros novos com id provisório)
    # ======================================================================
    def _require_unit(self) -> str:
        if self.current_unit is None:
            raise ClientValidationError("unidade", ["currentUnit"])
        return self.current_unit.id

    def draft_lead(
        self,
        name: str,
        phone: str,
        email: str = "",
        instrument: str = "",
        source: LeadSource | str = LeadSource.INSTAGRAM,
    ) -> Lead:
        return Lead(
            id=new_placeholder_id("lead"),
            unit_id=self._require_unit(),
            name=name,
            phone=phone,
            email=email,
            instrument=instrument,
            source=source,
            status=LeadStatus.NEW,
            created_at=date.today(),
        )

    def draft_student(self, name: str, phone: str, **fields: Any) -> Student:
        return Student(
            id=new_placeholder_id("student"),
            unit_id=self._require_unit(),
            name=name,
            phone=phone,
            timeline=[new_log(new_placeholder_id("log"), LogType.SYSTEM, "Aluno cadastrado manualmente")],
            **fields,
        )

    # ======================================================================
    # infraestrutura das mutações otimistas
    # ======================================================================
    def resolve_id(self, entity_id: str) -> str:
        """Segue o alias provisório -> definitivo, se já houver."""
        seen = set()
        while entity_id in self._aliases and entity_id not in seen:
            seen.add(entity_id)
            entity_id = self._aliases[entity_id][1]
        return entity_id

    @asynccontextmanager
    async def _locked(self, key: tuple[str, str]) -> AsyncIterator[None]:
        # o lock some do dicionário quando ninguém mais o segura nem espera
        entry = self._locks.get(key)
        if entry is None:
            entry = self._locks[key] = _LockEntry()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0 and self._locks.get(key) is entry:
                del self._locks[key]

    @asynccontextmanager
    async def _serialized(self, entity: str, entity_id: str) -> AsyncIterator[str]:
        """Exclusão mútua por registro; entrega o id já resolvido.

        Se o id mudou (create confirmado) enquanto se esperava, também
        entra na fila do id definitivo.
        """
        key_id = self.resolve_id(entity_id)
        async with self._locked((entity, key_id)):
            resolved = self.resolve_id(entity_id)
            if resolved != key_id:
                async with self._serialized(entity, resolved) as final_id:
                    yield final_id
            else:
                yield resolved

    def _forget_aliases(self, entity: str, server_id: str) -> None:
        # registro apagado no servidor: os ids provisórios dele não servem mais
        for placeholder in [k for k, v in self._aliases.items() if v == (entity, server_id)]:
            del self._aliases[placeholder]

    def _begin(self, kind: str, entity: str, entity_id: Optional[str], previous: Any = None,
               previous_index: Optional[int] = None) -> Operation:
        op = Operation(
            id=next(self._op_seq),
            kind=kind,
            entity=entity,
            entity_id=entity_id,
            previous=previous,
            previous_index=previous_index,
        )
        self.operations.append(op)
        if entity_id is not None:
            key = (entity, entity_id)
            self._inflight[key] = self._inflight.get(key, 0) + 1
        return op

    def _finish(self, op: Operation, error: Optional[Exception] = None) -> None:
        if op.entity_id is not None:
            key = (op.entity, op.entity_id)
            remaining = self._inflight.get(key, 0) - 1
            if remaining > 0:
                self._inflight[key] = remaining
            else:
                self._inflight.pop(key, None)
        if error is None:
            op.status = OpStatus.APPLIED
            self._discard(op)
            return
        op.status = OpStatus.FAILED
        op.reason = str(error)
        logger.error("Falha em %s de %s %s: %s", op.kind, op.entity, op.entity_id, error)
        self.notices.append(Notice(level="error", message=f"Não foi possível salvar ({op.entity}): {error}"))

    def _discard(self, op: Operation) -> None:
        self.operations = [o for o in self.operations if o is not op]

    async def _remote(self, op: Operation, call: Callable[[], Awaitable[T]]) -> T:
        try:
            result = await call()
        except Exception as e:
            # qualquer falha fecha a operação; o erro segue para quem chamou
            self._finish(op, e)
            raise
        self._finish(op)
        return result

    @staticmethod
    def _ensure_confirmed(entity: str, entity_id: str) -> None:
        # id ainda provisório depois da fila = create falhou
        if is_placeholder(entity_id):
            raise TransportError(f"{entity} {entity_id} não foi confirmado pelo servidor", 409)

    # ---------- helpers de coleção (sempre criam lista nova) ----------
    def _index(self, attr: str, entity_id: str) -> Optional[int]:
        for i, item in enumerate(getattr(self, attr)):
            if item.id == entity_id:
                return i
        return None

    def _find(self, attr: str, entity_id: str):
        idx = self._index(attr, entity_id)
        return None if idx is None else getattr(self, attr)[idx]

    def _replace(self, attr: str, entity_id: str, item) -> bool:
        items = list(getattr(self, attr))
        idx = self._index(attr, entity_id)
        if idx is None:
            return False
        items[idx] = item
        setattr(self, attr, items)
        return True

    def _append(self, attr: str, item) -> None:
        setattr(self, attr, [*getattr(self, attr), item])

    def _insert(self, attr: str, index: int, item) -> None:
        items = list(getattr(self, attr))
        items.insert(min(index, len(items)), item)
        setattr(self, attr, items)

    def _remove(self, attr: str, entity_id: str) -> None:
        setattr(self, attr, [x for x in getattr(self, attr) if x.id != entity_id])

    @staticmethod
    def _require(entity: str, obj: Any, fields: tuple[str, ...]) -> None:
        missing = [f for f in fields if not str(getattr(obj, f, "") or "").strip()]
        if missing:
            raise ClientValidationError(entity, missing)

    # ---------- create / update / delete genéricos ----------
    async def _create(self, entity: str, item, remote: Callable[[Any], Awaitable[Any]]):
        attr = _COLLECTIONS[entity]
        if not is_placeholder(item.id):
            item = item.model_copy(update={"id": new_placeholder_id(entity)})
        placeholder = item.id

        op = self._begin("create", entity, placeholder)
        self._append(attr, item)

        async with self._serialized(entity, placeholder):
            created = await self._remote(op, lambda: remote(item))
            self._reconcile(entity, placeholder, created)
        return created

    def _reconcile(self, entity: str, placeholder: str, created) -> None:
        attr = _COLLECTIONS[entity]
        if created.id != placeholder:
            self._aliases[placeholder] = (entity, created.id)

        current = self._find(attr, placeholder)
        if current is None:
            # removido localmente antes da confirmação; não volta
            logger.info("%s %s removido antes da confirmação (id servidor %s)", entity, placeholder, created.id)
            return
        if self._inflight.get((entity, placeholder), 0) > 0:
            # há edição local mais nova na fila: adota só o id
            merged = current.model_copy(update={"id": created.id})
        else:
            merged = created
        self._replace(attr, placeholder, merged)

    async def _update(self, entity: str, item, remote: Callable[[Any], Awaitable[Any]]):
        attr = _COLLECTIONS[entity]
        entity_id = self.resolve_id(item.id)
        item = item.model_copy(update={"id": entity_id})
        idx = self._index(attr, entity_id)
        previous = None if idx is None else getattr(self, attr)[idx]

        op = self._begin("update", entity, entity_id, previous, idx)
        self._replace(attr, entity_id, item)

        async with self._serialized(entity, entity_id) as target_id:
            async def call():
                self._ensure_confirmed(entity, target_id)
                payload = item if target_id == item.id else item.model_copy(update={"id": target_id})
                return await remote(payload)

            return await self._remote(op, call)

    async def _delete(
        self,
        entity: str,
        entity_id: str,
        remote: Callable[[str], Awaitable[None]],
        cascade: Optional[List[tuple[int, Any]]] = None,
    ) -> None:
        attr = _COLLECTIONS[entity]
        entity_id = self.resolve_id(entity_id)
        idx = self._index(attr, entity_id)
        previous = None if idx is None else getattr(self, attr)[idx]

        op = self._begin("delete", entity, entity_id, previous, idx)
        op.cascade = cascade or []
        self._remove(attr, entity_id)

        async with self._serialized(entity, entity_id) as target_id:
            if is_placeholder(target_id):
                # create nunca confirmado: não existe no servidor
                self._finish(op)
                return
            await self._remote(op, lambda: remote(target_id))
            self._forget_aliases(entity, target_id)

    # ======================================================================
    # leads
    # ======================================================================
    async def add_lead(self, lead: Lead) -> Lead:
        self._require("lead", lead, ("name", "phone"))
        return await self._create("lead", lead, self.provider.create_lead)

    async def update_lead(self, lead: Lead) -> Lead:
        self._require("lead", lead, ("name", "phone"))
        return await self._update("lead", lead, self.provider.update_lead)

    async def delete_lead(self, lead_id: str) -> None:
        await self._delete("lead", lead_id, self.provider.delete_lead)

    def _lead_or_raise(self, lead_id: str) -> Lead:
        lead = self._find("leads", self.resolve_id(lead_id))
        if lead is None:
            raise EntityNotFoundError("lead", lead_id)
        return lead

    async def advance_lead(self, lead_id: str) -> Lead:
        """Uma etapa à frente no funil; em Matriculado/Perdido não faz nada."""
        lead = self._lead_or_raise(lead_id)
        advanced = pipeline.advance(lead)
        if advanced is lead:
            return lead
        await self.update_lead(advanced)
        return self._find("leads", self.resolve_id(lead_id)) or advanced

    async def move_lead(self, lead_id: str, status: LeadStatus | str) -> Lead:
        """Atribuição direta de status (arrastar entre colunas)."""
        moved = pipeline.set_status(self._lead_or_raise(lead_id), status)
        await self.update_lead(moved)
        return self._find("leads", self.resolve_id(lead_id)) or moved

    # ======================================================================
    # alunos
    # ======================================================================
    async def add_student(self, student: Student) -> Student:
        self._require("aluno", student, ("name", "phone"))
        initial_logs = list(student.timeline)
        created = await self._create("student", student, self.provider.create_student)
        # timeline não vai no cadastro; os logs iniciais são gravados depois
        for log in initial_logs:
            await self.add_timeline_log(created.id, log)
        return self._find("students", created.id) or created

    async def update_student(self, student: Student) -> Student:
        self._require("aluno", student, ("name", "phone"))
        return await self._update("student", student, self.provider.update_student)

    async def delete_student(self, student_id: str) -> None:
        resolved = self.resolve_id(student_id)
        # pagamentos do aluno saem junto, como no servidor; a posição fica
        # guardada na operação para um eventual rollback
        removed = [(i, p) for i, p in enumerate(self.payments) if p.student_id == resolved]
        self.payments = [p for p in self.payments if p.student_id != resolved]
        await self._delete("student", resolved, self.provider.delete_student, cascade=removed)

    async def add_timeline_log(self, student_id: str, log: TimelineLog) -> TimelineLog:
        self._require("timeline", log, ("message",))
        student_id = self.resolve_id(student_id)
        if not is_placeholder(log.id):
            log = log.model_copy(update={"id": new_placeholder_id("log")})

        student = self._find("students", student_id)
        if student is not None and not any(x.id == log.id for x in student.timeline):
            self._replace("students", student_id, append_log(student, log))

        op = self._begin("create", "timeline", log.id)
        async with self._serialized("student", student_id) as target_id:
            async def call():
                self._ensure_confirmed("aluno", target_id)
                return await self.provider.add_timeline_log(target_id, log)

            created = await self._remote(op, call)

        current = self._find("students", target_id)
        if current is not None:
            timeline = [created if x.id == log.id else x for x in current.timeline]
            self._replace("students", target_id, current.model_copy(update={"timeline": timeline}))
        return created

    # ======================================================================
    # usuários e configuração
    # ======================================================================
    async def add_user(self, user: User) -> User:
        self._require("usuário", user, ("name", "email"))
        if user.role == UserRole.ADMIN and user.unit_id is not None:
            raise ClientValidationError("usuário", ["unitId (admin não tem unidade)"])
        return await self._create("user", user, self.provider.create_user)

    async def delete_user(self, user_id: str) -> None:
        await self._delete("user", user_id, self.provider.delete_user)

    async def save_config(self, config: SystemConfig) -> SystemConfig:
        op = self._begin("save", "config", "singleton", self.config)
        self.config = config
        async with self._serialized("config", "singleton"):
            await self._remote(op, lambda: self.provider.save_config(config))
        return config

    # ======================================================================
    # falhas
    # ======================================================================
    def failed_operations(self) -> List[Operation]:
        return [op for op in self.operations if op.status == OpStatus.FAILED and not op.compensated]

    def pop_notices(self) -> List[Notice]:
        notices, self.notices = self.notices, []
        return notices

    def _failed_op(self, op_id: int) -> Operation:
        op = next((o for o in self.operations if o.id == op_id), None)
        if op is None or op.status != OpStatus.FAILED or op.compensated:
            raise ValueError(f"Operação {op_id} não está pendente de tratamento")
        return op

    def acknowledge(self, op_id: int) -> None:
        """Descarta uma operação que falhou, mantendo o cache como está."""
        self._discard(self._failed_op(op_id))

    def rollback(self, op_id: int) -> None:
        """Ação compensatória explícita para uma operação que falhou.

        O id é resolvido pelo alias: um update disparado sobre o id
        provisório desfaz o registro que já carrega o id do servidor.
        Se o registro não estiver mais no cache, levanta
        ``EntityNotFoundError`` e a operação continua pendente.
        """
        op = self._failed_op(op_id)

        if op.entity == "config":
            self.config = op.previous
        elif op.entity == "timeline":
            for st in self.students:
                if any(log.id == op.entity_id for log in st.timeline):
                    timeline = [log for log in st.timeline if log.id != op.entity_id]
                    self._replace("students", st.id, st.model_copy(update={"timeline": timeline}))
                    break
        else:
            attr = _COLLECTIONS[op.entity]
            entity_id = self.resolve_id(op.entity_id)
            if op.kind == "create":
                self._remove(attr, entity_id)
            elif op.kind == "update" and op.previous is not None:
                restored = op.previous.model_copy(update={"id": entity_id})
                if not self._replace(attr, entity_id, restored):
                    raise EntityNotFoundError(op.entity, entity_id)
            elif op.kind == "delete":
                if op.previous is not None and self._index(attr, entity_id) is None:
                    self._insert(attr, op.previous_index or 0, op.previous.model_copy(update={"id": entity_id}))
                # posições crescentes recompõem a ordem original
                for idx, item in sorted(op.cascade, key=lambda pair: pair[0]):
                    if self._index("payments", item.id) is None:
                        self._insert("payments", idx, item)
        op.compensated = True
        self._discard(op)
        logger.info("Operação %s (%s %s) desfeita localmente", op.id, op.kind, op.entity)
