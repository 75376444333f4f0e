import asyncio

import pytest

from playjazz_crm.client import mapping
from playjazz_crm.client.errors import (
    ClientValidationError,
    EntityNotFoundError,
    StartupLoadError,
    TransportError,
)
from playjazz_crm.client.ids import is_placeholder
from playjazz_crm.client.local import LocalDataProvider
from playjazz_crm.client.state import AppState, OpStatus
from playjazz_crm.domain.enums import LeadStatus, LogType
from playjazz_crm.domain.models import User, default_config

from conftest import TODAY


@pytest.fixture
async def state(local_provider):
    s = AppState(local_provider)
    await s.load()
    return s


class FailingWrites(LocalDataProvider):
    async def create_lead(self, lead):
        raise TransportError("POST /leads falhou", 500)

    async def update_lead(self, lead):
        raise TransportError("PUT /leads falhou", 500)

    async def save_config(self, config):
        raise TransportError("network_error")


class GatedCreate(LocalDataProvider):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.gate = asyncio.Event()
        self.calls = []

    async def create_lead(self, lead):
        self.calls.append(("create", lead.id))
        await self.gate.wait()
        return await super().create_lead(lead)

    async def update_lead(self, lead):
        self.calls.append(("update", lead.id))
        return await super().update_lead(lead)

    async def delete_lead(self, lead_id):
        self.calls.append(("delete", lead_id))
        return await super().delete_lead(lead_id)



class GatedCreateFailingUpdate(GatedCreate):
    async def update_lead(self, lead):
        self.calls.append(("update", lead.id))
        raise TransportError("PUT /leads falhou", 500)


class FailingStudentDelete(LocalDataProvider):
    async def delete_student(self, student_id):
        raise TransportError("DELETE /students falhou", 500)


# ---------------- carga e unidade ----------------
async def test_end_to_end_pipeline_for_selected_unit(state, local_provider):
    assert state.loaded
    assert [u.id for u in state.units] == ["1", "2"]
    assert state.current_unit_id == "1"

    columns = state.pipeline_columns()
    assert sum(len(v) for v in columns.values()) == 3
    new_lead = columns[LeadStatus.NEW][0]

    await state.advance_lead(new_lead.id)

    columns = state.pipeline_columns()
    assert [l.id for l in columns[LeadStatus.CONTACTED]] == sorted([new_lead.id, "2"])
    stored = next(l for l in local_provider.leads if l.id == new_lead.id)
    assert stored.status is LeadStatus.CONTACTED


async def test_select_unit_switches_slices(state):
    assert len(state.filtered_leads) == 3
    assert state.select_unit("2")
    assert len(state.filtered_leads) == 2
    assert [s.name for s in state.filtered_students] == ["Julia Roberts"]
    assert all(p.unit_id == "2" for p in state.filtered_payments)


async def test_select_unknown_unit_keeps_current(state):
    assert state.select_unit("99") is False
    assert state.current_unit_id == "1"


async def test_load_failure_is_blocking(storage):
    class Down(LocalDataProvider):
        async def get_students(self, unit_id=None):
            raise TransportError("network_error")

    s = AppState(Down(storage, latency=0, retry_delay=0))
    with pytest.raises(StartupLoadError):
        await s.load()
    assert not s.loaded
    assert s.notices[0].level == "error"


async def test_advance_terminal_lead_does_not_call_provider(state, local_provider):
    lead = state.filtered_leads[0]
    await state.move_lead(lead.id, LeadStatus.LOST)

    async def boom(_):
        raise AssertionError("não deveria escrever")

    local_provider.update_lead = boom
    result = await state.advance_lead(lead.id)
    assert result.status is LeadStatus.LOST


# ---------------- criação otimista ----------------
async def test_add_lead_swaps_placeholder_for_server_record(state):
    draft = state.draft_lead("Rafa", "5511911112222", instrument="Baixo")
    assert is_placeholder(draft.id)

    created = await state.add_lead(draft)

    assert not is_placeholder(created.id)
    assert [l.id for l in state.leads].count(created.id) == 1
    assert all(l.id != draft.id for l in state.leads)
    assert state.resolve_id(draft.id) == created.id
    # operação aplicada não fica guardada
    assert state.operations == []


async def test_missing_required_fields_never_reach_provider(state, local_provider):
    before = len(local_provider.leads)
    with pytest.raises(ClientValidationError) as exc:
        await state.add_lead(state.draft_lead("", "  "))
    assert exc.value.missing == ["name", "phone"]
    assert len(local_provider.leads) == before
    assert len(state.leads) == before

    with pytest.raises(ClientValidationError):
        await state.add_user(User(id="x", name="Sem email", email="", unit_id="1"))


async def test_update_on_pending_create_waits_and_targets_server_id(storage):
    provider = GatedCreate(storage, latency=0, retry_delay=0)
    state = AppState(provider)
    await state.load()

    draft = state.draft_lead("Ana", "551190000")
    create_task = asyncio.create_task(state.add_lead(draft))
    await asyncio.sleep(0)

    update_task = asyncio.create_task(state.update_lead(draft.model_copy(update={"name": "Ana Maria"})))
    await asyncio.sleep(0)
    # update aplicado localmente, mas esperando o create
    assert provider.calls == [("create", draft.id)]
    assert next(l for l in state.leads if l.id == draft.id).name == "Ana Maria"

    provider.gate.set()
    created = await create_task
    await update_task

    assert provider.calls == [("create", draft.id), ("update", created.id)]
    local = [l for l in state.leads if l.id == created.id]
    assert len(local) == 1 and local[0].name == "Ana Maria"
    assert provider.leads[-1].name == "Ana Maria"


async def test_delete_before_create_confirms_removes_server_record(storage):
    provider = GatedCreate(storage, latency=0, retry_delay=0)
    state = AppState(provider)
    await state.load()

    draft = state.draft_lead("Temp", "1")
    create_task = asyncio.create_task(state.add_lead(draft))
    await asyncio.sleep(0)
    delete_task = asyncio.create_task(state.delete_lead(draft.id))
    await asyncio.sleep(0)

    provider.gate.set()
    created = await create_task
    await delete_task

    assert provider.calls[-1] == ("delete", created.id)
    assert all(l.id not in (draft.id, created.id) for l in state.leads)
    assert all(l.id != created.id for l in provider.leads)


# ---------------- falhas (sem rollback automático) ----------------
async def test_failed_update_keeps_local_change_and_notifies(storage):
    state = AppState(FailingWrites(storage, latency=0, retry_delay=0))
    await state.load()
    lead = state.filtered_leads[0]

    with pytest.raises(TransportError):
        await state.move_lead(lead.id, LeadStatus.WON)

    assert next(l for l in state.leads if l.id == lead.id).status is LeadStatus.WON
    op = state.failed_operations()[0]
    assert op.kind == "update" and op.status == OpStatus.FAILED
    assert "500" in op.reason
    assert [n.level for n in state.pop_notices()] == ["error"]
    assert state.notices == []

    state.rollback(op.id)
    assert next(l for l in state.leads if l.id == lead.id).status is lead.status
    assert state.failed_operations() == []
    with pytest.raises(ValueError):
        state.rollback(op.id)


async def test_failed_create_leaves_placeholder_until_rollback(storage):
    state = AppState(FailingWrites(storage, latency=0, retry_delay=0))
    await state.load()
    draft = state.draft_lead("Fica", "1")

    with pytest.raises(TransportError):
        await state.add_lead(draft)
    assert any(l.id == draft.id for l in state.leads)

    # placeholder nunca confirmado: atualizar falha sem ir ao servidor
    with pytest.raises(TransportError) as exc:
        await state.update_lead(draft.model_copy(update={"name": "Outro"}))
    assert exc.value.status_code == 409

    create_op = next(op for op in state.operations if op.kind == "create")
    state.rollback(create_op.id)
    assert all(l.id != draft.id for l in state.leads)


async def test_failed_config_save_is_not_reverted(storage):
    state = AppState(FailingWrites(storage, latency=0, retry_delay=0))
    await state.load()
    cfg = default_config()
    cfg.notification_email = "novo@playjazz.com"

    with pytest.raises(TransportError):
        await state.save_config(cfg)
    assert state.config.notification_email == "novo@playjazz.com"

    state.rollback(state.failed_operations()[0].id)
    assert state.config == default_config()


# ---------------- alunos, usuários, configuração ----------------
async def test_add_student_records_initial_timeline(state, local_provider):
    draft = state.draft_student("Lia", "5511900001111", course="Violino")
    created = await state.add_student(draft)

    local = next(s for s in state.students if s.id == created.id)
    assert [log.message for log in local.timeline] == ["Aluno cadastrado manualmente"]
    assert not is_placeholder(local.timeline[0].id)
    stored = next(s for s in local_provider.students if s.id == created.id)
    assert stored.timeline[0].type is LogType.SYSTEM


async def test_delete_student_drops_its_payments(state):
    assert any(p.student_id == "1" for p in state.payments)
    await state.delete_student("1")
    assert all(s.id != "1" for s in state.students)
    assert all(p.student_id != "1" for p in state.payments)


async def test_users_add_and_delete(state):
    created = await state.add_user(User(id="novo", name="Gerente", email="g@playjazz.com", unit_id="2"))
    assert any(u.id == created.id for u in state.users)
    await state.delete_user(created.id)
    assert all(u.id != created.id for u in state.users)


async def test_save_config_persists_and_reloads(state, local_provider):
    cfg = default_config()
    cfg.gemini.api_key = "chave"
    await state.save_config(cfg)

    fresh = AppState(LocalDataProvider(local_provider.storage, latency=0, retry_delay=0))
    await fresh.load()
    assert fresh.config.gemini.api_key == "chave"


async def test_billing_reminders_only_for_current_unit(state):
    assert state.billing_reminders(TODAY) == []

    state.select_unit("2")
    reminders = state.billing_reminders(TODAY)
    assert [r.student_name for r in reminders] == ["Julia Roberts"]
    assert [p.description for p in state.due_soon_payments(TODAY)] == ["Mensalidade Novembro"]


async def test_dashboard_uses_unit_slice(state):
    kpis = state.dashboard()
    assert kpis.total_leads == 3
    assert kpis.active_students == 1
    assert kpis.revenue == 350.0
    assert kpis.overdue_count == 1


# ---------------- rollback e limpeza das tabelas internas ----------------
async def test_rollback_of_update_issued_on_placeholder_restores_server_record(storage):
    provider = GatedCreateFailingUpdate(storage, latency=0, retry_delay=0)
    state = AppState(provider)
    await state.load()

    draft = state.draft_lead("Ana", "551190000")
    create_task = asyncio.create_task(state.add_lead(draft))
    await asyncio.sleep(0)
    update_task = asyncio.create_task(state.update_lead(draft.model_copy(update={"name": "Ana Maria"})))
    await asyncio.sleep(0)

    provider.gate.set()
    created = await create_task
    with pytest.raises(TransportError):
        await update_task

    assert provider.calls == [("create", draft.id), ("update", created.id)]
    assert next(l for l in state.leads if l.id == created.id).name == "Ana Maria"

    op = state.failed_operations()[0]
    assert op.kind == "update" and op.entity_id == draft.id
    state.rollback(op.id)

    local = [l for l in state.leads if l.id == created.id]
    assert len(local) == 1 and local[0].name == "Ana"
    assert all(l.id != draft.id for l in state.leads)
    assert state.failed_operations() == []


async def test_rollback_of_update_on_missing_record_raises_and_keeps_operation(storage):
    state = AppState(FailingWrites(storage, latency=0, retry_delay=0))
    await state.load()
    lead = state.filtered_leads[0]

    with pytest.raises(TransportError):
        await state.move_lead(lead.id, LeadStatus.WON)
    op = state.failed_operations()[0]
    await state.delete_lead(lead.id)

    with pytest.raises(EntityNotFoundError) as exc:
        state.rollback(op.id)
    assert exc.value.entity == "lead" and exc.value.entity_id == lead.id
    assert all(l.id != lead.id for l in state.leads)
    assert state.failed_operations() == [op]
    assert not op.compensated

    state.acknowledge(op.id)
    assert state.failed_operations() == []
    assert state.operations == []


async def test_rollback_of_student_delete_restores_its_payments(storage):
    state = AppState(FailingStudentDelete(storage, latency=0, retry_delay=0))
    await state.load()
    students_before = list(state.students)
    payments_before = list(state.payments)
    own = [p.id for p in payments_before if p.student_id == "1"]
    assert own

    with pytest.raises(TransportError):
        await state.delete_student("1")
    assert all(s.id != "1" for s in state.students)
    assert all(p.student_id != "1" for p in state.payments)

    state.rollback(state.failed_operations()[0].id)

    assert state.students == students_before
    assert state.payments == payments_before
    assert [p.id for p in state.payments if p.student_id == "1"] == own


async def test_internal_tables_are_empty_after_create_delete_cycles(state):
    for i in range(20):
        draft = state.draft_lead(f"Ciclo {i}", "1")
        created = await state.add_lead(draft)
        await state.update_lead(created.model_copy(update={"name": f"Ciclo {i}b"}))
        # o delete usa o id provisório; o alias leva ao id do servidor
        await state.delete_lead(draft.id)

    assert state._locks == {}
    assert state._inflight == {}
    assert state._aliases == {}
    assert state.operations == []


async def test_failed_operation_is_kept_until_acknowledged(storage):
    state = AppState(FailingWrites(storage, latency=0, retry_delay=0))
    await state.load()
    lead = state.filtered_leads[0]

    with pytest.raises(TransportError):
        await state.move_lead(lead.id, LeadStatus.WON)

    assert state._locks == {}
    assert state._inflight == {}
    op = state.failed_operations()[0]
    state.acknowledge(op.id)

    assert state.operations == []
    # o cache fica como estava depois da falha
    assert next(l for l in state.leads if l.id == lead.id).status is LeadStatus.WON
    with pytest.raises(ValueError):
        state.acknowledge(op.id)


# ---------------- respostas malformadas ----------------
async def test_malformed_row_on_load_is_startup_error(storage):
    class Malformed(LocalDataProvider):
        async def get_leads(self, unit_id=None):
            return [mapping.lead_from_row({"id": 1})]

    s = AppState(Malformed(storage, latency=0, retry_delay=0))
    with pytest.raises(StartupLoadError):
        await s.load()
    assert not s.loaded


async def test_malformed_create_response_marks_operation_failed(state, local_provider):
    async def create_lead(lead):
        return mapping.lead_from_row({"id": 99})

    local_provider.create_lead = create_lead
    draft = state.draft_lead("Ana", "1")

    with pytest.raises(ValueError):
        await state.add_lead(draft)

    op = state.failed_operations()[0]
    assert op.kind == "create" and op.status == OpStatus.FAILED
    assert state._inflight == {}
    assert state._locks == {}


async def test_advance_unknown_lead_raises_not_found(state):
    with pytest.raises(EntityNotFoundError):
        await state.advance_lead("999")
    with pytest.raises(LookupError):
        await state.move_lead("999", LeadStatus.WON)
