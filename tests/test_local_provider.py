import pytest

from playjazz_crm.client.errors import TransportError
from playjazz_crm.client.local import CONFIG_KEY, LocalDataProvider
from playjazz_crm.domain.enums import LeadStatus, WhatsAppProvider
from playjazz_crm.domain.models import Lead, Payment, TimelineLog, default_config


async def test_seed_data_is_scoped_by_unit(local_provider):
    units = await local_provider.get_units()
    assert [u.name for u in units] == ["PlayJazz Centro", "PlayJazz Zona Sul"]

    assert len(await local_provider.get_leads()) == 5
    assert len(await local_provider.get_leads(units[0].id)) == 3
    students = await local_provider.get_students(units[1].id)
    assert [s.name for s in students] == ["Julia Roberts"]


async def test_reads_return_copies(local_provider):
    leads = await local_provider.get_leads()
    leads[0].name = "alterado"
    assert (await local_provider.get_leads())[0].name == "Ana Silva"


async def test_create_assigns_numeric_id(local_provider):
    created = await local_provider.create_lead(Lead(id="tmp-lead-1-0", unit_id="2", name="Novo", phone="1"))
    assert created.id == "6"
    assert created.created_at is not None


async def test_unknown_ids_and_units(local_provider):
    with pytest.raises(TransportError) as exc:
        await local_provider.update_lead(Lead(id="999", unit_id="1", name="x", phone="1"))
    assert exc.value.is_not_found

    with pytest.raises(TransportError) as exc:
        await local_provider.create_lead(Lead(id="tmp-lead-1-0", unit_id="42", name="x", phone="1"))
    assert exc.value.status_code == 400

    bad = Payment(id="tmp-payment-1-0", student_id="1", unit_id="2", amount=10, due_date="2024-01-01")
    with pytest.raises(TransportError):
        await local_provider.create_payment(bad)


async def test_update_keeps_created_at(local_provider):
    lead = (await local_provider.get_leads())[0]
    updated = await local_provider.update_lead(lead.model_copy(update={"status": LeadStatus.LOST, "created_at": None}))
    assert updated.status is LeadStatus.LOST
    assert updated.created_at == lead.created_at


async def test_delete_student_cascades_payments(local_provider):
    await local_provider.delete_student("1")
    payments = await local_provider.get_payments()
    assert {p.student_id for p in payments} == {"2"}


async def test_timeline_log_is_appended(local_provider):
    log = TimelineLog(id="tmp-log-1-0", date="2024-03-01", type="Nota", message="Faltou")
    created = await local_provider.add_timeline_log("2", log)
    student = next(s for s in await local_provider.get_students() if s.id == "2")
    assert student.timeline[-1].id == created.id
    assert student.timeline[-1].message == "Faltou"


async def test_config_defaults_and_persists_in_storage(storage):
    provider = LocalDataProvider(storage, latency=0, retry_delay=0)
    assert await provider.get_config() == default_config()

    cfg = default_config()
    cfg.whatsapp.provider = WhatsAppProvider.CLOUD_API
    cfg.whatsapp.api_key = "segredo"
    await provider.save_config(cfg)

    assert storage.get_json(CONFIG_KEY)["whatsapp"]["apiKey"] == "segredo"
    # outra instância sobre o mesmo arquivo lê a configuração salva
    again = LocalDataProvider(storage, latency=0, retry_delay=0)
    loaded = await again.get_config()
    assert loaded.whatsapp.provider is WhatsAppProvider.CLOUD_API


async def test_corrupted_storage_falls_back_to_default(storage):
    storage.path.write_text("{not json", encoding="utf-8")
    provider = LocalDataProvider(storage, latency=0, retry_delay=0)
    assert await provider.get_config() == default_config()


class FlakyProvider(LocalDataProvider):
    def __init__(self, *args, failures=2, **kwargs):
        super().__init__(*args, **kwargs)
        self.failures = failures
        self.attempts = 0

    async def _latency(self):
        self.attempts += 1
        if self.attempts <= self.failures:
            raise TransportError("network_error")


async def test_local_reads_use_the_same_retry(storage):
    provider = FlakyProvider(storage, failures=2, retries=3, retry_delay=0)
    assert len(await provider.get_units()) == 2
    assert provider.attempts == 3

    provider = FlakyProvider(storage, failures=5, retries=3, retry_delay=0)
    with pytest.raises(TransportError):
        await provider.get_units()
