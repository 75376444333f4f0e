from datetime import date, timedelta

import pytest

from playjazz_crm.domain import billing, pipeline
from playjazz_crm.domain.enums import (
    LeadSource,
    LeadStatus,
    PaymentStatus,
    lead_status_from_code,
    lead_status_to_code,
    payment_status_from_code,
    payment_status_to_code,
)
from playjazz_crm.domain.models import Lead, Payment, Student, User
from playjazz_crm.domain.students import search_students
from playjazz_crm.domain.tenancy import filter_by_unit, partition_by_unit
from playjazz_crm.services.dashboard import compute_kpis
from playjazz_crm.utils.br import only_digits, whatsapp_link

NOW = date(2024, 3, 1)


def _lead(id, unit="1", status=LeadStatus.NEW, source=LeadSource.INSTAGRAM, instrument="Piano"):
    return Lead(id=id, unit_id=unit, name=f"Lead {id}", phone="5511999999999",
                status=status, source=source, instrument=instrument)


def _payment(id, due, status=PaymentStatus.PENDING, unit="1", amount=350.0, student="1"):
    return Payment(id=id, student_id=student, unit_id=unit, amount=amount,
                   due_date=due.isoformat(), status=status)


# ---------------- unidades ----------------
def test_filter_by_unit_keeps_order_and_does_not_mutate():
    leads = [_lead("1", "A"), _lead("2", "B"), _lead("3", "A"), _lead("4", "A")]
    snapshot = list(leads)

    result = filter_by_unit(leads, "A")

    assert [l.id for l in result] == ["1", "3", "4"]
    assert all(l.unit_id == "A" for l in result)
    assert leads == snapshot


def test_filter_by_unit_unknown_or_none_is_empty():
    leads = [_lead("1", "A")]
    assert filter_by_unit(leads, "Z") == []
    assert filter_by_unit(leads, None) == []


def test_partition_by_unit_slices_are_disjoint():
    leads = [_lead("1", "A"), _lead("2", "B"), _lead("3", "C")]
    parts = partition_by_unit(leads, ["A", "B"])
    assert [l.id for l in parts["A"]] == ["1"]
    assert [l.id for l in parts["B"]] == ["2"]
    assert not set(l.id for l in parts["A"]) & set(l.id for l in parts["B"])


# ---------------- funil ----------------
def test_advance_walks_pipeline_to_won_then_stops():
    lead = _lead("1")
    seen = []
    for _ in range(4):
        lead = pipeline.advance(lead)
        seen.append(lead.status)

    assert seen == [LeadStatus.CONTACTED, LeadStatus.TRIAL, LeadStatus.NEGOTIATION, LeadStatus.WON]
    assert pipeline.advance(lead) is lead


def test_advance_lost_is_noop():
    lead = _lead("1", status=LeadStatus.LOST)
    assert pipeline.advance(lead).status == LeadStatus.LOST


def test_set_status_allows_any_transition():
    won = _lead("1", status=LeadStatus.WON)
    assert pipeline.set_status(won, LeadStatus.NEW).status == LeadStatus.NEW
    assert pipeline.set_status(won, "Perdido").status == LeadStatus.LOST


def test_group_by_status_has_every_column():
    columns = pipeline.group_by_status([_lead("1"), _lead("2", status=LeadStatus.TRIAL)])
    assert list(columns) == list(pipeline.PIPELINE_ORDER)
    assert [l.id for l in columns[LeadStatus.NEW]] == ["1"]
    assert columns[LeadStatus.WON] == []


def test_filter_by_instrument_and_available_instruments():
    leads = [_lead("1", instrument="Piano"), _lead("2", instrument="Canto"), _lead("3", instrument="")]
    assert pipeline.available_instruments(leads) == ["Canto", "Piano"]
    assert [l.id for l in pipeline.filter_by_instrument(leads, "Canto")] == ["2"]
    assert len(pipeline.filter_by_instrument(leads, "")) == 3


# ---------------- cobrança ----------------
@pytest.mark.parametrize(
    "offset, status, expected",
    [
        (0, PaymentStatus.PENDING, True),
        (5, PaymentStatus.PENDING, True),
        (6, PaymentStatus.PENDING, False),
        (-1, PaymentStatus.PENDING, False),
        (3, PaymentStatus.OVERDUE, False),
        (3, PaymentStatus.PAID, False),
    ],
)
def test_is_due_soon_window(offset, status, expected):
    p = _payment("1", NOW + timedelta(days=offset), status)
    assert billing.is_due_soon(p, NOW) is expected


def test_invalid_due_date_is_never_due_soon():
    p = Payment(id="1", student_id="1", unit_id="1", amount=10, due_date="sem data")
    assert billing.days_until_due(p, NOW) is None
    assert not billing.is_due_soon(p, NOW)


def test_build_reminders_uses_student_phone_and_skips_unknown_students():
    student = Student(id="1", unit_id="1", name="Julia", phone="+55 (21) 93333-3333")
    payments = [
        _payment("1", NOW + timedelta(days=5)),
        _payment("2", NOW + timedelta(days=2), student="99"),
    ]

    reminders = billing.build_reminders(payments, [student], NOW)

    assert len(reminders) == 1
    r = reminders[0]
    assert r.payment_id == "1"
    assert "Julia" in r.message
    assert r.link.startswith("https://wa.me/5521933333333?text=")


def test_whatsapp_link_encodes_message():
    assert only_digits("(11) 9-8888") == "1198888"
    assert whatsapp_link("11 9", "Olá mundo") == "https://wa.me/119?text=Ol%C3%A1%20mundo"


# ---------------- enums ----------------
@pytest.mark.parametrize("status", list(LeadStatus))
def test_lead_status_code_roundtrip(status):
    assert lead_status_from_code(lead_status_to_code(status)) is status


@pytest.mark.parametrize("status", list(PaymentStatus))
def test_payment_status_code_roundtrip(status):
    assert payment_status_from_code(payment_status_to_code(status)) is status


def test_unknown_code_raises():
    with pytest.raises(ValueError):
        lead_status_from_code("WHATEVER")


# ---------------- modelos / serviços ----------------
def test_admin_user_cannot_have_unit():
    with pytest.raises(ValueError):
        User(id="1", name="Admin", email="admin@playjazz.com", role="admin", unit_id="1")


def test_search_students_by_name_or_course():
    students = [
        Student(id="1", unit_id="1", name="Pedro", phone="1", course="Piano Clássico"),
        Student(id="2", unit_id="1", name="Julia", phone="2", course="Canto Popular"),
    ]
    assert [s.id for s in search_students(students, "piano")] == ["1"]
    assert [s.id for s in search_students(students, "JUL")] == ["2"]
    assert len(search_students(students, "  ")) == 2


def test_compute_kpis():
    leads = [_lead("1"), _lead("2", source=LeadSource.GOOGLE)]
    students = [
        Student(id="1", unit_id="1", name="A", phone="1"),
        Student(id="2", unit_id="1", name="B", phone="2", status="Inactive"),
    ]
    payments = [
        _payment("1", NOW, PaymentStatus.PAID, amount=350.0),
        _payment("2", NOW, PaymentStatus.PAID, amount=400.5),
        _payment("3", NOW, PaymentStatus.OVERDUE),
        _payment("4", NOW, PaymentStatus.PENDING),
    ]

    kpis = compute_kpis(leads, students, payments)

    assert kpis.total_leads == 2
    assert kpis.active_students == 1
    assert kpis.revenue == 750.5
    assert kpis.overdue_count == 1
    assert kpis.leads_by_source[LeadSource.GOOGLE] == 1
    assert kpis.leads_by_source[LeadSource.REFERRAL] == 0
