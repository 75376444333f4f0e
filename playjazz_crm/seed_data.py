# playjazz_crm/seed_data.py
"""
Dados de demonstração (duas unidades PlayJazz).

Usados pelo ``scripts/seed.py`` (banco) e pelo ``LocalDataProvider``
(modo sem rede). Unidades e alunos são referenciados pela posição na
lista; status em código compacto, como no banco.
"""
from __future__ import annotations

from datetime import date, timedelta

UNITS = [
    {"name": "PlayJazz Centro"},
    {"name": "PlayJazz Zona Sul"},
]

USERS = [
    {"name": "Admin Principal", "email": "admin@playjazz.com", "role": "admin", "unit": None},
    {"name": "Gerente Centro", "email": "gerente.centro@playjazz.com", "role": "manager", "unit": 0},
    {"name": "Secretária Sul", "email": "sec.sul@playjazz.com", "role": "manager", "unit": 1},
]

LEADS = [
    {"unit": 0, "name": "Ana Silva", "phone": "5511999999999", "email": "ana@example.com", "instrument": "Piano", "source": "Instagram", "status": "NEW", "created_at": "2023-10-01"},
    {"unit": 0, "name": "Carlos Souza", "phone": "5511988888888", "email": "carlos@example.com", "instrument": "Guitarra", "source": "Google", "status": "CONTACTED", "created_at": "2023-10-02"},
    {"unit": 1, "name": "Beatriz Lima", "phone": "5521977777777", "email": "bia@example.com", "instrument": "Canto", "source": "Indicação", "status": "TRIAL", "created_at": "2023-10-03"},
    {"unit": 0, "name": "João Paulo", "phone": "5511966666666", "email": "jp@example.com", "instrument": "Bateria", "source": "Instagram", "status": "NEGOTIATION", "created_at": "2023-10-05"},
    {"unit": 1, "name": "Mariana Costa", "phone": "5521955555555", "email": "mari@example.com", "instrument": "Saxofone", "source": "Google", "status": "NEW", "created_at": "2023-10-06"},
]

STUDENTS = [
    {
        "unit": 0,
        "name": "Pedro Alcantara",
        "phone": "5511944444444",
        "email": "pedro@example.com",
        "birth_date": "2010-05-15",
        "responsible_name": "Marcos Alcantara",
        "course": "Piano Clássico",
        "status": "Active",
        "timeline": [
            {"date": "2023-09-01", "type": "Sistema", "message": "Matrícula realizada"},
            {"date": "2023-10-05", "type": "WhatsApp", "message": "Lembrete de aula enviado"},
        ],
    },
    {
        "unit": 1,
        "name": "Julia Roberts",
        "phone": "5521933333333",
        "email": "julia@example.com",
        "birth_date": "1995-12-20",
        "responsible_name": None,
        "course": "Canto Popular",
        "status": "Active",
        "timeline": [
            {"date": "2023-08-15", "type": "Sistema", "message": "Lead convertido em aluno"},
        ],
    },
]


def payments(today: date | None = None) -> list[dict]:
    # uma mensalidade vence daqui a 5 dias para exercitar o lembrete
    soon = (today or date.today()) + timedelta(days=5)
    return [
        {"unit": 0, "student": 0, "amount": "350.00", "due_date": "2023-10-10", "status": "PAID", "description": "Mensalidade Outubro"},
        {"unit": 0, "student": 0, "amount": "350.00", "due_date": "2023-11-10", "status": "PENDING", "description": "Mensalidade Novembro"},
        {"unit": 1, "student": 1, "amount": "400.00", "due_date": soon.isoformat(), "status": "PENDING", "description": "Mensalidade Novembro"},
        {"unit": 0, "student": 0, "amount": "350.00", "due_date": "2023-09-10", "status": "OVERDUE", "description": "Mensalidade Setembro"},
    ]
