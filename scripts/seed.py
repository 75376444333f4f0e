# scripts/seed.py
import sys, asyncio
if sys.platform.startswith("win"):
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

import logging
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from playjazz_crm import seed_data
from playjazz_crm.db.base import Base
from playjazz_crm.db.session import AsyncSessionLocal, engine
from playjazz_crm.modules.units.models import Unit
from playjazz_crm.modules.users.models import User
from playjazz_crm.modules.leads.models import Lead
from playjazz_crm.modules.students.models import Student, TimelineLog
from playjazz_crm.modules.payments.models import Payment
from playjazz_crm.modules.system_config.models import SystemConfig  # noqa: F401 (registra a tabela)

logger = logging.getLogger("seed")


async def seed_database(db: AsyncSession, today: date | None = None) -> bool:
    """Insere os dados de demonstração. Retorna False se já havia unidades."""
    existing = (await db.execute(select(func.count()).select_from(Unit))).scalar_one()
    if existing:
        logger.info("Banco já possui %s unidade(s); seed ignorado", existing)
        return False

    units = [Unit(name=u["name"]) for u in seed_data.UNITS]
    db.add_all(units)
    await db.flush()

    db.add_all([
        User(
            name=u["name"],
            email=u["email"],
            role=u["role"],
            unit_id=None if u["unit"] is None else units[u["unit"]].id,
        )
        for u in seed_data.USERS
    ])

    db.add_all([
        Lead(
            unit_id=units[row["unit"]].id,
            name=row["name"],
            phone=row["phone"],
            email=row["email"],
            instrument=row["instrument"],
            source=row["source"],
            status=row["status"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )
        for row in seed_data.LEADS
    ])

    students = [
        Student(
            unit_id=units[row["unit"]].id,
            name=row["name"],
            phone=row["phone"],
            email=row["email"],
            birth_date=row["birth_date"],
            responsible_name=row["responsible_name"],
            course=row["course"],
            status=row["status"],
            timeline=[
                TimelineLog(date=datetime.fromisoformat(log["date"]), type=log["type"], message=log["message"])
                for log in row["timeline"]
            ],
        )
        for row in seed_data.STUDENTS
    ]
    db.add_all(students)
    await db.flush()

    db.add_all([
        Payment(
            student_id=students[row["student"]].id,
            unit_id=units[row["unit"]].id,
            amount=Decimal(row["amount"]),
            due_date=row["due_date"],
            status=row["status"],
            description=row["description"],
        )
        for row in seed_data.payments(today)
    ])
    await db.commit()
    logger.info(
        "Seed concluído: %d unidades, %d leads, %d alunos",
        len(units), len(seed_data.LEADS), len(students),
    )
    return True


async def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with AsyncSessionLocal() as db:
        await seed_database(db)
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
