from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from playjazz_crm.core.dependencies import get_db
from playjazz_crm.modules.payments.models import Payment
from playjazz_crm.modules.units.router import ensure_unit_exists
from .crud import get_student_or_404
from .models import Student, TimelineLog
from .schemas import (
    StudentOut, StudentCreate, StudentUpdate,
    TimelineLogOut, TimelineLogCreate,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=List[StudentOut])
async def list_students(
    unit_id: Optional[int] = Query(None, alias="unitId"),
    db: AsyncSession = Depends(get_db),
):
    stmt = select(Student).options(selectinload(Student.timeline))
    if unit_id is not None:
        stmt = stmt.where(Student.unit_id == unit_id)
    res = await db.execute(stmt.order_by(Student.id.asc()))
    return res.scalars().all()


@router.post("", response_model=StudentOut, status_code=status.HTTP_201_CREATED)
async def create_student(payload: StudentCreate, db: AsyncSession = Depends(get_db)):
    await ensure_unit_exists(db, payload.unit_id)

    st = Student(**payload.model_dump(), timeline=[])
    db.add(st)
    await db.commit()
    logger.info("Aluno %s criado na unidade %s", st.id, st.unit_id)
    return await get_student_or_404(db, st.id)


@router.put("/{student_id}", response_model=StudentOut)
async def update_student(
    student_id: int,
    payload: StudentUpdate,
    db: AsyncSession = Depends(get_db),
):
    st = await get_student_or_404(db, student_id)

    changes = payload.model_dump(exclude_unset=True)
    if changes.get("unit_id") is not None:
        await ensure_unit_exists(db, changes["unit_id"])
    for field, value in changes.items():
        # responsável pode ser limpo; o resto ignora None
        if value is None and field != "responsible_name":
            continue
        setattr(st, field, value)

    await db.commit()
    return await get_student_or_404(db, student_id)


@router.delete("/{student_id}")
async def delete_student(student_id: int, db: AsyncSession = Depends(get_db)):
    await get_student_or_404(db, student_id)

    # dependentes primeiro, depois o aluno; tudo num único commit
    await db.execute(delete(TimelineLog).where(TimelineLog.student_id == student_id))
    await db.execute(delete(Payment).where(Payment.student_id == student_id))
    await db.execute(delete(Student).where(Student.id == student_id))
    await db.commit()
    logger.info("Aluno %s removido (timeline e pagamentos em cascata)", student_id)
    return {"success": True}


# ---------------- timeline ----------------
@router.post("/{student_id}/timeline", response_model=TimelineLogOut, status_code=status.HTTP_201_CREATED)
async def add_timeline_log(
    student_id: int,
    payload: TimelineLogCreate,
    db: AsyncSession = Depends(get_db),
):
    await get_student_or_404(db, student_id)

    log = TimelineLog(student_id=student_id, type=payload.type, message=payload.message)
    if payload.date is not None:
        log.date = payload.date
    db.add(log)
    await db.commit()
    await db.refresh(log)
    return log
