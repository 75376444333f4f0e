# playjazz_crm/modules/payments/router.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from playjazz_crm.core.dependencies import get_db
from playjazz_crm.modules.students.crud import get_student_or_404
from .models import Payment
from .schemas import PaymentOut, PaymentCreate, PaymentUpdate

router = APIRouter(tags=["Financeiro - Pagamentos"])


@router.get("", response_model=List[PaymentOut])
async def list_payments(
    unit_id: Optional[int] = Query(None, alias="unitId"),
    db: AsyncSession = Depends(get_db),
):
    stmt = select(Payment)
    if unit_id is not None:
        stmt = stmt.where(Payment.unit_id == unit_id)
    res = await db.execute(stmt.order_by(Payment.id.asc()))
    return res.scalars().all()


@router.post("", response_model=PaymentOut, status_code=status.HTTP_201_CREATED)
async def create_payment(payload: PaymentCreate, db: AsyncSession = Depends(get_db)):
    try:
        st = await get_student_or_404(db, payload.student_id)
    except HTTPException:
        raise HTTPException(400, "Aluno inválido") from None

    # unitId do pagamento tem de ser o mesmo do aluno
    unit_id = payload.unit_id if payload.unit_id is not None else st.unit_id
    if unit_id != st.unit_id:
        raise HTTPException(400, "Unidade do pagamento difere da unidade do aluno")

    p = Payment(
        student_id=st.id,
        unit_id=unit_id,
        amount=payload.amount,
        due_date=payload.due_date,
        status=payload.status,
        description=payload.description,
    )
    db.add(p)
    await db.commit()
    await db.refresh(p)
    return p


@router.put("/{payment_id}", response_model=PaymentOut)
async def update_payment(
    payment_id: int,
    payload: PaymentUpdate,
    db: AsyncSession = Depends(get_db),
):
    res = await db.execute(select(Payment).where(Payment.id == payment_id))
    p = res.scalar_one_or_none()
    if not p:
        raise HTTPException(404, "Pagamento não encontrado")

    for field, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(p, field, value)

    await db.commit()
    await db.refresh(p)
    return p
