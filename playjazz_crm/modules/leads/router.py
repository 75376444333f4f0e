from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from playjazz_crm.core.dependencies import get_db
from playjazz_crm.modules.units.router import ensure_unit_exists

from .models import Lead
from .schemas import LeadCreate, LeadUpdate, LeadOut

logger = logging.getLogger(__name__)

router = APIRouter()


# ------------------------ helpers ------------------------
async def _get_lead_or_404(db: AsyncSession, lead_id: int) -> Lead:
    q = await db.execute(select(Lead).where(Lead.id == lead_id))
    obj = q.scalars().first()
    if not obj:
        raise HTTPException(404, "Lead não encontrado")
    return obj


# ------------------------ leads ------------------------
@router.get("", response_model=List[LeadOut])
async def list_leads(
    unit_id: Optional[int] = Query(None, alias="unitId"),
    db: AsyncSession = Depends(get_db),
):
    # sem unitId devolve tudo; a segregação por unidade é do cliente
    stmt = select(Lead)
    if unit_id is not None:
        stmt = stmt.where(Lead.unit_id == unit_id)
    stmt = stmt.order_by(Lead.id.asc())

    q = await db.execute(stmt)
    return q.scalars().all()


@router.post("", response_model=LeadOut, status_code=status.HTTP_201_CREATED)
async def create_lead(payload: LeadCreate, db: AsyncSession = Depends(get_db)):
    await ensure_unit_exists(db, payload.unit_id)

    obj = Lead(
        unit_id=payload.unit_id,
        name=payload.name,
        phone=payload.phone,
        email=payload.email,
        instrument=payload.instrument,
        source=payload.source,
        status=payload.status,
    )
    db.add(obj)
    await db.commit()
    await db.refresh(obj)
    logger.info("Lead %s criado na unidade %s", obj.id, obj.unit_id)
    return obj


@router.put("/{lead_id}", response_model=LeadOut)
async def update_lead(
    lead_id: int,
    payload: LeadUpdate,
    db: AsyncSession = Depends(get_db),
):
    obj = await _get_lead_or_404(db, lead_id)

    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if "unit_id" in changes:
        await ensure_unit_exists(db, changes["unit_id"])
    for field, value in changes.items():
        setattr(obj, field, value)

    await db.commit()
    await db.refresh(obj)
    return obj


@router.delete("/{lead_id}")
async def delete_lead(lead_id: int, db: AsyncSession = Depends(get_db)):
    obj = await _get_lead_or_404(db, lead_id)
    await db.delete(obj)
    await db.commit()
    return {"success": True}
