from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from playjazz_crm.core.dependencies import get_db
from .models import Unit
from .schemas import UnitOut

router = APIRouter()


async def ensure_unit_exists(db: AsyncSession, unit_id: int | None) -> None:
    """Valida a unidade informada no corpo (FK não é garantida no SQLite)."""
    if unit_id is None:
        return
    res = await db.execute(select(Unit.id).where(Unit.id == unit_id))
    if res.scalar_one_or_none() is None:
        raise HTTPException(status_code=400, detail="Unidade inválida")


@router.get("", response_model=List[UnitOut])
async def list_units(db: AsyncSession = Depends(get_db)):
    res = await db.execute(select(Unit).order_by(Unit.id.asc()))
    return res.scalars().all()
