from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from playjazz_crm.core.dependencies import get_db
from playjazz_crm.modules.units.router import ensure_unit_exists
from .models import User
from .schemas import UserOut, UserCreate

router = APIRouter()


@router.get("", response_model=List[UserOut])
async def list_users(db: AsyncSession = Depends(get_db)):
    res = await db.execute(select(User).order_by(User.id.asc()))
    return res.scalars().all()


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def create_user(payload: UserCreate, db: AsyncSession = Depends(get_db)):
    await ensure_unit_exists(db, payload.unit_id)

    exists = await db.execute(select(User).where(User.email == payload.email))
    if exists.scalar_one_or_none():
        raise HTTPException(status_code=409, detail="E-mail já cadastrado")

    u = User(
        name=payload.name,
        email=str(payload.email),
        role=payload.role,
        unit_id=payload.unit_id,
    )
    db.add(u)
    await db.commit()
    await db.refresh(u)
    return u


@router.delete("/{user_id}")
async def delete_user(user_id: int, db: AsyncSession = Depends(get_db)):
    res = await db.execute(select(User).where(User.id == user_id))
    u = res.scalar_one_or_none()
    if not u:
        raise HTTPException(status_code=404, detail="Usuário não encontrado")
    await db.delete(u)
    await db.commit()
    return {"success": True}
