from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from .models import SystemConfig
from .schemas import SystemConfigIn, SystemConfigOut, WhatsAppIn, GeminiIn
from playjazz_crm.core.dependencies import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------- Helpers ----------
async def _get_config(db: AsyncSession) -> SystemConfig | None:
    q = await db.execute(select(SystemConfig).order_by(SystemConfig.id.asc()).limit(1))
    return q.scalar_one_or_none()


def _default_config() -> SystemConfigOut:
    return SystemConfigOut(
        whatsapp=WhatsAppIn(provider="gateway", base_url="", api_key="", phone_number_id=""),
        gemini=GeminiIn(api_key=""),
        notification_email="",
    )


def _to_out(cfg: SystemConfig) -> SystemConfigOut:
    return SystemConfigOut(
        whatsapp=WhatsAppIn(
            provider=cfg.whatsapp_provider or "gateway",
            base_url=cfg.whatsapp_base_url,
            api_key=cfg.whatsapp_api_key,
            phone_number_id=cfg.whatsapp_phone_number_id,
        ),
        gemini=GeminiIn(api_key=cfg.gemini_api_key),
        notification_email=cfg.notification_email or "",
    )


def _flatten(payload: SystemConfigIn) -> dict:
    return {
        "whatsapp_provider": payload.whatsapp.provider,
        "whatsapp_base_url": payload.whatsapp.base_url,
        "whatsapp_api_key": payload.whatsapp.api_key,
        "whatsapp_phone_number_id": payload.whatsapp.phone_number_id,
        "gemini_api_key": payload.gemini.api_key,
        "notification_email": str(payload.notification_email) if payload.notification_email else None,
    }


# ---------- Endpoints ----------
@router.get("", response_model=SystemConfigOut)
async def get_config(db: AsyncSession = Depends(get_db)):
    cfg = await _get_config(db)
    if not cfg:
        return _default_config()
    return _to_out(cfg)


@router.post("", response_model=SystemConfigOut)
async def upsert_config(payload: SystemConfigIn, db: AsyncSession = Depends(get_db)):
    cfg = await _get_config(db)
    values = _flatten(payload)
    if cfg:
        for field, value in values.items():
            setattr(cfg, field, value)
    else:
        cfg = SystemConfig(**values)
        db.add(cfg)
        logger.info("Configuração do sistema criada")
    await db.commit()
    await db.refresh(cfg)
    return _to_out(cfg)
