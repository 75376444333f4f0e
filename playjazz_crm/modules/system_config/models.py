from __future__ import annotations
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer
from playjazz_crm.db.base import Base


class SystemConfig(Base):
    """Linha única (singleton): criada no primeiro save, atualizada depois."""
    __tablename__ = "system_config"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    whatsapp_provider: Mapped[str | None] = mapped_column(String(20), nullable=True, default="gateway")
    whatsapp_base_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    whatsapp_api_key: Mapped[str | None] = mapped_column(String(512), nullable=True)
    whatsapp_phone_number_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    gemini_api_key: Mapped[str | None] = mapped_column(String(512), nullable=True)
    notification_email: Mapped[str | None] = mapped_column(String(200), nullable=True)
