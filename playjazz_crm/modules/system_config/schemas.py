from __future__ import annotations
from typing import Optional, Literal

from pydantic import EmailStr, Field, field_validator

from playjazz_crm.core.schemas import WireModel


class WhatsAppIn(WireModel):
    provider: Literal["cloud_api", "gateway"] = "gateway"
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    phone_number_id: Optional[str] = None


class GeminiIn(WireModel):
    api_key: Optional[str] = ""


class SystemConfigIn(WireModel):
    whatsapp: WhatsAppIn = Field(default_factory=WhatsAppIn)
    gemini: GeminiIn = Field(default_factory=GeminiIn)
    notification_email: Optional[EmailStr] = None

    @field_validator("notification_email", mode="before")
    @classmethod
    def _vazio_vira_none(cls, v):
        # campo limpo no formulário chega como ""
        if isinstance(v, str) and not v.strip():
            return None
        return v


class SystemConfigOut(WireModel):
    whatsapp: WhatsAppIn
    gemini: GeminiIn
    notification_email: Optional[str] = ""
