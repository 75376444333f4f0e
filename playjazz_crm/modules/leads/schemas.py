from __future__ import annotations

from datetime import datetime
from typing import Optional, Literal

from pydantic import Field

from playjazz_crm.core.schemas import WireModel

LeadStatusCode = Literal["NEW", "CONTACTED", "TRIAL", "NEGOTIATION", "WON", "LOST"]
LeadSourceValue = Literal["Instagram", "Google", "Indicação"]


class LeadBase(WireModel):
    name: str = Field(..., min_length=1, max_length=160)
    phone: str = Field(..., min_length=1, max_length=30)
    email: str = ""
    instrument: str = ""
    source: LeadSourceValue


class LeadCreate(LeadBase):
    unit_id: int
    status: LeadStatusCode = "NEW"


class LeadUpdate(WireModel):
    # parcial: só o que vier preenchido é aplicado
    unit_id: Optional[int] = None
    name: Optional[str] = Field(default=None, min_length=1, max_length=160)
    phone: Optional[str] = Field(default=None, min_length=1, max_length=30)
    email: Optional[str] = None
    instrument: Optional[str] = None
    source: Optional[LeadSourceValue] = None
    status: Optional[LeadStatusCode] = None


class LeadOut(LeadBase):
    id: int
    unit_id: int
    status: LeadStatusCode
    created_at: datetime
