from __future__ import annotations
from datetime import datetime
from typing import Optional, List, Literal

from pydantic import Field

from playjazz_crm.core.schemas import WireModel

StudentStatusValue = Literal["Active", "Inactive"]
LogTypeValue = Literal["Sistema", "WhatsApp", "Financeiro", "Nota"]


class TimelineLogOut(WireModel):
    id: int
    student_id: int
    date: datetime
    type: LogTypeValue
    message: str


class TimelineLogCreate(WireModel):
    type: LogTypeValue
    message: str = Field(..., min_length=1)
    date: Optional[datetime] = None  # vazio = agora (servidor)


class StudentBase(WireModel):
    name: str = Field(..., min_length=1, max_length=200)
    phone: str = Field(..., min_length=1, max_length=40)
    email: str = ""
    birth_date: str = ""
    responsible_name: Optional[str] = None
    course: str = ""
    status: StudentStatusValue = "Active"


class StudentCreate(StudentBase):
    unit_id: int


class StudentUpdate(WireModel):
    unit_id: Optional[int] = None
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    phone: Optional[str] = Field(default=None, min_length=1, max_length=40)
    email: Optional[str] = None
    birth_date: Optional[str] = None
    responsible_name: Optional[str] = None
    course: Optional[str] = None
    status: Optional[StudentStatusValue] = None


class StudentOut(StudentBase):
    id: int
    unit_id: int
    timeline: List[TimelineLogOut] = []
