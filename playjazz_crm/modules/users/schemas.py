from __future__ import annotations
from typing import Optional, Literal
from pydantic import EmailStr, model_validator

from playjazz_crm.core.schemas import WireModel

Role = Literal["admin", "manager"]


class UserOut(WireModel):
    id: int
    name: str
    email: str
    role: Role
    unit_id: Optional[int] = None


class UserCreate(WireModel):
    name: str
    email: EmailStr
    role: Role = "manager"
    unit_id: Optional[int] = None

    @model_validator(mode="after")
    def _check_role_unit(self):
        # admin => sem unidade; gerente precisa de uma
        if self.role == "admin" and self.unit_id is not None:
            raise ValueError("Usuário admin não pode ter unitId")
        if self.role == "manager" and self.unit_id is None:
            raise ValueError("Gerente precisa de unitId")
        return self
