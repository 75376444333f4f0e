from playjazz_crm.core.schemas import WireModel


class UnitOut(WireModel):
    id: int
    name: str
