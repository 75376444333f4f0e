# playjazz_crm/core/schemas.py
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base das linhas trafegadas na API: camelCase, ids inteiros, códigos compactos."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
