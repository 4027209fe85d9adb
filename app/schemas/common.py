"""Common/shared schemas."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that serializes snake_case fields as camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class OperatorFields(CamelModel):
    """Who is confirming at the counter. Audit only."""

    operator_id: str = "sys"
    operator_name: str = "Loja"
    operator_role: str = "STORE"


class HealthResponse(BaseModel):
    status: str
