# backend/schemas/base.py
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


# JSON uses camelCase (itemCode, minStock); Python code uses snake_case.
# Both spellings are accepted on input.
class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
