from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


# Stored and sent as camelCase JSON, built in Python by field name
class CamelBase(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
