from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class RequestModel(BaseModel):
    """Request payload accepting camelCase keys (snake_case also allowed)"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
