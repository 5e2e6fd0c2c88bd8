"""
Response envelope shared by every use case.

Serialized with camelCase keys: ``{statusCode, success, message, ...payload}``.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BaseResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status_code: int = 200
    success: bool = True
    message: str
