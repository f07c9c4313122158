"""
Shared pydantic base for request/response bodies.

Python attributes are snake_case; the JSON the browser sends and receives is
camelCase. Both spellings are accepted on input.
"""

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class MessageResponse(CamelModel):
    message: str
