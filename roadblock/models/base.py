"""
Pydantic base model shared by all request/response schemas.

DESIGN PRINCIPLE:
- Python attributes are snake_case, the JSON wire format is camelCase
- Models reflect data structure, not business logic
"""

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Base model for API payloads.
    Serializes with camelCase aliases and accepts either spelling on input.
    """

    class Config:
        alias_generator = to_camel
        populate_by_name = True
