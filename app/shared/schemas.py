"""Shared Pydantic schemas for API responses."""

from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

# Decimal kept exact in Python, rendered as a JSON number on the wire
Amount = Annotated[
    Decimal,
    PlainSerializer(float, return_type=float, when_used="json"),
]


class CamelModel(BaseModel):
    """Immutable response model exposing camelCase JSON keys.

    Python code uses snake_case attribute names; FastAPI serializes by alias.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )
