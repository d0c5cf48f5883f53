"""Table property schema."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class DataType(StrEnum):
    """Property value types understood by the server."""

    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    FACTOR = "factor"


class Property(BaseModel, populate_by_name=True):
    """A field in a Sky table.

    Transient properties only apply to the event they are set on;
    permanent ones carry forward to later events of the same object.
    """

    name: str
    transient: bool = False
    data_type: DataType = Field(default=DataType.STRING, alias="dataType")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
