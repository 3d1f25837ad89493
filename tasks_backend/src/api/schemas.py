from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# PUBLIC_INTERFACE
class TaskCreate(BaseModel):
    """
    Schema for creating a task. ``properties`` maps database property names to
    plain values; the database's title property must be present.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "properties": {
                    "Name": "Buy groceries",
                    "Due": "2025-02-01",
                    "Tags": ["home", "errands"],
                }
            }
        }
    )

    properties: Dict[str, Any] = Field(..., description="Property values keyed by property name")


# PUBLIC_INTERFACE
class TaskUpdate(BaseModel):
    """
    Schema for a partial task update.

    Only the given properties are written. ``completed`` toggles the database's
    checkbox/status property. For older clients a ``completed`` key inside
    ``properties`` also sets the flag when the top-level field is unset. The
    key stays in ``properties``: it is written as well if the database has a
    property named ``completed``, and dropped as an unknown property otherwise.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "properties": {"Priority": "High"},
                "completed": True,
            }
        }
    )

    properties: Dict[str, Any] = Field(..., description="Property values keyed by property name")
    completed: Optional[bool] = Field(default=None, description="Completion status flag")

    @model_validator(mode="after")
    def lift_completed(self) -> "TaskUpdate":
        if self.completed is None and "completed" in self.properties:
            self.completed = bool(self.properties["completed"])
        return self


# PUBLIC_INTERFACE
class TaskOut(BaseModel):
    """
    Schema returned by the API for a task.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "1d2c3b4a-0000-4000-8000-000000000000",
                "createdAt": "2025-01-25T10:15:30.123000Z",
                "title": "Buy groceries",
                "completed": False,
                "properties": {"Name": "Buy groceries", "Status": "Not started", "Tags": []},
            }
        },
    )

    id: str = Field(..., description="Identifier of the record in the external store")
    created_at: Optional[datetime] = Field(default=None, description="Creation timestamp")
    title: Optional[str] = Field(default=None, description="Title property value, 'Untitled' if empty")
    completed: bool = Field(..., description="Completion status derived from the checkbox/status property")
    properties: Dict[str, Any] = Field(..., description="Decoded property values keyed by name")


class PropertyOut(BaseModel):
    name: str = Field(..., description="Property name")
    type: str = Field(..., description="Property type as reported by the store")
    options: Optional[List[str]] = Field(default=None, description="Declared options for choice properties")


class SchemaOut(BaseModel):
    """
    Database schema as seen by task clients.
    """

    model_config = _CAMEL

    title_property: Optional[str] = Field(default=None, description="Name of the title property")
    boolean_property: Optional[str] = Field(
        default=None, description="Name of the checkbox/status property backing 'completed'"
    )
    properties: List[PropertyOut] = Field(..., description="Property definitions in declared order")


class UpdateAck(BaseModel):
    id: str
    updated: bool
    properties: Dict[str, Any]


class DeleteAck(BaseModel):
    id: str
    deleted: bool
