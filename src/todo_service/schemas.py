from __future__ import annotations

from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

# JSON integers only (no numeric strings or booleans), within the store's signed 64-bit range.
Int64 = Annotated[StrictInt, Field(ge=INT64_MIN, le=INT64_MAX)]


def _normalize_subject(value: str) -> str:
    """
    Strip surrounding whitespace and reject an empty subject.
    """
    s = value.strip()
    if not s:
        raise ValueError("subject must not be empty")
    return s


# PUBLIC_INTERFACE
class CreateTodoRequest(BaseModel):
    """
    Schema for creating a new Todo item.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "subject": "buy milk",
                "description": "two bottles",
            }
        }
    )

    subject: str = Field(..., description="Short subject of the todo item")
    description: Optional[str] = Field(default="", description="Optional detailed description")

    @field_validator("subject")
    @classmethod
    def validate_subject(cls, v: str) -> str:
        return _normalize_subject(v)

    @field_validator("description")
    @classmethod
    def default_description(cls, v: Optional[str]) -> str:
        """
        A null description is stored as an empty string.
        """
        return v or ""


# PUBLIC_INTERFACE
class UpdateTodoRequest(BaseModel):
    """
    Schema for updating an existing Todo item.

    Subject and description are overwritten; id selects the item and must be non-zero.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 1,
                "subject": "buy oat milk",
                "description": "",
            }
        }
    )

    id: Int64 = Field(..., description="Identifier of the todo item to update")
    subject: str = Field(..., description="New subject")
    description: Optional[str] = Field(default="", description="New description")

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: int) -> int:
        if v == 0:
            raise ValueError("id must not be zero")
        return v

    @field_validator("subject")
    @classmethod
    def validate_subject(cls, v: str) -> str:
        return _normalize_subject(v)

    @field_validator("description")
    @classmethod
    def default_description(cls, v: Optional[str]) -> str:
        return v or ""


# PUBLIC_INTERFACE
class DeleteTodoRequest(BaseModel):
    """
    Schema for deleting a set of Todo items. Unknown ids are ignored.
    """

    model_config = ConfigDict(json_schema_extra={"example": {"ids": [1, 2, 3]}})

    ids: List[Int64] = Field(..., description="Identifiers of the todo items to delete")


# PUBLIC_INTERFACE
class TodoOut(BaseModel):
    """
    Schema returned by the API for a Todo item.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 1,
                "subject": "buy milk",
                "description": "",
                "created_at": "2025-01-25T10:15:30.123456",
                "updated_at": "2025-01-25T10:15:30.123456",
            }
        }
    )

    id: int = Field(..., description="Unique identifier of the todo item")
    subject: str = Field(..., description="Short subject of the todo item")
    description: str = Field(default="", description="Detailed description")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


class CreateTodoResponse(BaseModel):
    todo: TodoOut


class UpdateTodoResponse(BaseModel):
    todo: TodoOut


class ReadTodoResponse(BaseModel):
    todos: List[TodoOut] = Field(..., description="Todo items ordered by id, newest first")


class DeleteTodoResponse(BaseModel):
    """Empty body returned after a successful delete."""


class HealthzResponse(BaseModel):
    message: str = Field(..., description="Health status")
