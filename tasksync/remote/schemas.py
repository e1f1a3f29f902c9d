"""
Wire Schemas — Envelope and DTO Validation
===========================================
Pydantic models for the collection endpoint's JSON. Every success body is
{"data": <payload>}, every error body is {"error": <message>}. A body that
does not match is a validation failure, never a silent default.
"""

from __future__ import annotations

from typing import Any, Optional, Union

from pydantic import BaseModel, StrictBool, StrictInt, StrictStr, field_validator, model_validator

from tasksync.models import Item, ItemStatus, parse_date


class TodoItemDTO(BaseModel):
    """One item exactly as the server sends it (camelCase)."""

    id: Union[StrictInt, StrictStr]
    secretPath: StrictStr
    isCompleted: StrictBool
    createdAt: StrictStr
    completedAt: Optional[StrictStr] = None

    @field_validator("id", mode="after")
    @classmethod
    def coerce_id_to_str(cls, v: object) -> str:
        """Server ids are integers; the client keys items by string."""
        text = str(v).strip()
        if not text:
            raise ValueError("id must not be empty")
        return text

    @field_validator("secretPath")
    @classmethod
    def non_empty_path(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("secretPath must not be empty")
        return v

    @field_validator("createdAt", "completedAt")
    @classmethod
    def iso_timestamp(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            parse_date(v)
        return v

    @model_validator(mode="after")
    def completion_consistent(self) -> TodoItemDTO:
        if self.isCompleted != (self.completedAt is not None):
            raise ValueError("completedAt must be set if and only if isCompleted is true")
        return self

    def to_item(self) -> Item:
        return Item(
            id=str(self.id),
            title=self.secretPath,
            status=ItemStatus.COMPLETED if self.isCompleted else ItemStatus.PENDING,
            created_at=parse_date(self.createdAt),
            completed_at=parse_date(self.completedAt) if self.completedAt else None,
        )


class ItemEnvelope(BaseModel):
    data: TodoItemDTO


class ItemListEnvelope(BaseModel):
    data: list[TodoItemDTO]

    @model_validator(mode="after")
    def unique_ids(self) -> ItemListEnvelope:
        seen: set[str] = set()
        for dto in self.data:
            if dto.id in seen:
                raise ValueError(f"duplicate item id {dto.id!r}")
            seen.add(dto.id)
        return self


class AckEnvelope(BaseModel):
    data: Any  # Required; delete answers {"data": true}


class ErrorEnvelope(BaseModel):
    error: StrictStr


class CreateTodoRequest(BaseModel):
    secretPath: str
