"""Export schemas."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ExportRead(BaseModel):
    """One completed import run with its conversation count."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    source: str
    checksum: str | None = None
    imported_at: int
    meta_json: dict[str, Any] | None = None
    conversation_count: int = 0


class ExportDeleteResult(BaseModel):
    """Outcome of deleting an export and cleaning up emptied chats."""

    id: int
    deleted: bool
    orphans_removed: list[int] = Field(default_factory=list)
