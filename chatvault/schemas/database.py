"""Database maintenance schemas."""

from pydantic import BaseModel, Field


class DatabaseHealthRead(BaseModel):
    """Startup integrity check outcome plus migration state."""

    ok: bool
    errors: list[str] = Field(default_factory=list)
    full_check_ran: bool = False
    revision: str | None = None
    reset_pending: bool = False


class ResetRequest(BaseModel):
    confirm: bool = False
