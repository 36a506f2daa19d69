"""Import request and progress schemas."""

from pydantic import BaseModel, Field


class ImportRequest(BaseModel):
    """Archive files to hand to the importer, in order."""

    file_paths: list[str] = Field(default_factory=list)


class ImportStateRead(BaseModel):
    """Current import status and progress."""

    status: str
    processed: int = 0
    total: int = 0
    message: str | None = None
