from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LogEntry(BaseModel):
    """One line of an activity or bridge log. Timestamps are epoch milliseconds."""

    model_config = ConfigDict(frozen=True)

    timestamp: float
    level: str = "info"
    message: str
    context: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class QueueItem(BaseModel):
    # work item payloads are owned by the bridges; keep whatever they send
    model_config = ConfigDict(extra="allow")

    id: str

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, v):
        return str(v)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


class ErrorRecord(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    error: str
    context: Optional[Any] = None
    timestamp: float

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, v):
        return str(v)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


class PageRange(BaseModel):
    first: int = 1
    prev: Optional[int] = None
    next: Optional[int] = None
    last: int = 1
    window: List[int] = Field(default_factory=list)


class PageDescriptor(BaseModel):
    count: int
    size: int
    page: int
    pages: PageRange

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.size


class TaskRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    # forwarded as sent; the dispatcher decides whether it names a category
    error: Any = None


class CommandResult(BaseModel):
    model_config = ConfigDict(extra="allow")

    success: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()
