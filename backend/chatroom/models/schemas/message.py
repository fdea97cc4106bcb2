"""Message schemas for the log file and the wire."""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class Message(BaseModel):
    """A single retained chat message."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    username: str = Field(..., min_length=1)
    text: str = Field(..., min_length=1)
    created_at: datetime = Field(..., alias="createdAt")

    @field_serializer("created_at")
    def serialize_created_at(self, value: datetime) -> str:
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        value = value.astimezone(timezone.utc)
        return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    def to_wire(self) -> dict[str, Any]:
        """Serialize with the public field names (``createdAt``)."""
        return self.model_dump(by_alias=True, mode="json")


class MessageCreate(BaseModel):
    """Schema for creating a message. Field checks happen in the factory."""
    username: Any = None
    text: Any = None


class MessageCreateResponse(BaseModel):
    """Schema for a successful create."""
    message: Message
    total: int


class MessageDeleteResponse(BaseModel):
    """Schema for a successful delete."""
    id: str


class ErrorResponse(BaseModel):
    """Schema for any failed request."""
    error: str


class HealthResponse(BaseModel):
    status: str = "ok"


class LoginRequest(BaseModel):
    username: Any = None


class LoginResponse(BaseModel):
    username: str
