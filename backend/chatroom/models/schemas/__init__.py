"""Pydantic schemas for API validation and persistence."""

from chatroom.models.schemas.message import (
    ErrorResponse,
    HealthResponse,
    LoginRequest,
    LoginResponse,
    Message,
    MessageCreate,
    MessageCreateResponse,
    MessageDeleteResponse,
)

__all__ = [
    "ErrorResponse",
    "HealthResponse",
    "LoginRequest",
    "LoginResponse",
    "Message",
    "MessageCreate",
    "MessageCreateResponse",
    "MessageDeleteResponse",
]
