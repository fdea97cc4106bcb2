"""Message API routes."""

import json
from typing import List, Union
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from chatroom.api.deps import get_message_service
from chatroom.core.errors import MessageNotFoundError, MessageValidationError, PersistenceError
from chatroom.models.schemas import (
    ErrorResponse,
    Message,
    MessageCreate,
    MessageCreateResponse,
    MessageDeleteResponse,
)
from chatroom.services.message_service import MessageService

router = APIRouter(prefix="/messages", tags=["messages"])


def _error(status_code: int, error: Union[Exception, str]) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(error)})


@router.get("", response_model=List[Message])
async def list_messages(
    service: MessageService = Depends(get_message_service),
):
    """List every retained message in log order."""
    return await service.list_messages()


@router.post(
    "",
    response_model=MessageCreateResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    openapi_extra={
        "requestBody": {
            "content": {"application/json": {"schema": MessageCreate.model_json_schema()}},
        },
    },
)
async def create_message(
    request: Request,
    service: MessageService = Depends(get_message_service),
):
    """
    Create a new message.

    The body is parsed here rather than by FastAPI so that any unusable body
    answers 400 ``{"error"}`` like a missing field does. The message is
    broadcast to every websocket subscriber once it is on disk.
    """
    body = await request.body()
    try:
        payload = json.loads(body) if body.strip() else None
    except ValueError:
        return _error(status.HTTP_400_BAD_REQUEST, "invalid JSON body")

    try:
        result = await service.create_message(payload)
    except MessageValidationError as e:
        return _error(status.HTTP_400_BAD_REQUEST, e)
    except PersistenceError as e:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, e)

    return MessageCreateResponse(message=result.message, total=result.total)


@router.delete(
    "/{message_id}",
    response_model=MessageDeleteResponse,
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def delete_message(
    message_id: str,
    service: MessageService = Depends(get_message_service),
):
    """Delete a message by ID."""
    try:
        removed_id = await service.delete_message(message_id)
    except MessageNotFoundError as e:
        return _error(status.HTTP_404_NOT_FOUND, e)
    except PersistenceError as e:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, e)

    return MessageDeleteResponse(id=removed_id)
