"""Login route: a static allow-list check on the username."""

import logging
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from chatroom.api.deps import get_settings
from chatroom.core.config import Settings
from chatroom.models.schemas import ErrorResponse, LoginRequest, LoginResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
)
async def login(
    credentials: LoginRequest,
    app_settings: Settings = Depends(get_settings),
):
    """
    Check a username against the configured allow-list.

    No session or token is issued; clients keep the returned username and
    send it with each message.
    """
    username = str(credentials.username or "").strip().lower()

    if not username:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "username required"},
        )

    if username not in app_settings.allowed_usernames_list:
        logger.info(f"Rejected login for unknown username {username!r}")
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"error": "invalid username"},
        )

    return LoginResponse(username=username)
