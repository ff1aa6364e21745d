"""Authentication dependency for FastAPI API routes."""

import logging

from fastapi import HTTPException, Request

from threadpress.config import settings
from threadpress.exceptions import AuthError
from threadpress.security import ACCESS_TOKEN, decode_token

logger = logging.getLogger(__name__)


def get_current_user(request: Request) -> dict:
    """FastAPI dependency: verify the Bearer access token.

    Returns the token's user claims ({"id", "email"}).
    """
    if not settings.AUTH_ENABLED:
        return {"id": None, "email": None}

    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing authorization token")

    try:
        payload = decode_token(auth_header[7:], ACCESS_TOKEN)
    except AuthError as e:
        raise HTTPException(status_code=401, detail=str(e))

    return {"id": int(payload["sub"]), "email": payload.get("email")}
