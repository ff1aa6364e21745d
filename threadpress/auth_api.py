"""REST API for registration, login and token refresh."""

import logging

from fastapi import APIRouter, HTTPException

from threadpress.dependencies import AuthServiceDep, DbSession
from threadpress.exceptions import AuthError, ConflictError, ValidationError
from threadpress.models import (
    AuthResponse,
    LoginRequest,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/register", status_code=201, response_model=AuthResponse)
async def register(body: RegisterRequest, service: AuthServiceDep, session: DbSession):
    """Create an account and return a token pair."""
    try:
        result = await service.register(body.email, body.password)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    await session.commit()
    return result


@router.post("/login", response_model=AuthResponse)
async def login(body: LoginRequest, service: AuthServiceDep):
    """Exchange credentials for a token pair."""
    try:
        return await service.login(body.email, body.password)
    except AuthError:
        raise HTTPException(status_code=401, detail="Invalid credentials")


@router.post("/refresh", response_model=RefreshResponse)
async def refresh(body: RefreshRequest, service: AuthServiceDep):
    """Exchange a refresh token for a new access token."""
    try:
        return await service.refresh(body.refresh_token)
    except AuthError as e:
        logger.info(f"Refresh rejected: {e}")
        raise HTTPException(status_code=401, detail="Invalid or expired token")
