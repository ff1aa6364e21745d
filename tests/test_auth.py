"""Tests for threadpress/security.py and threadpress/services/auth_service.py."""

import jwt
import pytest

from threadpress.config import settings
from threadpress.exceptions import AuthError, ConflictError, ValidationError
from threadpress.security import (
    ACCESS_TOKEN,
    REFRESH_TOKEN,
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)
from threadpress.services.auth_service import AuthService


#============================================
def test_password_hash_round_trip():
    stored = hash_password("hunter22")
    assert stored.startswith("pbkdf2_sha256$")
    assert "hunter22" not in stored
    assert verify_password("hunter22", stored)
    assert not verify_password("hunter23", stored)
    assert not verify_password("hunter22", "garbage")


#============================================
def test_password_hashes_are_salted():
    assert hash_password("same") != hash_password("same")


#============================================
def test_access_and_refresh_tokens_are_not_interchangeable():
    access = create_access_token(7, "me@example.com")
    refresh = create_refresh_token(7)

    assert decode_token(access, ACCESS_TOKEN)["email"] == "me@example.com"
    assert decode_token(refresh, REFRESH_TOKEN)["sub"] == "7"
    with pytest.raises(AuthError, match="Invalid token type"):
        decode_token(refresh, ACCESS_TOKEN)
    with pytest.raises(AuthError, match="Invalid token type"):
        decode_token(access, REFRESH_TOKEN)


#============================================
def test_expired_token_rejected(monkeypatch):
    monkeypatch.setattr(settings, "JWT_ACCESS_EXPIRY_MINUTES", -1)
    token = create_access_token(1, "me@example.com")
    with pytest.raises(AuthError, match="Token expired"):
        decode_token(token, ACCESS_TOKEN)


#============================================
def test_tampered_token_rejected():
    forged = jwt.encode({"sub": "1", "type": ACCESS_TOKEN}, "wrong-secret", algorithm="HS256")
    with pytest.raises(AuthError, match="Invalid token"):
        decode_token(forged, ACCESS_TOKEN)


#============================================
async def test_register_and_login(session):
    service = AuthService(session)

    registered = await service.register("Me@Example.com", "secret1")
    assert registered["user"]["email"] == "me@example.com"
    assert decode_token(registered["access_token"], ACCESS_TOKEN)["sub"] == str(registered["user"]["id"])

    logged_in = await service.login("me@example.com", "secret1")
    assert logged_in["user"] == registered["user"]


#============================================
async def test_register_validation(session):
    service = AuthService(session)
    with pytest.raises(ValidationError):
        await service.register("not-an-email", "secret1")
    with pytest.raises(ValidationError):
        await service.register("me@example.com", "short")


#============================================
async def test_register_duplicate_email(session):
    service = AuthService(session)
    await service.register("me@example.com", "secret1")
    with pytest.raises(ConflictError):
        await service.register("ME@example.com", "secret2")


#============================================
async def test_login_wrong_password(session):
    service = AuthService(session)
    await service.register("me@example.com", "secret1")
    with pytest.raises(AuthError, match="Invalid credentials"):
        await service.login("me@example.com", "wrong-password")
    with pytest.raises(AuthError, match="Invalid credentials"):
        await service.login("nobody@example.com", "secret1")


#============================================
async def test_refresh_issues_new_access_token(session):
    service = AuthService(session)
    registered = await service.register("me@example.com", "secret1")

    refreshed = await service.refresh(registered["refresh_token"])
    assert decode_token(refreshed["access_token"], ACCESS_TOKEN)["email"] == "me@example.com"

    with pytest.raises(AuthError):
        await service.refresh(registered["access_token"])
