"""User authentication endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from phoneverse.config import Settings, get_settings
from phoneverse.models import User

from api.dependencies import extract_token, get_current_user, get_db
from api.services.auth_service import (
    login_user,
    logout_session,
    register_user,
    update_profile,
    user_payload,
)

logger = logging.getLogger(__name__)
router = APIRouter()
AUTH_COOKIE_PATH = "/"


class RegisterRequest(BaseModel):
    username: str = ""
    email: str = Field(default="", max_length=320)
    password: str = Field(default="", max_length=256)
    full_name: str | None = Field(default=None, max_length=120)


class LoginRequest(BaseModel):
    # Username or email.
    username: str = Field(default="", max_length=320)
    password: str = Field(default="", max_length=256)


class ProfileUpdateRequest(BaseModel):
    full_name: str | None = Field(default=None, max_length=120)
    bio: str | None = Field(default=None, max_length=2000)


def _cookie_secure(request: Request, settings: Settings) -> bool:
    if request.url.scheme == "https":
        return True
    return settings.site_url.lower().startswith("https://")


@router.post("/register", status_code=201)
async def register(req: RegisterRequest, db: AsyncSession = Depends(get_db)):
    user = await register_user(db, req.username, req.email, req.password, req.full_name)
    return {
        "success": True,
        "message": "Registration successful",
        "user": user_payload(user),
    }


@router.post("/login")
async def login(req: LoginRequest, request: Request, db: AsyncSession = Depends(get_db)):
    settings = get_settings()
    user, token, expires_at = await login_user(db, req.username, req.password)
    response = JSONResponse(
        {
            "success": True,
            "token": token,
            "expires_at": expires_at.isoformat(),
            "user": user_payload(user),
        }
    )
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        httponly=True,
        secure=_cookie_secure(request, settings),
        samesite="lax",
        max_age=settings.jwt_expire_minutes * 60,
        path=AUTH_COOKIE_PATH,
    )
    return response


@router.post("/logout")
async def logout(request: Request, db: AsyncSession = Depends(get_db)):
    await logout_session(db, extract_token(request))
    response = JSONResponse({"success": True, "message": "Logged out"})
    response.delete_cookie(key=get_settings().auth_cookie_name, path=AUTH_COOKIE_PATH)
    return response


@router.get("/me")
async def me(user: User = Depends(get_current_user)):
    return {"user": user_payload(user)}


@router.put("/profile")
async def profile(
    req: ProfileUpdateRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    updated = await update_profile(db, user, full_name=req.full_name, bio=req.bio)
    return {"success": True, "user": user_payload(updated)}
