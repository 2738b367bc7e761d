# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the auth endpoints."""

from typing import Optional

from core.schemas import CamelModel, UserProfile


# -- Requests --------------------------------------------------------------


class RegisterRequest(CamelModel):
    username: str
    email: str
    password: str


class LoginRequest(CamelModel):
    email: str
    password: str


class RefreshRequest(CamelModel):
    refresh_token: str


class ChangePasswordRequest(CamelModel):
    current_password: str
    new_password: str


class ProfileUpdateRequest(CamelModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    department: Optional[str] = None


class ForgotPasswordRequest(CamelModel):
    email: str


class ResetPasswordRequest(CamelModel):
    token: str
    password: str


# -- Responses -------------------------------------------------------------


class TokenPair(CamelModel):
    token: str
    refresh_token: str


class AuthResponse(TokenPair):
    user: UserProfile


class UserResponse(CamelModel):
    user: UserProfile


class ForgotPasswordResponse(CamelModel):
    detail: str
    # Only populated outside production
    reset_url: Optional[str] = None
    token: Optional[str] = None
