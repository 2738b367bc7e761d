# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Auth endpoints – registration, login, token refresh, profile and password
management.

Security notes
--------------
* Login answers "Invalid credentials" whether the email is unknown or the
  password is wrong, so the endpoint cannot be used to enumerate accounts.
* forgot-password answers identically for known and unknown emails.  The
  reset token itself is only echoed back outside production.
* change-password verifies the current password before accepting the new one.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from auth.schemas import (
    AuthResponse,
    ChangePasswordRequest,
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    LoginRequest,
    ProfileUpdateRequest,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    TokenPair,
    UserResponse,
)
from core.config import settings
from core.exceptions import Unauthenticated
from core.logger import logger
from core.schemas import MessageResponse
from core.security import (
    REFRESH,
    get_current_user,
    issue_access_token,
    issue_refresh_token,
    verify,
)
from database import get_db
from models.user import User
from services import identity
from services.audit import AuditTrail, get_audit_trail

router = APIRouter(prefix="/auth", tags=["auth"])

_FORGOT_REPLY = "If an account exists with that email, a reset link has been sent"


def _token_pair(user: User) -> dict:
    return {
        "token": issue_access_token(user.id),
        "refresh_token": issue_refresh_token(user.id),
    }


# ---------------------------------------------------------------------------
# POST /auth/register
# ---------------------------------------------------------------------------


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    db: Session = Depends(get_db),
    trail: AuditTrail = Depends(get_audit_trail),
):
    """Self-service sign-up.  New accounts always get the ``user`` role."""
    user = identity.register(db, body.username, body.email, body.password, trail)
    return {**_token_pair(user), "user": user}


# ---------------------------------------------------------------------------
# POST /auth/login
# ---------------------------------------------------------------------------


@router.post("/login", response_model=AuthResponse)
def login(
    body: LoginRequest,
    db: Session = Depends(get_db),
    trail: AuditTrail = Depends(get_audit_trail),
):
    user = identity.authenticate(db, body.email, body.password, trail)
    return {**_token_pair(user), "user": user}


# ---------------------------------------------------------------------------
# POST /auth/refresh
# ---------------------------------------------------------------------------


@router.post("/refresh", response_model=TokenPair)
def refresh(body: RefreshRequest, db: Session = Depends(get_db)):
    """Exchange a valid refresh token for a new token pair."""
    user_id = verify(body.refresh_token, settings.jwt_refresh_secret, REFRESH)
    user = db.get(User, user_id)
    if not user or not user.is_active or identity.is_locked(user):
        raise Unauthenticated()
    return _token_pair(user)


# ---------------------------------------------------------------------------
# POST /auth/logout
# ---------------------------------------------------------------------------


@router.post("/logout", response_model=MessageResponse)
def logout(
    current_user: User = Depends(get_current_user),
    trail: AuditTrail = Depends(get_audit_trail),
):
    # Tokens are stateless; the client discards them
    trail.record(current_user.id, "logout", "user", current_user.id)
    return {"detail": "Logged out successfully"}


# ---------------------------------------------------------------------------
# GET /auth/me, PUT /auth/profile
# ---------------------------------------------------------------------------


@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    """Return the authenticated user's profile and memberships (no secrets)."""
    return {"user": current_user}


@router.put("/profile", response_model=UserResponse)
def update_profile(
    body: ProfileUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    trail: AuditTrail = Depends(get_audit_trail),
):
    fields = body.model_dump(exclude_unset=True)
    user = identity.update_profile(db, current_user, fields, trail)
    return {"user": user}


# ---------------------------------------------------------------------------
# Password flows
# ---------------------------------------------------------------------------


@router.put("/change-password", response_model=MessageResponse)
def change_password(
    body: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    trail: AuditTrail = Depends(get_audit_trail),
):
    identity.change_password(db, current_user, body.current_password, body.new_password, trail)
    return {"detail": "Password changed successfully"}


@router.post(
    "/forgot-password",
    response_model=ForgotPasswordResponse,
    response_model_exclude_none=True,
)
def forgot_password(
    body: ForgotPasswordRequest,
    db: Session = Depends(get_db),
    trail: AuditTrail = Depends(get_audit_trail),
):
    reset = identity.request_password_reset(db, body.email, trail)
    if reset is None or settings.is_production:
        return {"detail": _FORGOT_REPLY}

    logger.info("Password reset token issued: user_id=%d", reset.user_id)
    return {
        "detail": _FORGOT_REPLY,
        "reset_url": f"{settings.frontend_url}/reset-password/{reset.token}",
        "token": reset.token,
    }


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(
    body: ResetPasswordRequest,
    db: Session = Depends(get_db),
    trail: AuditTrail = Depends(get_audit_trail),
):
    identity.reset_password(db, body.token, body.password, trail)
    return {"detail": "Password has been reset successfully"}
