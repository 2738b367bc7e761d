# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Central security module.  Password hashing, token issuing and the FastAPI
auth guards live here.  Credential encryption lives in ``core.cipher``.

Responsibilities
----------------
1. Password hashing / verification          (passlib pbkdf2_sha256)
2. JWT access / refresh tokens              (PyJWT / HS256)
3. FastAPI dependency guards                (get_current_user, require_roles)
4. Request metadata for the audit trail     (get_client_ip, get_user_agent)
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt as _jwt        # PyJWT
from passlib.hash import pbkdf2_sha256 as _pbkdf2  # pure Python, no binary deps
from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer

from core.config import settings
from core.exceptions import InvalidTokenError, Unauthenticated
from database import get_db
from services.authorization import require_role

# ---------------------------------------------------------------------------
# 1.  pbkdf2_sha256 – password hashing
# ---------------------------------------------------------------------------
# The round count comes from PASSWORD_HASH_ROUNDS (600 000 by default, about
# 100ms per verify on commodity hardware).  The salt is embedded in the hash.
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Hash a plaintext password.  Returns the full passlib hash string."""
    return _pbkdf2.using(rounds=settings.password_hash_rounds).hash(plain)


def verify_password(plain: str, stored_hash: str) -> bool:
    """
    Constant-time verification of a plaintext password against a
    pbkdf2_sha256 hash produced by :func:`hash_password`.
    """
    return _pbkdf2.verify(plain, stored_hash)


# ---------------------------------------------------------------------------
# 2.  JWT – access and refresh tokens
# ---------------------------------------------------------------------------

_ALGORITHM = "HS256"

ACCESS = "access"
REFRESH = "refresh"


def _issue(user_id: int, token_type: str, secret: str, lifetime: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "id": user_id,
        "type": token_type,
        "iat": now,
        "exp": now + lifetime,
    }
    return _jwt.encode(payload, secret, algorithm=_ALGORITHM)


def issue_access_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    """Short-lived token sent as ``Authorization: Bearer`` on every request."""
    return _issue(
        user_id,
        ACCESS,
        settings.jwt_secret,
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes),
    )


def issue_refresh_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    """Long-lived token, signed with its own secret, only accepted by /auth/refresh."""
    return _issue(
        user_id,
        REFRESH,
        settings.jwt_refresh_secret,
        expires_delta or timedelta(days=settings.refresh_token_expire_days),
    )


def verify(token: str, secret: str, token_type: str = ACCESS) -> int:
    """
    Check signature, expiry and token type.  Returns the embedded user id.

    Raises :class:`InvalidTokenError` on any failure; callers must not tell
    the client which check failed.
    """
    try:
        payload = _jwt.decode(token, secret, algorithms=[_ALGORITHM])
    except _jwt.InvalidTokenError as exc:   # includes ExpiredSignatureError
        raise InvalidTokenError() from exc
    user_id = payload.get("id")
    if payload.get("type") != token_type or not isinstance(user_id, int):
        raise InvalidTokenError()
    return user_id


# ---------------------------------------------------------------------------
# 3.  FastAPI dependency guards
# ---------------------------------------------------------------------------

# The tokenUrl here is only used by the auto-generated OpenAPI docs;
# the actual login endpoint is POST /auth/login.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db=Depends(get_db),
):
    """
    Dependency: verify the access token, load the User row, and make sure
    the account is active and not locked.  Returns the User ORM instance.

    Every failure is the same 401 so a caller cannot tell a bad signature
    from a disabled account.
    """
    if not token:
        raise Unauthenticated()
    user_id = verify(token, settings.jwt_secret, ACCESS)

    # Lazy import to avoid circular dependency at module load time
    from models.user import User  # noqa: E402
    from services.identity import is_locked  # noqa: E402

    user = db.get(User, user_id)
    if not user or not user.is_active or is_locked(user):
        raise Unauthenticated()
    return user


def require_roles(*roles: str):
    """
    Dependency factory: ``Depends(require_roles("management", "admin"))``
    resolves to the current user or raises 403.
    """

    def _guard(current_user=Depends(get_current_user)):
        require_role(current_user, roles)
        return current_user

    return _guard


require_admin = require_roles("admin")


# ---------------------------------------------------------------------------
# 4.  Request metadata
# ---------------------------------------------------------------------------


def get_client_ip(request: Request) -> str:
    """
    Extract the client IP address from the request.
    Checks X-Forwarded-For header first (for proxies), then falls back to client host.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # X-Forwarded-For can contain multiple IPs, take the first (original client)
        return forwarded.split(",")[0].strip()

    if request.client:
        return request.client.host

    return "unknown"


def get_user_agent(request: Request) -> Optional[str]:
    return request.headers.get("User-Agent")
