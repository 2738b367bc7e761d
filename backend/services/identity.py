# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Identity store – user records, authentication, lockout, password changes,
reset tokens and the admin-side user lifecycle.

Every function takes the request's SQLAlchemy session and commits its own
work.  Functions that produce an audit entry take the request's
:class:`~services.audit.AuditTrail` and record into it after the commit.
"""

import re
import secrets
from datetime import datetime, timedelta
from typing import Iterable, Optional

from sqlalchemy import or_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.config import settings
from core.exceptions import (
    AccountDeactivated,
    AccountLocked,
    DuplicateIdentity,
    InvalidCredentials,
    UserNotFound,
    ValidationError,
)
from core.logger import logger
from core.security import hash_password, verify_password
from core.timeutil import as_utc, utcnow
from models.organization import Division, OrganizationalUnit
from models.password_reset_token import PasswordResetToken
from models.user import ROLES, User
from services.audit import AuditTrail
from services.authorization import forbid_self_target

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 30
PASSWORD_MIN_LENGTH = 8

_EMAIL_RE = re.compile(r"^\S+@\S+\.\S+$")

_PROFILE_FIELDS = ("first_name", "last_name", "department")


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _password_error(password: str) -> Optional[str]:
    if len(password) < PASSWORD_MIN_LENGTH:
        return f"Password must be at least {PASSWORD_MIN_LENGTH} characters"
    return None


def validate_new_password(password: str, field: str = "password") -> None:
    err = _password_error(password)
    if err:
        raise ValidationError({field: err})


def _validate_identity(username: str, email: str, password: str) -> None:
    errors = {}
    if not (USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH):
        errors["username"] = "Username must be between 3 and 30 characters"
    if not _EMAIL_RE.match(email):
        errors["email"] = "Please provide a valid email"
    pw_err = _password_error(password)
    if pw_err:
        errors["password"] = pw_err
    if errors:
        raise ValidationError(errors)


def _validate_role(role: str) -> None:
    if role not in ROLES:
        raise ValidationError({"role": "Invalid role"})


# ---------------------------------------------------------------------------
# Registration and lookup
# ---------------------------------------------------------------------------


def _create(db: Session, username: str, email: str, password: str, role: str) -> User:
    username = username.strip()
    email = normalize_email(email)
    _validate_identity(username, email, password)

    existing = db.query(User).filter(or_(User.email == email, User.username == username)).first()
    if existing:
        raise DuplicateIdentity()

    user = User(
        username=username,
        email=email,
        password_hash=hash_password(password),
        role=role,
        is_active=True,
        login_attempts=0,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race against a concurrent registration with the same identity
        db.rollback()
        raise DuplicateIdentity()
    db.refresh(user)
    return user


def register(
    db: Session,
    username: str,
    email: str,
    password: str,
    trail: Optional[AuditTrail] = None,
) -> User:
    """Self-service sign-up.  The role is always ``user``."""
    user = _create(db, username, email, password, role="user")
    logger.info("User registered: user_id=%d", user.id)
    if trail is not None:
        trail.record(user.id, "user_create", "user", user.id, {"type": "self_registration"})
    return user


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise UserNotFound()
    return user


# ---------------------------------------------------------------------------
# Authentication and lockout
# ---------------------------------------------------------------------------


def is_locked(user: User, now: Optional[datetime] = None) -> bool:
    lock_until = as_utc(user.lock_until)
    return lock_until is not None and lock_until > (now or utcnow())


def authenticate(
    db: Session,
    email: str,
    password: str,
    trail: Optional[AuditTrail] = None,
    now: Optional[datetime] = None,
) -> User:
    """
    Check an email/password pair.

    Order of checks: unknown account, deactivated, locked, password.  A wrong
    password counts towards the lockout; reaching MAX_LOGIN_ATTEMPTS locks
    the account for LOCKOUT_MINUTES.  Success resets the counter.
    """
    now = now or utcnow()
    user = db.query(User).filter(User.email == normalize_email(email)).first()

    if not user:
        raise InvalidCredentials()
    if not user.is_active:
        raise AccountDeactivated()
    if is_locked(user, now):
        raise AccountLocked()

    if not verify_password(password, user.password_hash):
        user.login_attempts = (user.login_attempts or 0) + 1
        if user.login_attempts >= settings.max_login_attempts:
            user.lock_until = now + timedelta(minutes=settings.lockout_minutes)
        db.commit()
        logger.warning(
            "Login failed: user_id=%d attempts=%d locked=%s",
            user.id,
            user.login_attempts,
            is_locked(user, now),
        )
        raise InvalidCredentials()

    user.login_attempts = 0
    user.lock_until = None
    user.last_login = now
    db.commit()

    if trail is not None:
        trail.record(user.id, "login", "user", user.id)
    return user


# ---------------------------------------------------------------------------
# Self-service profile and password
# ---------------------------------------------------------------------------


def change_password(
    db: Session,
    user: User,
    current_password: str,
    new_password: str,
    trail: Optional[AuditTrail] = None,
) -> None:
    """
    Verify the current password before accepting the new one, so a stolen
    (but not yet expired) token alone cannot take over the account.
    """
    if not verify_password(current_password, user.password_hash):
        raise InvalidCredentials("Current password is incorrect")
    validate_new_password(new_password, field="newPassword")

    user.password_hash = hash_password(new_password)
    db.commit()

    if trail is not None:
        trail.record(user.id, "password_change", "user", user.id, {"type": "changed"})


def update_profile(
    db: Session,
    user: User,
    fields: dict,
    trail: Optional[AuditTrail] = None,
) -> User:
    """Apply the profile fields present in *fields*; others stay untouched."""
    changed = [name for name in _PROFILE_FIELDS if name in fields]
    for name in changed:
        setattr(user, name, fields[name])
    db.commit()
    db.refresh(user)

    if trail is not None:
        trail.record(user.id, "profile_update", "user", user.id, {"fields": changed})
    return user


# ---------------------------------------------------------------------------
# Password reset tokens
# ---------------------------------------------------------------------------


def issue_reset_token(db: Session, user: User) -> PasswordResetToken:
    reset = PasswordResetToken(
        user_id=user.id,
        token=secrets.token_hex(32),
        expires_at=utcnow() + timedelta(minutes=settings.password_reset_expire_minutes),
        used=False,
    )
    db.add(reset)
    db.commit()
    db.refresh(reset)
    return reset


def request_password_reset(
    db: Session,
    email: str,
    trail: Optional[AuditTrail] = None,
) -> Optional[PasswordResetToken]:
    """
    Issue a reset token for *email*.  Returns None when there is no such
    account; the route answers identically either way.
    """
    user = db.query(User).filter(User.email == normalize_email(email)).first()
    if not user:
        return None

    reset = issue_reset_token(db, user)
    if trail is not None:
        trail.record(user.id, "password_change", "user", user.id, {"type": "reset_requested"})
    return reset


def _claim_reset_token(db: Session, token: str, now: Optional[datetime] = None) -> User:
    """
    Mark *token* used and return its user.  The UPDATE is conditional on
    ``used = false`` so two concurrent redemptions cannot both succeed.
    Does not commit.
    """
    now = now or utcnow()
    reset = db.query(PasswordResetToken).filter(PasswordResetToken.token == token).first()
    if not reset or reset.used or as_utc(reset.expires_at) <= now:
        raise ValidationError({"token": "Invalid or expired reset token"}, "Invalid or expired reset token")

    claimed = db.execute(
        update(PasswordResetToken)
        .where(PasswordResetToken.id == reset.id, PasswordResetToken.used.is_(False))
        .values(used=True)
    )
    if claimed.rowcount != 1:
        raise ValidationError({"token": "Invalid or expired reset token"}, "Invalid or expired reset token")

    user = db.get(User, reset.user_id)
    if not user:
        raise UserNotFound()
    return user


def redeem_reset_token(db: Session, token: str, now: Optional[datetime] = None) -> User:
    """Verify and consume a reset token.  A second call with the same token fails."""
    user = _claim_reset_token(db, token, now)
    db.commit()
    return user


def reset_password(
    db: Session,
    token: str,
    new_password: str,
    trail: Optional[AuditTrail] = None,
) -> User:
    # A rejected password leaves the token unused
    validate_new_password(new_password)
    user = _claim_reset_token(db, token)
    user.password_hash = hash_password(new_password)
    db.commit()

    if trail is not None:
        trail.record(user.id, "password_change", "user", user.id, {"type": "reset_completed"})
    return user


# ---------------------------------------------------------------------------
# Admin: user lifecycle
# ---------------------------------------------------------------------------


def create_user(
    db: Session,
    actor: User,
    username: str,
    email: str,
    password: str,
    role: str = "user",
    trail: Optional[AuditTrail] = None,
) -> User:
    _validate_role(role)
    user = _create(db, username, email, password, role=role)
    if trail is not None:
        trail.record(actor.id, "user_create", "user", user.id, {"targetUser": user.username, "role": role})
    return user


def list_users(
    db: Session,
    page: int = 1,
    limit: int = 10,
    role: Optional[str] = None,
    search: Optional[str] = None,
) -> tuple[list[User], int]:
    q = db.query(User)
    if role:
        q = q.filter(User.role == role)
    if search:
        pattern = f"%{search.strip()}%"
        q = q.filter(or_(User.username.ilike(pattern), User.email.ilike(pattern)))

    total = q.count()
    users = (
        q.order_by(User.created_at.desc(), User.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return users, total


def change_role(
    db: Session,
    actor: User,
    target_id: int,
    role: str,
    trail: Optional[AuditTrail] = None,
) -> User:
    """
    Guards, in order:
    * an admin cannot change their own role, whatever the requested value;
    * role value must be one of ROLES;
    * target must exist.
    """
    forbid_self_target(actor, target_id, "You cannot change your own role")
    _validate_role(role)
    target = get_user(db, target_id)

    old_role = target.role
    target.role = role
    db.commit()
    db.refresh(target)

    if trail is not None:
        trail.record(
            actor.id,
            "role_change",
            "user",
            target.id,
            {"targetUser": target.username, "oldRole": old_role, "newRole": role},
        )
    return target


def set_active(
    db: Session,
    actor: User,
    target_id: int,
    active: bool,
    trail: Optional[AuditTrail] = None,
) -> User:
    """Enable or disable an account.  An admin cannot disable themselves."""
    if not active:
        forbid_self_target(actor, target_id, "You cannot deactivate your own account")
    target = get_user(db, target_id)
    target.is_active = active
    db.commit()
    db.refresh(target)

    if trail is not None:
        trail.record(
            actor.id,
            "user_update",
            "user",
            target.id,
            {"targetUser": target.username, "isActive": active},
        )
    return target


def _load_all(db: Session, model, ids: Iterable[int], field: str, label: str) -> list:
    wanted = set(ids)
    rows = db.query(model).filter(model.id.in_(wanted)).all() if wanted else []
    if len(rows) != len(wanted):
        raise ValidationError({field: f"One or more {label} not found"}, f"One or more {label} not found")
    return rows


def add_assignments(
    db: Session,
    actor: User,
    target_id: int,
    organizational_unit_ids: Optional[list[int]] = None,
    division_ids: Optional[list[int]] = None,
    trail: Optional[AuditTrail] = None,
) -> User:
    """Merge OU / division memberships into the target's existing sets."""
    target = get_user(db, target_id)

    if organizational_unit_ids:
        ous = _load_all(db, OrganizationalUnit, organizational_unit_ids, "organizationalUnits", "organizational units")
        current = target.organizational_unit_ids
        target.organizational_units.extend(ou for ou in ous if ou.id not in current)

    if division_ids:
        divisions = _load_all(db, Division, division_ids, "divisions", "divisions")
        current = target.division_ids
        target.divisions.extend(d for d in divisions if d.id not in current)

    db.commit()
    db.refresh(target)

    if trail is not None:
        trail.record(
            actor.id,
            "assignment_add",
            "user",
            target.id,
            {
                "targetUser": target.username,
                "organizationalUnits": list(organizational_unit_ids or []),
                "divisions": list(division_ids or []),
            },
        )
    return target


def remove_assignments(
    db: Session,
    actor: User,
    target_id: int,
    organizational_unit_ids: Optional[list[int]] = None,
    division_ids: Optional[list[int]] = None,
    trail: Optional[AuditTrail] = None,
) -> User:
    """Drop the listed memberships.  Ids the user does not hold are ignored."""
    target = get_user(db, target_id)

    if organizational_unit_ids:
        drop = set(organizational_unit_ids)
        target.organizational_units = [ou for ou in target.organizational_units if ou.id not in drop]

    if division_ids:
        drop = set(division_ids)
        target.divisions = [d for d in target.divisions if d.id not in drop]

    db.commit()
    db.refresh(target)

    if trail is not None:
        trail.record(
            actor.id,
            "assignment_remove",
            "user",
            target.id,
            {
                "targetUser": target.username,
                "organizationalUnits": list(organizational_unit_ids or []),
                "divisions": list(division_ids or []),
            },
        )
    return target
