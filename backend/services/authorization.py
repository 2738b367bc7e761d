# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Authorization engine – state-free predicates evaluated per request.

Capability table
----------------
=============================  ====  ==========  =====
operation                      user  management  admin
=============================  ====  ==========  =====
read / search own divisions     ✓        ✓         ✓ (all divisions)
add credential                  ✓        ✓         ✓
edit credential                 ✗        ✓         ✓
soft-delete credential          ✗        ✓         ✓
manage users / roles            ✗        ✗         ✓
=============================  ====  ==========  =====

Division membership is compared on ``User.division_ids`` – a frozenset of
integer ids – and nothing else.
"""

from typing import Iterable

from core.exceptions import Forbidden, InvalidOperation

READ = "credential:read"
ADD = "credential:add"
EDIT = "credential:edit"
DELETE = "credential:delete"
MANAGE_USERS = "users:manage"

CAPABILITIES = {
    "user": frozenset({READ, ADD}),
    "management": frozenset({READ, ADD, EDIT, DELETE}),
    "admin": frozenset({READ, ADD, EDIT, DELETE, MANAGE_USERS}),
}


def require_role(user, allowed_roles: Iterable[str]) -> None:
    """Raise 403 unless ``user.role`` is one of *allowed_roles*."""
    if user.role not in set(allowed_roles):
        raise Forbidden(f"User role '{user.role}' is not authorized to access this route")


def has_capability(user, capability: str) -> bool:
    return capability in CAPABILITIES.get(user.role, frozenset())


def require_capability(user, capability: str) -> None:
    if not has_capability(user, capability):
        raise Forbidden(f"User role '{user.role}' is not authorized to perform this action")


def can_access_division(user, division_id: int) -> bool:
    if user.role == "admin":
        return True
    return division_id in user.division_ids


def require_division_access(user, division_id: int) -> None:
    """Admins pass unconditionally; everyone else must be a member."""
    if not can_access_division(user, division_id):
        raise Forbidden("You do not have access to this division")


def forbid_self_target(actor, target_id: int, message: str) -> None:
    """Reject operations an admin may not perform on their own account."""
    if actor.id == target_id:
        raise InvalidOperation(message)
