"""
Access policy helpers.

A static table maps each operation to the roles allowed to perform it.
Reads are open to every known role, but commanders and logistics officers
only see their own base.
"""

from __future__ import annotations

from typing import Dict, FrozenSet, Optional, Union

from armorydb.apps.accounts.models import AccountRole
from armorydb.apps.inventory.errors import UnauthorizedError
from armorydb.security import AuthContext

OP_PURCHASE = "purchase"
OP_TRANSFER = "transfer"
OP_ASSIGN = "assign"
OP_EXPEND = "expend"
OP_DASHBOARD = "dashboard"
OP_HISTORY = "history"
OP_CATALOG_READ = "catalog_read"
OP_CATALOG_WRITE = "catalog_write"

_ALL_ROLES: FrozenSet[AccountRole] = frozenset(AccountRole)

OPERATION_ROLES: Dict[str, FrozenSet[AccountRole]] = {
    OP_PURCHASE: frozenset({AccountRole.ADMIN, AccountRole.LOGISTICS}),
    OP_TRANSFER: frozenset({AccountRole.ADMIN, AccountRole.LOGISTICS}),
    OP_ASSIGN: frozenset({AccountRole.ADMIN, AccountRole.COMMANDER}),
    OP_EXPEND: frozenset({AccountRole.ADMIN, AccountRole.COMMANDER}),
    OP_DASHBOARD: _ALL_ROLES,
    OP_HISTORY: _ALL_ROLES,
    OP_CATALOG_READ: _ALL_ROLES,
    OP_CATALOG_WRITE: frozenset({AccountRole.ADMIN}),
}


def authorize(role: Union[AccountRole, str, None], operation: str) -> bool:
    """Return True if `role` may perform `operation`. Unknown roles and operations are denied."""
    if role is None:
        return False
    if not isinstance(role, AccountRole):
        try:
            role = AccountRole(str(role).strip().lower())
        except ValueError:
            return False
    allowed = OPERATION_ROLES.get(operation)
    if allowed is None:
        return False
    return role in allowed


def require_operation(ctx: AuthContext, operation: str) -> None:
    if not authorize(ctx.role, operation):
        raise UnauthorizedError(f"Role '{ctx.role.value}' may not perform '{operation}'.")


def resolve_scope_base(ctx: AuthContext, requested_base_id: Optional[int]) -> Optional[int]:
    """
    Base scope for a read request.

    Admins get whatever they asked for (None = global view). Commanders and
    logistics officers with a home base are pinned to it: no request means
    their base, a different base is rejected.
    """
    if ctx.is_admin or ctx.base_id is None:
        return requested_base_id
    if requested_base_id is None:
        return ctx.base_id
    if requested_base_id != ctx.base_id:
        raise UnauthorizedError("Access is limited to your own base.")
    return requested_base_id
