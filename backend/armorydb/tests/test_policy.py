from __future__ import annotations

import pytest

from armorydb import policy
from armorydb.apps.accounts.models import AccountRole
from armorydb.apps.inventory.errors import UnauthorizedError
from armorydb.security import AuthContext


@pytest.mark.parametrize(
    "role, operation, allowed",
    [
        (AccountRole.ADMIN, policy.OP_PURCHASE, True),
        (AccountRole.ADMIN, policy.OP_EXPEND, True),
        (AccountRole.ADMIN, policy.OP_CATALOG_WRITE, True),
        (AccountRole.LOGISTICS, policy.OP_PURCHASE, True),
        (AccountRole.LOGISTICS, policy.OP_TRANSFER, True),
        (AccountRole.LOGISTICS, policy.OP_ASSIGN, False),
        (AccountRole.LOGISTICS, policy.OP_EXPEND, False),
        (AccountRole.COMMANDER, policy.OP_ASSIGN, True),
        (AccountRole.COMMANDER, policy.OP_EXPEND, True),
        (AccountRole.COMMANDER, policy.OP_PURCHASE, False),
        (AccountRole.COMMANDER, policy.OP_TRANSFER, False),
        (AccountRole.COMMANDER, policy.OP_CATALOG_WRITE, False),
        (AccountRole.COMMANDER, policy.OP_DASHBOARD, True),
        (AccountRole.LOGISTICS, policy.OP_HISTORY, True),
    ],
)
def test_operation_table(role, operation, allowed):
    assert policy.authorize(role, operation) is allowed


def test_roles_given_as_strings_are_normalised():
    assert policy.authorize("Admin", policy.OP_TRANSFER) is True
    assert policy.authorize(" logistics ", policy.OP_PURCHASE) is True


@pytest.mark.parametrize("role", [None, "", "guest", "superuser"])
def test_unknown_roles_are_denied(role):
    for operation in policy.OPERATION_ROLES:
        assert policy.authorize(role, operation) is False


def test_unknown_operation_is_denied():
    assert policy.authorize(AccountRole.ADMIN, "delete_everything") is False


def test_require_operation_raises_unauthorized():
    ctx = AuthContext(role=AccountRole.LOGISTICS, base_id=2)
    with pytest.raises(UnauthorizedError) as exc:
        policy.require_operation(ctx, policy.OP_ASSIGN)
    assert exc.value.status_code == 403


def test_admin_scope_is_unrestricted():
    ctx = AuthContext(role=AccountRole.ADMIN)
    assert policy.resolve_scope_base(ctx, None) is None
    assert policy.resolve_scope_base(ctx, 3) == 3


def test_base_bound_roles_default_to_home_base():
    ctx = AuthContext(role=AccountRole.COMMANDER, base_id=1)
    assert policy.resolve_scope_base(ctx, None) == 1
    assert policy.resolve_scope_base(ctx, 1) == 1


def test_base_bound_roles_cannot_read_other_bases():
    ctx = AuthContext(role=AccountRole.LOGISTICS, base_id=2)
    with pytest.raises(UnauthorizedError):
        policy.resolve_scope_base(ctx, 1)


def test_role_without_home_base_keeps_requested_scope():
    ctx = AuthContext(role=AccountRole.COMMANDER, base_id=None)
    assert policy.resolve_scope_base(ctx, 3) == 3
    assert policy.resolve_scope_base(ctx, None) is None
