from __future__ import annotations

import pytest
from fastapi import HTTPException, status

from armorydb import security
from armorydb.apps.accounts import models as account_models
from armorydb.apps.accounts import schemas as account_schemas
from armorydb.apps.accounts import services as account_services
from armorydb.apps.accounts.router import login


def test_login_returns_identity_and_token(db_session, seeded):
    response = login(
        account_schemas.LoginRequest(username="commander_alpha", password="pass123"),
        db=db_session,
    )

    assert response.user.username == "commander_alpha"
    assert response.user.role == account_models.AccountRole.COMMANDER
    assert response.user.base_id == seeded.alpha.id
    assert response.token_type == "bearer"

    ctx = security.auth_context_from_token(response.access_token)
    assert ctx.role == account_models.AccountRole.COMMANDER
    assert ctx.base_id == seeded.alpha.id
    assert ctx.user_id == seeded.commander.id


def test_login_is_case_insensitive_on_username(db_session, seeded):
    response = login(
        account_schemas.LoginRequest(username="  Admin ", password="admin123"),
        db=db_session,
    )
    assert response.user.role == account_models.AccountRole.ADMIN
    assert response.user.base_id is None


def test_login_records_last_login(db_session, seeded):
    assert seeded.logistics.last_login_at is None
    user = account_services.authenticate_user(
        db_session,
        login_req=account_schemas.LoginRequest(username="logistics_bravo", password="pass123"),
    )
    assert user.last_login_at is not None


@pytest.mark.parametrize(
    "username, password",
    [("admin", "wrong"), ("nobody", "pass123"), ("commander_alpha", "")],
)
def test_bad_credentials_are_unauthorized(db_session, seeded, username, password):
    with pytest.raises(HTTPException) as exc:
        login(account_schemas.LoginRequest(username=username, password=password), db=db_session)
    assert exc.value.status_code == status.HTTP_401_UNAUTHORIZED
    assert exc.value.detail == "Invalid credentials"


def test_inactive_user_cannot_login(db_session, seeded):
    seeded.logistics.is_active = False
    db_session.commit()

    with pytest.raises(account_services.AuthenticationError):
        account_services.authenticate_user(
            db_session,
            login_req=account_schemas.LoginRequest(username="logistics_bravo", password="pass123"),
        )


def test_create_user_hashes_and_rejects_duplicates(db_session, seeded):
    user = account_services.create_user(
        db_session,
        account_schemas.UserCreate(
            username="Commander_Charlie",
            password="charlie1",
            role=account_models.AccountRole.COMMANDER,
            base_id=seeded.charlie.id,
        ),
    )
    assert user.username == "commander_charlie"
    assert user.hashed_password != "charlie1"
    assert security.verify_password("charlie1", user.hashed_password)

    with pytest.raises(ValueError):
        account_services.create_user(
            db_session,
            account_schemas.UserCreate(
                username="commander_charlie",
                password="another1",
                role=account_models.AccountRole.COMMANDER,
            ),
        )


def test_create_user_rejects_short_password(db_session, seeded):
    with pytest.raises(ValueError):
        account_services.create_user(
            db_session,
            account_schemas.UserCreate(
                username="shorty",
                password="abc",
                role=account_models.AccountRole.LOGISTICS,
            ),
        )
