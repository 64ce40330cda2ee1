from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from armorydb.security import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    create_access_token,
    get_password_hash,
    verify_password,
)
from . import models, schemas

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class AuthenticationError(Exception):
    """Raised when login credentials are invalid or the account is inactive."""


# ---------------------------------------------------------------------------
# Normalisation helpers
# ---------------------------------------------------------------------------


def _normalise_username(value: str) -> str:
    return (value or "").strip().lower()


def _validate_password_strength(password: str) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def get_user_by_username(db: Session, username: str) -> Optional[models.User]:
    return (
        db.query(models.User)
        .filter(func.lower(models.User.username) == _normalise_username(username))
        .first()
    )


def create_user(db: Session, data: schemas.UserCreate) -> models.User:
    username = _normalise_username(data.username)
    if get_user_by_username(db, username):
        raise ValueError("A user with this username already exists.")

    if data.role != models.AccountRole.ADMIN and data.base_id is None:
        logger.info("creating non-admin user without a home base", extra={"username": username})

    _validate_password_strength(data.password)
    user = models.User(
        username=username,
        hashed_password=get_password_hash(data.password),
        role=data.role,
        base_id=data.base_id,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def authenticate_user(db: Session, *, login_req: schemas.LoginRequest) -> models.User:
    """
    Password login by username.

    Raises AuthenticationError on unknown user, wrong password or an
    inactive account; the message never says which.
    """
    user = get_user_by_username(db, login_req.username)
    if not user or not verify_password(login_req.password, user.hashed_password):
        logger.warning("login failed", extra={"username": _normalise_username(login_req.username)})
        raise AuthenticationError("Invalid credentials")
    if not user.is_active:
        logger.warning("login for inactive account", extra={"user_id": user.id})
        raise AuthenticationError("Invalid credentials")

    user.last_login_at = datetime.now(timezone.utc)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def issue_access_token_for_user(user: models.User) -> Tuple[str, int]:
    token = create_access_token(
        data={
            "sub": str(user.id),
            "role": user.role.value,
            "base_id": user.base_id,
        }
    )
    return token, ACCESS_TOKEN_EXPIRE_MINUTES * 60
