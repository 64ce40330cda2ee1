# backend/armorydb/security.py

"""
Security helpers for ArmoryDB.

Responsibilities:
- Password hashing and verification
- JWT access token creation and decoding
- Resolving the caller's AuthContext for router dependencies

Caller identity arrives either as a Bearer token issued by /login or as the
trusted X-Role / X-Base-ID / X-User-ID headers sent by the frontend. Both
paths end in the same AuthContext value, and the role is re-validated
against AccountRole on the way in.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Union

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from argon2 import PasswordHasher
from argon2.exceptions import VerifyMismatchError, VerificationError, InvalidHash
import bcrypt

from armorydb.apps.accounts.models import AccountRole

# ---------------------------------------------------------------------------
# CONFIG
# ---------------------------------------------------------------------------

# In production, ALWAYS override these via environment variables.
SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME_IN_PRODUCTION")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

try:
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(
        os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60")
    )
except ValueError:
    ACCESS_TOKEN_EXPIRE_MINUTES = 60

bearer_scheme = HTTPBearer(auto_error=False)


# ---------------------------------------------------------------------------
# PASSWORD HASHING
# ---------------------------------------------------------------------------

# Argon2id (argon2-cffi) password hasher.
_pwd_hasher = PasswordHasher(
    time_cost=int(os.getenv("ARGON2_TIME_COST", "3")),
    memory_cost=int(os.getenv("ARGON2_MEMORY_COST", "65536")),  # KiB (64MB)
    parallelism=int(os.getenv("ARGON2_PARALLELISM", "2")),
    hash_len=int(os.getenv("ARGON2_HASH_LEN", "32")),
    salt_len=int(os.getenv("ARGON2_SALT_LEN", "16")),
)


def _is_argon2_hash(hashed_password: str) -> bool:
    return isinstance(hashed_password, str) and hashed_password.startswith("$argon2")


def _is_bcrypt_hash(hashed_password: str) -> bool:
    return isinstance(hashed_password, str) and hashed_password.startswith(("$2a$", "$2b$", "$2y$"))


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Return True if the plain password matches the hash."""
    if not plain_password or not hashed_password:
        return False

    if _is_argon2_hash(hashed_password):
        try:
            return _pwd_hasher.verify(hashed_password, plain_password)
        except (VerifyMismatchError, VerificationError, InvalidHash):
            return False

    # Accounts imported from older deployments may carry bcrypt hashes
    if _is_bcrypt_hash(hashed_password):
        try:
            return bcrypt.checkpw(
                plain_password.encode("utf-8"),
                hashed_password.encode("utf-8"),
            )
        except ValueError:
            return False

    return False


def get_password_hash(password: str) -> str:
    """Hash a password for storing in the database (Argon2id)."""
    return _pwd_hasher.hash(password)


# ---------------------------------------------------------------------------
# JWT TOKENS
# ---------------------------------------------------------------------------


def create_access_token(
    *,
    data: dict,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a signed JWT.

    The `data` dict should already include the subject and scope, e.g.:
        {"sub": str(user.id), "role": "commander", "base_id": 1}
    """
    to_encode = data.copy()

    expire = datetime.utcnow() + (
        expires_delta
        if expires_delta is not None
        else timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})

    return jwt.encode(to_encode, SECRET_KEY, algorithm=JWT_ALGORITHM)


# ---------------------------------------------------------------------------
# AUTH CONTEXT
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AuthContext:
    """Who is calling: role, home base and user id, however that was established."""

    role: AccountRole
    base_id: Optional[int] = None
    user_id: Optional[int] = None

    @property
    def is_admin(self) -> bool:
        return self.role == AccountRole.ADMIN


def _forbidden(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def _parse_optional_int(value: Union[str, int, None], *, field: str) -> Optional[int]:
    if value is None:
        return None
    raw = str(value).strip()
    if not raw or raw.lower() in {"null", "none", "undefined"}:
        return None
    try:
        return int(raw)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{field} must be an integer",
        )


def parse_role(value: Optional[str]) -> AccountRole:
    """Re-validate a caller-declared role; unknown or missing roles are denied."""
    raw = (value or "").strip().lower()
    if not raw:
        raise _forbidden("Access denied")
    try:
        return AccountRole(raw)
    except ValueError:
        raise _forbidden("Access denied")


def auth_context_from_token(token: str) -> AuthContext:
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError:
        raise _credentials_exception()
    if payload.get("sub") is None:
        raise _credentials_exception()
    return AuthContext(
        role=parse_role(payload.get("role")),
        base_id=_parse_optional_int(payload.get("base_id"), field="base_id"),
        user_id=_parse_optional_int(payload.get("sub"), field="sub"),
    )


def get_auth_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    x_role: Optional[str] = Header(None, alias="X-Role"),
    x_base_id: Optional[str] = Header(None, alias="X-Base-ID"),
    x_user_id: Optional[str] = Header(None, alias="X-User-ID"),
) -> AuthContext:
    """
    FastAPI dependency returning the caller's AuthContext.

    A Bearer token wins when present; otherwise the trusted headers are used.
    """
    if credentials is not None and credentials.credentials:
        return auth_context_from_token(credentials.credentials)

    return AuthContext(
        role=parse_role(x_role),
        base_id=_parse_optional_int(x_base_id, field="X-Base-ID"),
        user_id=_parse_optional_int(x_user_id, field="X-User-ID"),
    )
