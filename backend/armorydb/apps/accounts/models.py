# backend/armorydb/apps/accounts/models.py

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import relationship

from armorydb.database import Base


def _utcnow() -> datetime:
    return datetime.utcnow()


# ---------------------------------------------------------------------------
# ENUMS
# ---------------------------------------------------------------------------


class AccountRole(str, enum.Enum):
    """Roles recognised by the access policy.

    Commanders and logistics officers are normally attached to a base;
    admins have an unrestricted view.
    """

    ADMIN = "admin"
    COMMANDER = "commander"
    LOGISTICS = "logistics"


# ---------------------------------------------------------------------------
# USERS
# ---------------------------------------------------------------------------


class User(Base):
    """
    Portal user. The base link is the caller's home base, used to scope
    dashboard and history reads for commanders and logistics officers.
    """

    __tablename__ = "users"
    __table_args__ = (
        Index("idx_users_role_active", "role", "is_active"),
    )

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(64), nullable=False, unique=True, index=True)
    hashed_password = Column(String(255), nullable=False)

    role = Column(
        Enum(AccountRole, name="account_role_enum", native_enum=False),
        nullable=False,
        index=True,
    )
    base_id = Column(
        Integer,
        ForeignKey("bases.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    is_active = Column(Boolean, nullable=False, default=True)
    last_login_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    base = relationship("MilitaryBase", lazy="joined")

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username} role={self.role}>"
