from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from armorydb.database import Base


def _utcnow() -> datetime:
    return datetime.utcnow()


class TransactionKindEnum(str, enum.Enum):
    PURCHASE = "PURCHASE"
    TRANSFER = "TRANSFER"
    ASSIGN = "ASSIGN"
    EXPEND = "EXPEND"


class TransactionStatusEnum(str, enum.Enum):
    COMPLETED = "COMPLETED"


class InventoryEntry(Base):
    """
    Current quantity of one asset at one base.

    A cached projection of the transaction log: replaying every transaction
    for the (base, asset) pair from zero yields the same quantity. The value
    may be negative; over-withdrawal is recorded as-is.
    """

    __tablename__ = "inventory"
    __table_args__ = (
        UniqueConstraint("base_id", "asset_id", name="uq_inventory_base_asset"),
        Index("ix_inventory_asset", "asset_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    base_id = Column(Integer, ForeignKey("bases.id", ondelete="CASCADE"), nullable=False, index=True)
    asset_id = Column(Integer, ForeignKey("assets.id", ondelete="CASCADE"), nullable=False)
    quantity = Column(Integer, nullable=False, default=0)

    base = relationship("MilitaryBase", lazy="joined")
    asset = relationship("Asset", lazy="joined")


class AssetTransaction(Base):
    """Append-only record of a stock-affecting or personnel event."""

    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_occurred", "occurred_at"),
        Index("ix_transactions_source", "source_base_id", "occurred_at"),
        Index("ix_transactions_dest", "dest_base_id", "occurred_at"),
        CheckConstraint("quantity > 0", name="ck_transactions_quantity_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    kind = Column(
        SAEnum(TransactionKindEnum, name="transaction_kind_enum", native_enum=False),
        nullable=False,
        index=True,
    )
    asset_id = Column(Integer, ForeignKey("assets.id", ondelete="RESTRICT"), nullable=False, index=True)
    source_base_id = Column(Integer, ForeignKey("bases.id", ondelete="RESTRICT"), nullable=True)
    dest_base_id = Column(Integer, ForeignKey("bases.id", ondelete="RESTRICT"), nullable=True)
    quantity = Column(Integer, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    status = Column(
        SAEnum(TransactionStatusEnum, name="transaction_status_enum", native_enum=False),
        nullable=False,
        default=TransactionStatusEnum.COMPLETED,
    )
    occurred_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    asset = relationship("Asset", lazy="joined")
    source_base = relationship("MilitaryBase", foreign_keys=[source_base_id], lazy="joined")
    dest_base = relationship("MilitaryBase", foreign_keys=[dest_base_id], lazy="joined")
    user = relationship("User", lazy="joined")

    def signed_quantity(self, base_id: int) -> int:
        """Effect of this transaction on the stock of `base_id`."""
        if self.kind == TransactionKindEnum.PURCHASE:
            return self.quantity if self.dest_base_id == base_id else 0
        if self.kind == TransactionKindEnum.TRANSFER:
            if self.source_base_id == base_id:
                return -self.quantity
            if self.dest_base_id == base_id:
                return self.quantity
            return 0
        if self.kind == TransactionKindEnum.EXPEND:
            return -self.quantity if self.source_base_id == base_id else 0
        return 0
