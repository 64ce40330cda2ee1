from __future__ import annotations

import enum

from sqlalchemy import Column, Index, Integer, String, Text

from armorydb.database import Base


class AssetCategory(str, enum.Enum):
    """Well-known asset categories. The column itself stays free text."""

    WEAPON = "Weapon"
    VEHICLE = "Vehicle"
    AMMO = "Ammo"


class MilitaryBase(Base):
    """A logistics site holding inventory. Reference data, never mutated by stock flows."""

    __tablename__ = "bases"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(128), nullable=False, unique=True)
    location = Column(String(128), nullable=True)


class Asset(Base):
    """Catalog item type tracked by quantity, not by serial unit."""

    __tablename__ = "assets"
    __table_args__ = (Index("ix_assets_category", "category"),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(128), nullable=False)
    category = Column(String(32), nullable=False)
    description = Column(Text, nullable=True)
