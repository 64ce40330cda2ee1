from __future__ import annotations

from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from . import models, schemas


def list_bases(db: Session) -> List[models.MilitaryBase]:
    return db.query(models.MilitaryBase).order_by(models.MilitaryBase.id.asc()).all()


def list_assets(db: Session, *, category: Optional[str] = None) -> List[models.Asset]:
    query = db.query(models.Asset)
    if category:
        query = query.filter(models.Asset.category == category.strip())
    return query.order_by(models.Asset.id.asc()).all()


def get_base(db: Session, base_id: int) -> Optional[models.MilitaryBase]:
    return db.query(models.MilitaryBase).filter(models.MilitaryBase.id == base_id).first()


def get_asset(db: Session, asset_id: int) -> Optional[models.Asset]:
    return db.query(models.Asset).filter(models.Asset.id == asset_id).first()


def create_base(db: Session, payload: schemas.BaseCreate) -> models.MilitaryBase:
    """Provision a base. Raises ValueError on a duplicate name."""
    existing = (
        db.query(models.MilitaryBase)
        .filter(func.lower(models.MilitaryBase.name) == payload.name.lower())
        .first()
    )
    if existing:
        raise ValueError("A base with this name already exists.")
    base = models.MilitaryBase(name=payload.name, location=payload.location)
    db.add(base)
    db.flush()
    return base


def create_asset(db: Session, payload: schemas.AssetCreate) -> models.Asset:
    asset = models.Asset(
        name=payload.name,
        category=payload.category,
        description=payload.description,
    )
    db.add(asset)
    db.flush()
    return asset
