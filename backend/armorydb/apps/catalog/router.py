from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from armorydb import policy
from armorydb.database import get_db, get_read_db
from armorydb.security import AuthContext, get_auth_context
from armorydb.apps.inventory.errors import InventoryError, to_http_exception

from . import schemas, services

router = APIRouter(prefix="", tags=["catalog"])


def _require(ctx: AuthContext, operation: str) -> None:
    try:
        policy.require_operation(ctx, operation)
    except InventoryError as exc:
        raise to_http_exception(exc)


@router.get("/bases", response_model=List[schemas.BaseRead])
def list_bases(
    db: Session = Depends(get_read_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    _require(ctx, policy.OP_CATALOG_READ)
    return services.list_bases(db)


@router.get("/assets", response_model=List[schemas.AssetRead])
def list_assets(
    category: Optional[str] = None,
    db: Session = Depends(get_read_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    _require(ctx, policy.OP_CATALOG_READ)
    return services.list_assets(db, category=category)


@router.post("/bases", response_model=schemas.BaseRead, status_code=status.HTTP_201_CREATED)
def create_base(
    payload: schemas.BaseCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    _require(ctx, policy.OP_CATALOG_WRITE)
    try:
        base = services.create_base(db, payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    db.commit()
    db.refresh(base)
    return base


@router.post("/assets", response_model=schemas.AssetRead, status_code=status.HTTP_201_CREATED)
def create_asset(
    payload: schemas.AssetCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    _require(ctx, policy.OP_CATALOG_WRITE)
    asset = services.create_asset(db, payload)
    db.commit()
    db.refresh(asset)
    return asset
