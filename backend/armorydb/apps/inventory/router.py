from __future__ import annotations

from typing import List, Optional, Union

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from armorydb import policy
from armorydb.database import get_db, get_read_db
from armorydb.security import AuthContext, get_auth_context

from . import movements, schemas, services
from .errors import InventoryError, to_http_exception

router = APIRouter(prefix="", tags=["inventory"])


def _result(outcome: services.OperationOutcome, message: str) -> schemas.OperationResult:
    return schemas.OperationResult(
        message=message,
        transaction=schemas.TransactionRead.model_validate(outcome.transaction),
        quantities={str(base_id): qty for base_id, qty in outcome.quantities.items()},
    )


def _scope(ctx: AuthContext, operation: str, base_id: Optional[int]) -> Optional[int]:
    try:
        policy.require_operation(ctx, operation)
        return policy.resolve_scope_base(ctx, base_id)
    except InventoryError as exc:
        raise to_http_exception(exc)


@router.post("/purchases", response_model=schemas.OperationResult)
def record_purchase(
    payload: schemas.PurchaseRequest,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    try:
        outcome = services.purchase(
            db,
            ctx,
            asset_id=payload.asset_id,
            base_id=payload.base_id,
            quantity=payload.quantity,
            user_id=payload.user_id,
        )
    except InventoryError as exc:
        raise to_http_exception(exc)
    return _result(outcome, "Purchase recorded successfully")


@router.post("/transfers", response_model=schemas.OperationResult)
def record_transfer(
    payload: schemas.TransferRequest,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    try:
        outcome = services.transfer(
            db,
            ctx,
            asset_id=payload.asset_id,
            source_base_id=payload.source_base_id,
            dest_base_id=payload.dest_base_id,
            quantity=payload.quantity,
            user_id=payload.user_id,
        )
    except InventoryError as exc:
        raise to_http_exception(exc)
    return _result(outcome, "Transfer successful")


@router.post("/assignments", response_model=schemas.OperationResult)
def record_assignment(
    payload: schemas.AssignmentRequest,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    try:
        outcome = services.record_assignment(
            db,
            ctx,
            kind=payload.type,
            asset_id=payload.asset_id,
            base_id=payload.base_id,
            quantity=payload.quantity,
            user_id=payload.user_id,
        )
    except InventoryError as exc:
        raise to_http_exception(exc)
    return _result(outcome, f"{payload.type} recorded successfully")


@router.get(
    "/dashboard",
    response_model=Union[schemas.ScopedSummary, schemas.GlobalSummary],
)
def dashboard(
    base_id: Optional[int] = None,
    asset_type: Optional[str] = Query(None, alias="type"),
    db: Session = Depends(get_read_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    scope_base = _scope(ctx, policy.OP_DASHBOARD, base_id)
    return movements.build_dashboard(db, base_id=scope_base, category=asset_type)


@router.get("/history", response_model=List[schemas.HistoryItem])
def history(
    base_id: Optional[int] = None,
    db: Session = Depends(get_read_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    scope_base = _scope(ctx, policy.OP_HISTORY, base_id)
    return services.list_history(db, base_id=scope_base)
