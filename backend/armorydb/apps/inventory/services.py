"""
Operation gateway: purchase, transfer, assign and expend.

Each command authorises the caller, validates the request, then updates the
ledger and appends to the transaction log as one database transaction.
Nothing is written when any step fails.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Type

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from armorydb import policy
from armorydb.apps.catalog import services as catalog_services
from armorydb.security import AuthContext
from . import ledger, models, schemas
from .errors import (
    InsufficientStockError,
    InvalidArgumentError,
    InventoryError,
    StorageFailureError,
)

logger = logging.getLogger(__name__)

Kind = models.TransactionKindEnum

# Over-withdrawal is recorded as-is unless this is switched off.
ALLOW_NEGATIVE_STOCK = os.getenv("INVENTORY_ALLOW_NEGATIVE_STOCK", "true").strip().lower() in {
    "1",
    "true",
    "yes",
    "on",
}


@dataclass
class OperationOutcome:
    transaction: models.AssetTransaction
    # base_id -> quantity after the operation
    quantities: Dict[int, int] = field(default_factory=dict)


def negative_stock_allowed(override: Optional[bool] = None) -> bool:
    if override is not None:
        return override
    return ALLOW_NEGATIVE_STOCK


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _reject(exc_type: Type[InventoryError], message: str, **extra) -> InventoryError:
    logger.warning("inventory operation rejected: %s", message, extra=extra)
    return exc_type(message)


def _authorize(ctx: AuthContext, operation: str) -> None:
    try:
        policy.require_operation(ctx, operation)
    except InventoryError as exc:
        logger.warning(
            "inventory operation rejected: %s",
            exc.message,
            extra={"operation": operation, "role": ctx.role.value, "user_id": ctx.user_id},
        )
        raise


def _validate_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise _reject(InvalidArgumentError, "quantity must be a positive integer", quantity=quantity)
    return quantity


def _require_asset(db: Session, asset_id: int) -> None:
    if catalog_services.get_asset(db, asset_id) is None:
        raise _reject(InvalidArgumentError, f"Unknown asset id {asset_id}.", asset_id=asset_id)


def _require_base(db: Session, base_id: int, *, field_name: str) -> None:
    if catalog_services.get_base(db, base_id) is None:
        raise _reject(InvalidArgumentError, f"Unknown {field_name} {base_id}.", base_id=base_id)


def _check_withdrawal(
    db: Session,
    *,
    base_id: int,
    asset_id: int,
    quantity: int,
    allow_negative: Optional[bool],
) -> None:
    if negative_stock_allowed(allow_negative):
        return
    available = ledger.get_quantity(db, base_id=base_id, asset_id=asset_id)
    if available - quantity < 0:
        raise _reject(
            InsufficientStockError,
            "Insufficient on-hand quantity.",
            base_id=base_id,
            asset_id=asset_id,
            available=available,
            requested=quantity,
        )


def _actor_user_id(ctx: AuthContext, user_id: Optional[int]) -> Optional[int]:
    return user_id if user_id is not None else ctx.user_id


@contextmanager
def _unit_of_work(db: Session, *, operation: str) -> Iterator[None]:
    """Commit everything done inside the block, or roll all of it back."""
    try:
        yield
        db.commit()
    except InventoryError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("inventory storage failure", extra={"operation": operation})
        raise StorageFailureError("Storage failure; no changes were recorded.") from exc


def _log_committed(outcome: OperationOutcome) -> None:
    txn = outcome.transaction
    logger.info(
        "inventory %s recorded",
        txn.kind.value.lower(),
        extra={
            "transaction_id": txn.id,
            "asset_id": txn.asset_id,
            "source_base_id": txn.source_base_id,
            "dest_base_id": txn.dest_base_id,
            "quantity": txn.quantity,
            "user_id": txn.user_id,
        },
    )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def purchase(
    db: Session,
    ctx: AuthContext,
    *,
    asset_id: int,
    base_id: int,
    quantity: int,
    user_id: Optional[int] = None,
) -> OperationOutcome:
    _authorize(ctx, policy.OP_PURCHASE)
    quantity = _validate_quantity(quantity)
    _require_asset(db, asset_id)
    _require_base(db, base_id, field_name="base id")

    with ledger.ledger_locks.hold([(base_id, asset_id)]):
        with _unit_of_work(db, operation=policy.OP_PURCHASE):
            new_qty = ledger.adjust_quantity(db, base_id=base_id, asset_id=asset_id, delta=quantity)
            txn = ledger.append_transaction(
                db,
                kind=Kind.PURCHASE,
                asset_id=asset_id,
                dest_base_id=base_id,
                quantity=quantity,
                user_id=_actor_user_id(ctx, user_id),
            )
    outcome = OperationOutcome(transaction=txn, quantities={base_id: new_qty})
    _log_committed(outcome)
    return outcome


def transfer(
    db: Session,
    ctx: AuthContext,
    *,
    asset_id: int,
    source_base_id: int,
    dest_base_id: int,
    quantity: int,
    user_id: Optional[int] = None,
    allow_negative: Optional[bool] = None,
) -> OperationOutcome:
    _authorize(ctx, policy.OP_TRANSFER)
    if source_base_id == dest_base_id:
        raise _reject(
            InvalidArgumentError,
            "Source and destination bases must differ.",
            base_id=source_base_id,
            asset_id=asset_id,
        )
    quantity = _validate_quantity(quantity)
    _require_asset(db, asset_id)
    _require_base(db, source_base_id, field_name="source base id")
    _require_base(db, dest_base_id, field_name="destination base id")

    keys = [(source_base_id, asset_id), (dest_base_id, asset_id)]
    with ledger.ledger_locks.hold(keys):
        with _unit_of_work(db, operation=policy.OP_TRANSFER):
            _check_withdrawal(
                db,
                base_id=source_base_id,
                asset_id=asset_id,
                quantity=quantity,
                allow_negative=allow_negative,
            )
            source_qty = ledger.adjust_quantity(db, base_id=source_base_id, asset_id=asset_id, delta=-quantity)
            dest_qty = ledger.adjust_quantity(db, base_id=dest_base_id, asset_id=asset_id, delta=quantity)
            txn = ledger.append_transaction(
                db,
                kind=Kind.TRANSFER,
                asset_id=asset_id,
                source_base_id=source_base_id,
                dest_base_id=dest_base_id,
                quantity=quantity,
                user_id=_actor_user_id(ctx, user_id),
            )
    outcome = OperationOutcome(
        transaction=txn,
        quantities={source_base_id: source_qty, dest_base_id: dest_qty},
    )
    _log_committed(outcome)
    return outcome


def assign(
    db: Session,
    ctx: AuthContext,
    *,
    asset_id: int,
    base_id: int,
    quantity: int,
    user_id: Optional[int] = None,
) -> OperationOutcome:
    """Log an assignment to personnel. Stock is unchanged."""
    _authorize(ctx, policy.OP_ASSIGN)
    quantity = _validate_quantity(quantity)
    _require_asset(db, asset_id)
    _require_base(db, base_id, field_name="base id")

    with _unit_of_work(db, operation=policy.OP_ASSIGN):
        txn = ledger.append_transaction(
            db,
            kind=Kind.ASSIGN,
            asset_id=asset_id,
            source_base_id=base_id,
            quantity=quantity,
            user_id=_actor_user_id(ctx, user_id),
        )
        current = ledger.get_quantity(db, base_id=base_id, asset_id=asset_id)
    outcome = OperationOutcome(transaction=txn, quantities={base_id: current})
    _log_committed(outcome)
    return outcome


def expend(
    db: Session,
    ctx: AuthContext,
    *,
    asset_id: int,
    base_id: int,
    quantity: int,
    user_id: Optional[int] = None,
    allow_negative: Optional[bool] = None,
) -> OperationOutcome:
    _authorize(ctx, policy.OP_EXPEND)
    quantity = _validate_quantity(quantity)
    _require_asset(db, asset_id)
    _require_base(db, base_id, field_name="base id")

    with ledger.ledger_locks.hold([(base_id, asset_id)]):
        with _unit_of_work(db, operation=policy.OP_EXPEND):
            _check_withdrawal(
                db,
                base_id=base_id,
                asset_id=asset_id,
                quantity=quantity,
                allow_negative=allow_negative,
            )
            new_qty = ledger.adjust_quantity(db, base_id=base_id, asset_id=asset_id, delta=-quantity)
            txn = ledger.append_transaction(
                db,
                kind=Kind.EXPEND,
                asset_id=asset_id,
                source_base_id=base_id,
                quantity=quantity,
                user_id=_actor_user_id(ctx, user_id),
            )
    outcome = OperationOutcome(transaction=txn, quantities={base_id: new_qty})
    _log_committed(outcome)
    return outcome


def record_assignment(
    db: Session,
    ctx: AuthContext,
    *,
    kind: str,
    asset_id: int,
    base_id: int,
    quantity: int,
    user_id: Optional[int] = None,
    allow_negative: Optional[bool] = None,
) -> OperationOutcome:
    """Dispatch for the assignments endpoint: `kind` is ASSIGN or EXPEND."""
    normalised = (kind or "").strip().upper()
    if normalised == Kind.ASSIGN.value:
        return assign(db, ctx, asset_id=asset_id, base_id=base_id, quantity=quantity, user_id=user_id)
    if normalised == Kind.EXPEND.value:
        return expend(
            db,
            ctx,
            asset_id=asset_id,
            base_id=base_id,
            quantity=quantity,
            user_id=user_id,
            allow_negative=allow_negative,
        )
    raise _reject(InvalidArgumentError, "type must be ASSIGN or EXPEND.", kind=kind)


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


def list_history(db: Session, *, base_id: Optional[int] = None) -> List[schemas.HistoryItem]:
    """Transactions touching `base_id` (or all), newest first, with display names."""
    items: List[schemas.HistoryItem] = []
    for txn in ledger.query_transactions(db, base_id=base_id):
        # source_base/dest_base are relationships on the model, names here
        fields = schemas.TransactionRead.model_validate(txn).model_dump()
        items.append(
            schemas.HistoryItem(
                **fields,
                asset_name=txn.asset.name if txn.asset else None,
                user_name=txn.user.username if txn.user else None,
                source_base=txn.source_base.name if txn.source_base else None,
                dest_base=txn.dest_base.name if txn.dest_base else None,
            )
        )
    return items
