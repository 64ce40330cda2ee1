"""
Movement engine: dashboard balances derived from the ledger and the log.

Two entry points with two result shapes:

- `scoped_summary` for a single base, which can split transfers into
  in/out and reconcile opening vs closing balance;
- `global_summary` for all bases, which cannot (a transfer is both in and
  out at global scope) and therefore reports raw per-asset balances plus
  per-kind transaction totals.

The opening balance is closing minus net movement, where net movement only
counts purchases and transfers. Assignments and expenditures are reported
but do not enter the reconciliation, so the opening balance is an
approximation.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from sqlalchemy import and_, case, func, or_, select
from sqlalchemy.orm import Session

from armorydb.apps.catalog import models as catalog_models
from . import ledger, models, schemas

logger = logging.getLogger(__name__)

Kind = models.TransactionKindEnum


def _bucket(condition, quantity_column):
    return func.coalesce(func.sum(case((condition, quantity_column), else_=0)), 0)


def _movement_breakdown(
    db: Session,
    *,
    base_id: int,
    category: Optional[str],
) -> schemas.MovementBreakdown:
    T = models.AssetTransaction
    stmt = (
        select(
            _bucket(and_(T.kind == Kind.PURCHASE, T.dest_base_id == base_id), T.quantity).label("purchased"),
            _bucket(and_(T.kind == Kind.TRANSFER, T.dest_base_id == base_id), T.quantity).label("transfer_in"),
            _bucket(and_(T.kind == Kind.TRANSFER, T.source_base_id == base_id), T.quantity).label("transfer_out"),
            _bucket(and_(T.kind == Kind.ASSIGN, T.source_base_id == base_id), T.quantity).label("assigned"),
            _bucket(and_(T.kind == Kind.EXPEND, T.source_base_id == base_id), T.quantity).label("expended"),
        )
        .select_from(T)
        .where(or_(T.source_base_id == base_id, T.dest_base_id == base_id))
    )
    if category:
        stmt = stmt.join(catalog_models.Asset, catalog_models.Asset.id == T.asset_id).where(
            catalog_models.Asset.category == category
        )
    row = db.execute(stmt).one()
    return schemas.MovementBreakdown(
        purchased=int(row.purchased),
        transfer_in=int(row.transfer_in),
        transfer_out=int(row.transfer_out),
        assigned=int(row.assigned),
        expended=int(row.expended),
    )


def scoped_summary(
    db: Session,
    *,
    base_id: int,
    category: Optional[str] = None,
) -> schemas.ScopedSummary:
    closing = sum(ledger.sum_quantities(db, base_id=base_id, category=category).values())
    movements = _movement_breakdown(db, base_id=base_id, category=category)
    net = movements.purchased + movements.transfer_in - movements.transfer_out
    return schemas.ScopedSummary(
        base_id=base_id,
        category=category,
        opening_balance=closing - net,
        closing_balance=closing,
        net_movement=net,
        movements=movements,
    )


def global_summary(db: Session, *, category: Optional[str] = None) -> schemas.GlobalSummary:
    Asset = catalog_models.Asset
    E = models.InventoryEntry
    T = models.AssetTransaction

    inventory_stmt = (
        select(Asset.id, Asset.name, Asset.category, func.coalesce(func.sum(E.quantity), 0))
        .select_from(E)
        .join(Asset, Asset.id == E.asset_id)
        .group_by(Asset.id, Asset.name, Asset.category)
        .order_by(Asset.id)
    )
    totals_stmt = (
        select(T.kind, func.coalesce(func.sum(T.quantity), 0))
        .select_from(T)
        .group_by(T.kind)
        .order_by(T.kind)
    )
    if category:
        inventory_stmt = inventory_stmt.where(Asset.category == category)
        totals_stmt = totals_stmt.join(Asset, Asset.id == T.asset_id).where(Asset.category == category)

    inventory = [
        schemas.InventoryBalanceRow(asset_id=asset_id, name=name, type=cat, current_balance=int(total))
        for asset_id, name, cat, total in db.execute(inventory_stmt).all()
    ]
    raw = [
        schemas.KindTotal(type=Kind(kind), total=int(total))
        for kind, total in db.execute(totals_stmt).all()
    ]
    return schemas.GlobalSummary(category=category, inventory=inventory, raw_transactions=raw)


def _begin_snapshot(db: Session) -> None:
    # One read transaction for both queries; PostgreSQL needs REPEATABLE READ
    # for the two statements to see the same snapshot.
    if db.get_bind().dialect.name == "postgresql" and not db.in_transaction():
        db.connection(execution_options={"isolation_level": "REPEATABLE READ"})


def build_dashboard(
    db: Session,
    *,
    base_id: Optional[int] = None,
    category: Optional[str] = None,
) -> Union[schemas.ScopedSummary, schemas.GlobalSummary]:
    category = (category or "").strip() or None
    _begin_snapshot(db)
    if base_id is None:
        summary = global_summary(db, category=category)
        logger.debug("global dashboard computed", extra={"category": category, "assets": len(summary.inventory)})
        return summary
    summary = scoped_summary(db, base_id=base_id, category=category)
    logger.debug(
        "scoped dashboard computed",
        extra={"base_id": base_id, "category": category, "closing_balance": summary.closing_balance},
    )
    return summary
