"""
Inventory ledger and transaction log.

The ledger holds one quantity per (base, asset); the log holds every
stock-affecting event. Both are only written through the operation
gateway in `services.py`, which keeps them in step inside one database
transaction.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from armorydb.apps.catalog import models as catalog_models
from . import models

LedgerKey = Tuple[int, int]


class LedgerLockRegistry:
    """
    One lock per (base_id, asset_id) key.

    Adjustments on the same key are serialised in-process; the SQL upsert is
    itself a single statement, so writers in other processes cannot lose
    updates either.
    """

    def __init__(self) -> None:
        self._locks: Dict[LedgerKey, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, key: LedgerKey) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, keys: Iterable[LedgerKey]) -> Iterator[None]:
        # Sorted acquisition keeps two transfers in opposite directions from deadlocking.
        ordered = sorted(set(keys))
        acquired: List[threading.Lock] = []
        try:
            for key in ordered:
                lock = self._lock_for(key)
                lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()


ledger_locks = LedgerLockRegistry()


# ---------------------------------------------------------------------------
# LEDGER
# ---------------------------------------------------------------------------


def get_quantity(db: Session, *, base_id: int, asset_id: int) -> int:
    """Current quantity; a missing entry means zero stock."""
    qty = (
        db.query(models.InventoryEntry.quantity)
        .filter(
            models.InventoryEntry.base_id == base_id,
            models.InventoryEntry.asset_id == asset_id,
        )
        .scalar()
    )
    return int(qty) if qty is not None else 0


def _upsert_statement(db: Session, *, base_id: int, asset_id: int, delta: int):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        insert = pg_insert
    elif dialect == "sqlite":
        insert = sqlite_insert
    else:
        return None

    tbl = models.InventoryEntry.__table__
    return (
        insert(tbl)
        .values(base_id=base_id, asset_id=asset_id, quantity=delta)
        .on_conflict_do_update(
            index_elements=[tbl.c.base_id, tbl.c.asset_id],
            set_={"quantity": tbl.c.quantity + delta},
        )
        .returning(tbl.c.quantity)
    )


def adjust_quantity(db: Session, *, base_id: int, asset_id: int, delta: int) -> int:
    """
    Add `delta` to the (base, asset) quantity, creating the entry if absent.

    Returns the new quantity. Callers hold `ledger_locks` for the key.
    """
    stmt = _upsert_statement(db, base_id=base_id, asset_id=asset_id, delta=delta)
    if stmt is not None:
        return int(db.execute(stmt).scalar_one())

    entry = (
        db.query(models.InventoryEntry)
        .filter(
            models.InventoryEntry.base_id == base_id,
            models.InventoryEntry.asset_id == asset_id,
        )
        .with_for_update()
        .first()
    )
    if entry is None:
        entry = models.InventoryEntry(base_id=base_id, asset_id=asset_id, quantity=delta)
        db.add(entry)
    else:
        entry.quantity = models.InventoryEntry.quantity + delta
    db.flush()
    db.refresh(entry)
    return int(entry.quantity)


def sum_quantities(
    db: Session,
    *,
    base_id: Optional[int] = None,
    category: Optional[str] = None,
) -> Dict[int, int]:
    """asset_id -> total quantity, across all bases unless `base_id` is given."""
    stmt = (
        select(models.InventoryEntry.asset_id, func.sum(models.InventoryEntry.quantity))
        .join(catalog_models.Asset, catalog_models.Asset.id == models.InventoryEntry.asset_id)
        .group_by(models.InventoryEntry.asset_id)
    )
    if base_id is not None:
        stmt = stmt.where(models.InventoryEntry.base_id == base_id)
    if category:
        stmt = stmt.where(catalog_models.Asset.category == category)
    return {int(asset_id): int(total or 0) for asset_id, total in db.execute(stmt).all()}


# ---------------------------------------------------------------------------
# TRANSACTION LOG
# ---------------------------------------------------------------------------


def append_transaction(
    db: Session,
    *,
    kind: models.TransactionKindEnum,
    asset_id: int,
    quantity: int,
    source_base_id: Optional[int] = None,
    dest_base_id: Optional[int] = None,
    user_id: Optional[int] = None,
) -> models.AssetTransaction:
    """Append one record; id and timestamp are assigned on flush."""
    entry = models.AssetTransaction(
        kind=kind,
        asset_id=asset_id,
        source_base_id=source_base_id,
        dest_base_id=dest_base_id,
        quantity=quantity,
        user_id=user_id,
        status=models.TransactionStatusEnum.COMPLETED,
    )
    db.add(entry)
    db.flush()
    return entry


def query_transactions(
    db: Session,
    *,
    base_id: Optional[int] = None,
    category: Optional[str] = None,
    kind: Optional[models.TransactionKindEnum] = None,
) -> List[models.AssetTransaction]:
    """Transactions in scope, newest first. A base filter matches either end."""
    query = db.query(models.AssetTransaction)
    if base_id is not None:
        query = query.filter(
            or_(
                models.AssetTransaction.source_base_id == base_id,
                models.AssetTransaction.dest_base_id == base_id,
            )
        )
    if category:
        query = query.join(
            catalog_models.Asset, catalog_models.Asset.id == models.AssetTransaction.asset_id
        ).filter(catalog_models.Asset.category == category)
    if kind is not None:
        query = query.filter(models.AssetTransaction.kind == kind)
    return query.order_by(
        models.AssetTransaction.occurred_at.desc(),
        models.AssetTransaction.id.desc(),
    ).all()


def replay_quantity(db: Session, *, base_id: int, asset_id: int) -> int:
    """Rebuild a ledger quantity from the log alone."""
    entries = (
        db.query(models.AssetTransaction)
        .filter(
            models.AssetTransaction.asset_id == asset_id,
            or_(
                models.AssetTransaction.source_base_id == base_id,
                models.AssetTransaction.dest_base_id == base_id,
            ),
        )
        .all()
    )
    return sum(entry.signed_quantity(base_id) for entry in entries)
