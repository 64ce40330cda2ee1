from __future__ import annotations

import os
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parent
sys.path.append(str(ROOT))

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["DATABASE_WRITE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key"
# Cheap hashing for tests.
os.environ["ARGON2_TIME_COST"] = "1"
os.environ["ARGON2_MEMORY_COST"] = "1024"

from armorydb.database import Base  # noqa: E402
from armorydb.apps.accounts import models as account_models  # noqa: E402
from armorydb.apps.catalog import models as catalog_models  # noqa: E402
from armorydb.apps.inventory import models as inventory_models  # noqa: E402
from armorydb.security import AuthContext, get_password_hash  # noqa: E402

TABLES = [
    catalog_models.MilitaryBase.__table__,
    catalog_models.Asset.__table__,
    account_models.User.__table__,
    inventory_models.InventoryEntry.__table__,
    inventory_models.AssetTransaction.__table__,
]


def make_session_factory(url: str = "sqlite+pysqlite:///:memory:"):
    engine = create_engine(url, connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine, tables=TABLES)
    return engine, sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )


def seed_reference_data(db) -> SimpleNamespace:
    alpha = catalog_models.MilitaryBase(name="Alpha Base", location="Sector 1")
    bravo = catalog_models.MilitaryBase(name="Bravo Base", location="Sector 2")
    charlie = catalog_models.MilitaryBase(name="Charlie Base", location="Sector 3")
    rifle = catalog_models.Asset(name="M4 Carbine", category="Weapon", description="Standard issue assault rifle")
    humvee = catalog_models.Asset(name="Humvee", category="Vehicle")
    ammo = catalog_models.Asset(name="5.56mm Ammo", category="Ammo")
    db.add_all([alpha, bravo, charlie, rifle, humvee, ammo])
    db.flush()

    admin = account_models.User(
        username="admin",
        hashed_password=get_password_hash("admin123"),
        role=account_models.AccountRole.ADMIN,
        base_id=None,
    )
    commander = account_models.User(
        username="commander_alpha",
        hashed_password=get_password_hash("pass123"),
        role=account_models.AccountRole.COMMANDER,
        base_id=alpha.id,
    )
    logistics = account_models.User(
        username="logistics_bravo",
        hashed_password=get_password_hash("pass123"),
        role=account_models.AccountRole.LOGISTICS,
        base_id=bravo.id,
    )
    db.add_all([admin, commander, logistics])
    db.commit()

    return SimpleNamespace(
        alpha=alpha,
        bravo=bravo,
        charlie=charlie,
        rifle=rifle,
        humvee=humvee,
        ammo=ammo,
        admin=admin,
        commander=commander,
        logistics=logistics,
        admin_ctx=AuthContext(role=account_models.AccountRole.ADMIN, user_id=admin.id),
        commander_ctx=AuthContext(
            role=account_models.AccountRole.COMMANDER, base_id=alpha.id, user_id=commander.id
        ),
        logistics_ctx=AuthContext(
            role=account_models.AccountRole.LOGISTICS, base_id=bravo.id, user_id=logistics.id
        ),
    )


@pytest.fixture()
def db_session():
    engine, TestingSession = make_session_factory()
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture()
def seeded(db_session) -> SimpleNamespace:
    return seed_reference_data(db_session)


@pytest.fixture()
def file_session_factory(tmp_path):
    """Session factory over an on-disk SQLite file, shareable across threads."""
    engine, factory = make_session_factory(f"sqlite+pysqlite:///{tmp_path / 'armory.db'}")
    try:
        yield factory
    finally:
        engine.dispose()
