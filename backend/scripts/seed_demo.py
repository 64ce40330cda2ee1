from __future__ import annotations

from typing import Optional

from armorydb.database import Base, WriteSessionLocal, write_engine
from armorydb.apps.accounts import models as account_models
from armorydb.apps.accounts import schemas as account_schemas
from armorydb.apps.accounts import services as account_services
from armorydb.apps.catalog import models as catalog_models
from armorydb.apps.catalog import schemas as catalog_schemas
from armorydb.apps.catalog import services as catalog_services
from armorydb.apps.inventory import models as inventory_models  # noqa: F401

BASES = [
    ("Alpha Base", "Sector 1"),
    ("Bravo Base", "Sector 2"),
    ("Charlie Base", "Sector 3"),
]

ASSETS = [
    ("M4 Carbine", catalog_models.AssetCategory.WEAPON, "Standard issue assault rifle"),
    ("Humvee", catalog_models.AssetCategory.VEHICLE, "High mobility multipurpose wheeled vehicle"),
    ("5.56mm Ammo", catalog_models.AssetCategory.AMMO, "Standard rifle ammunition"),
]

# username, password, role, home base name
USERS = [
    ("admin", "admin123", account_models.AccountRole.ADMIN, None),
    ("commander_alpha", "pass123", account_models.AccountRole.COMMANDER, "Alpha Base"),
    ("logistics_bravo", "pass123", account_models.AccountRole.LOGISTICS, "Bravo Base"),
]


def _get_or_create_base(db, name: str, location: str) -> catalog_models.MilitaryBase:
    base = db.query(catalog_models.MilitaryBase).filter(catalog_models.MilitaryBase.name == name).first()
    if base:
        return base
    base = catalog_services.create_base(db, catalog_schemas.BaseCreate(name=name, location=location))
    db.commit()
    db.refresh(base)
    return base


def _get_or_create_asset(db, name: str, category: catalog_models.AssetCategory, description: str) -> catalog_models.Asset:
    asset = db.query(catalog_models.Asset).filter(catalog_models.Asset.name == name).first()
    if asset:
        return asset
    asset = catalog_services.create_asset(
        db,
        catalog_schemas.AssetCreate(name=name, category=category.value, description=description),
    )
    db.commit()
    db.refresh(asset)
    return asset


def _get_or_create_user(
    db,
    username: str,
    password: str,
    role: account_models.AccountRole,
    base: Optional[catalog_models.MilitaryBase],
) -> account_models.User:
    user = account_services.get_user_by_username(db, username)
    if user:
        return user
    return account_services.create_user(
        db,
        account_schemas.UserCreate(
            username=username,
            password=password,
            role=role,
            base_id=base.id if base else None,
        ),
    )


def main() -> None:
    # Local SQLite setups have no migrations applied; create_all is a no-op otherwise.
    Base.metadata.create_all(bind=write_engine)

    db = WriteSessionLocal()
    try:
        bases = {name: _get_or_create_base(db, name, location) for name, location in BASES}
        for name, category, description in ASSETS:
            _get_or_create_asset(db, name, category, description)
        for username, password, role, base_name in USERS:
            user = _get_or_create_user(db, username, password, role, bases.get(base_name))
            print(f"[OK] user {user.username} ({user.role.value}) base_id={user.base_id}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
