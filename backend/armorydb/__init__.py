# backend/armorydb/__init__.py
"""
Import ORM models from each app so that:

- Alembic and Base.metadata.create_all() see all tables.
- String relationship targets ("MilitaryBase", "User") resolve.

The actual model classes are kept in armorydb/apps/*/models.py.
"""

from .apps.catalog import models as catalog_models          # bases + asset types
from .apps.accounts import models as accounts_models        # users / roles
from .apps.inventory import models as inventory_models      # ledger + transaction log

__all__ = [
    "catalog_models",
    "accounts_models",
    "inventory_models",
]
