"""Feature apps: accounts, catalog and inventory."""
