"""
Catalog module.

Reference data: military bases and asset types.
"""
