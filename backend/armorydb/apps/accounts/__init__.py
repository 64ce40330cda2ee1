"""
Accounts module.

Users, roles and password login.
"""
