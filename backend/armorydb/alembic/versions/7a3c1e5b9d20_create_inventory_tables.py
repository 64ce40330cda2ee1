"""Create bases, assets, users, inventory and transactions tables.

Revision ID: 7a3c1e5b9d20
Revises:
Create Date: 2025-03-02 09:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision = "7a3c1e5b9d20"
down_revision = None
branch_labels = None
depends_on = None


def _table_exists(table_name: str) -> bool:
    bind = op.get_bind()
    insp = inspect(bind)
    return bool(insp.has_table(table_name))


def upgrade() -> None:
    if not _table_exists("bases"):
        op.create_table(
            "bases",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.String(length=128), nullable=False),
            sa.Column("location", sa.String(length=128), nullable=True),
            sa.UniqueConstraint("name", name="uq_bases_name"),
        )
        op.create_index("ix_bases_id", "bases", ["id"])

    if not _table_exists("assets"):
        op.create_table(
            "assets",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.String(length=128), nullable=False),
            sa.Column("category", sa.String(length=32), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
        )
        op.create_index("ix_assets_id", "assets", ["id"])
        op.create_index("ix_assets_category", "assets", ["category"])

    if not _table_exists("users"):
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("username", sa.String(length=64), nullable=False),
            sa.Column("hashed_password", sa.String(length=255), nullable=False),
            sa.Column(
                "role",
                sa.Enum("ADMIN", "COMMANDER", "LOGISTICS", name="account_role_enum", native_enum=False),
                nullable=False,
            ),
            sa.Column("base_id", sa.Integer(), sa.ForeignKey("bases.id", ondelete="SET NULL"), nullable=True),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        )
        op.create_index("ix_users_id", "users", ["id"])
        op.create_index("ix_users_username", "users", ["username"], unique=True)
        op.create_index("ix_users_role", "users", ["role"])
        op.create_index("ix_users_base_id", "users", ["base_id"])
        op.create_index("idx_users_role_active", "users", ["role", "is_active"])

    if not _table_exists("inventory"):
        op.create_table(
            "inventory",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("base_id", sa.Integer(), sa.ForeignKey("bases.id", ondelete="CASCADE"), nullable=False),
            sa.Column("asset_id", sa.Integer(), sa.ForeignKey("assets.id", ondelete="CASCADE"), nullable=False),
            sa.Column("quantity", sa.Integer(), nullable=False, server_default="0"),
            sa.UniqueConstraint("base_id", "asset_id", name="uq_inventory_base_asset"),
        )
        op.create_index("ix_inventory_id", "inventory", ["id"])
        op.create_index("ix_inventory_base_id", "inventory", ["base_id"])
        op.create_index("ix_inventory_asset", "inventory", ["asset_id"])

    if not _table_exists("transactions"):
        op.create_table(
            "transactions",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column(
                "kind",
                sa.Enum("PURCHASE", "TRANSFER", "ASSIGN", "EXPEND", name="transaction_kind_enum", native_enum=False),
                nullable=False,
            ),
            sa.Column("asset_id", sa.Integer(), sa.ForeignKey("assets.id", ondelete="RESTRICT"), nullable=False),
            sa.Column("source_base_id", sa.Integer(), sa.ForeignKey("bases.id", ondelete="RESTRICT"), nullable=True),
            sa.Column("dest_base_id", sa.Integer(), sa.ForeignKey("bases.id", ondelete="RESTRICT"), nullable=True),
            sa.Column("quantity", sa.Integer(), nullable=False),
            sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
            sa.Column(
                "status",
                sa.Enum("COMPLETED", name="transaction_status_enum", native_enum=False),
                nullable=False,
                server_default="COMPLETED",
            ),
            sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.CheckConstraint("quantity > 0", name="ck_transactions_quantity_positive"),
        )
        op.create_index("ix_transactions_id", "transactions", ["id"])
        op.create_index("ix_transactions_kind", "transactions", ["kind"])
        op.create_index("ix_transactions_asset_id", "transactions", ["asset_id"])
        op.create_index("ix_transactions_occurred", "transactions", ["occurred_at"])
        op.create_index("ix_transactions_source", "transactions", ["source_base_id", "occurred_at"])
        op.create_index("ix_transactions_dest", "transactions", ["dest_base_id", "occurred_at"])


def downgrade() -> None:
    for table in ("transactions", "inventory", "users", "assets", "bases"):
        if _table_exists(table):
            op.drop_table(table)
