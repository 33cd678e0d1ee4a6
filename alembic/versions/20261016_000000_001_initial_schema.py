"""Initial schema: credential settings and both inventory cache tables.

Revision ID: 001
Revises:
Create Date: 2026-10-16 00:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


CACHE_TABLES = ("inventory_query_cache", "inventory_snapshot_cache")


def upgrade() -> None:
    # Single-row ShipHero credentials
    op.create_table(
        "app_settings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("shiphero_refresh_token", sa.String(length=4000), nullable=False),
        sa.Column("shiphero_warehouse_id", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    # One flat cache table per ingestion method; (sku, bin) is not unique
    for table in CACHE_TABLES:
        op.create_table(
            table,
            sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
            sa.Column("sku", sa.String(length=255), nullable=False),
            sa.Column("inventory_bin", sa.String(length=255), nullable=False),
            sa.Column("quantity", sa.Integer(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(f"ix_{table}_inventory_bin", table, ["inventory_bin"])


def downgrade() -> None:
    for table in CACHE_TABLES:
        op.drop_index(f"ix_{table}_inventory_bin", table_name=table)
        op.drop_table(table)
    op.drop_table("app_settings")
