"""plugins

Revision ID: 0004
Revises: 0003
Create Date: 2026-10-18

This migration creates the ``plugins`` registry table.
"""

from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0004"
down_revision: Union[str, None] = "0003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the plugins table."""

    op.create_table(
        "plugins",
        sa.Column("uuid", sa.String(length=40), primary_key=True),
        sa.Column("kee", sa.String(length=200), nullable=False),
        sa.Column("base_plugin_key", sa.String(length=200), nullable=True),
        sa.Column("file_hash", sa.String(length=200), nullable=False),
        sa.Column("created_at", sa.BigInteger, nullable=False),
        sa.Column("updated_at", sa.BigInteger, nullable=False),
    )

    op.create_index("plugins_key", "plugins", ["kee"], unique=True)


def downgrade() -> None:
    """Drop the plugins table."""

    op.drop_index("plugins_key", table_name="plugins")
    op.drop_table("plugins")
