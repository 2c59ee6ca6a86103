"""add type to plugins

Revision ID: 0005
Revises: 0004
Create Date: 2026-10-18

This migration adds the nullable ``type`` column (VARCHAR(10)) to
``plugins``. It records whether a plugin is BUNDLED with the server or
EXTERNAL. Existing rows keep a NULL type until the plugin is next
registered.
"""

from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0005"
down_revision: Union[str, None] = "0004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Add the nullable type column to plugins."""

    op.add_column(
        "plugins",
        sa.Column("type", sa.String(length=10), nullable=True),
    )


def downgrade() -> None:
    """Drop the type column from plugins."""

    op.drop_column("plugins", "type")
