"""index queue

Revision ID: 0003
Revises: 0002
Create Date: 2026-10-18

This migration creates the ``index_queue`` table, where writers record
documents whose search index entries are stale. The indexing worker
consumes and deletes the rows.
"""

from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0003"
down_revision: Union[str, None] = "0002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the index_queue table."""

    op.create_table(
        "index_queue",
        sa.Column("uuid", sa.String(length=40), primary_key=True),
        sa.Column("doc_type", sa.String(length=40), nullable=False),
        sa.Column("doc_id", sa.String(length=4000), nullable=False),
        sa.Column("created_at", sa.BigInteger, nullable=False),
    )

    op.create_index("idx_index_queue_created_at", "index_queue", ["created_at"])


def downgrade() -> None:
    """Drop the index_queue table."""

    op.drop_index("idx_index_queue_created_at", table_name="index_queue")
    op.drop_table("index_queue")
