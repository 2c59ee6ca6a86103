"""rules catalog

Revision ID: 0001
Revises: None
Create Date: 2026-10-18

This migration creates the rule catalog tables:

- rules
- rules_parameters

Timestamps are BIGINT milliseconds since the Unix epoch, written by the
application clock.
"""

from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create rule catalog tables and indexes."""

    op.create_table(
        "rules",
        sa.Column("uuid", sa.String(length=40), primary_key=True),
        sa.Column("repository_key", sa.String(length=255), nullable=False),
        sa.Column("rule_key", sa.String(length=200), nullable=False),
        sa.Column("language", sa.String(length=20), nullable=True),
        sa.Column("name", sa.String(length=200), nullable=True),
        sa.Column("severity", sa.String(length=10), nullable=False),
        sa.Column("created_at", sa.BigInteger, nullable=False),
        sa.Column("updated_at", sa.BigInteger, nullable=False),
    )

    op.create_index(
        "uniq_rules_repo_key",
        "rules",
        ["repository_key", "rule_key"],
        unique=True,
    )

    op.create_table(
        "rules_parameters",
        sa.Column("uuid", sa.String(length=40), primary_key=True),
        sa.Column("rule_uuid", sa.String(length=40), nullable=False),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("param_type", sa.String(length=512), nullable=False),
        sa.Column("default_value", sa.String(length=4000), nullable=True),
        sa.Column("description", sa.String(length=4000), nullable=True),
    )

    op.create_index(
        "uniq_rules_parameters_rule_name",
        "rules_parameters",
        ["rule_uuid", "name"],
        unique=True,
    )


def downgrade() -> None:
    """Drop rule catalog tables."""

    op.drop_index("uniq_rules_parameters_rule_name", table_name="rules_parameters")
    op.drop_table("rules_parameters")
    op.drop_index("uniq_rules_repo_key", table_name="rules")
    op.drop_table("rules")
