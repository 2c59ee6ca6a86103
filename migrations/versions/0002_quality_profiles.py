"""quality profiles

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-18

This migration creates the quality profile tables:

- quality_profiles
- default_qprofiles
- active_rules
- active_rule_parameters
- qprofile_changes

No foreign keys are declared: profile rows and active-rule rows are
written through different sessions that commit independently.
"""

from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0002"
down_revision: Union[str, None] = "0001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create quality profile tables and indexes."""

    # quality_profiles
    op.create_table(
        "quality_profiles",
        sa.Column("kee", sa.String(length=255), primary_key=True),
        sa.Column("rules_profile_uuid", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("language", sa.String(length=20), nullable=False),
        sa.Column("parent_kee", sa.String(length=255), nullable=True),
        sa.Column("is_built_in", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("rules_updated_at", sa.BigInteger, nullable=False),
        sa.Column("user_updated_at", sa.BigInteger, nullable=True),
        sa.Column("last_used", sa.BigInteger, nullable=True),
        sa.Column("created_at", sa.BigInteger, nullable=False),
        sa.Column("updated_at", sa.BigInteger, nullable=False),
    )

    op.create_index(
        "uniq_quality_profiles_lang_name",
        "quality_profiles",
        ["language", "name"],
        unique=True,
    )
    op.create_index(
        "uniq_quality_profiles_rp_uuid",
        "quality_profiles",
        ["rules_profile_uuid"],
        unique=True,
    )

    # default_qprofiles: one row per language
    op.create_table(
        "default_qprofiles",
        sa.Column("language", sa.String(length=20), primary_key=True),
        sa.Column("qprofile_kee", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.BigInteger, nullable=False),
        sa.Column("updated_at", sa.BigInteger, nullable=False),
    )

    op.create_index(
        "uniq_default_qprofiles_kee",
        "default_qprofiles",
        ["qprofile_kee"],
        unique=True,
    )

    # active_rules
    op.create_table(
        "active_rules",
        sa.Column("uuid", sa.String(length=40), primary_key=True),
        sa.Column("profile_uuid", sa.String(length=255), nullable=False),
        sa.Column("rule_uuid", sa.String(length=40), nullable=False),
        sa.Column("severity", sa.String(length=10), nullable=False),
        sa.Column("inheritance", sa.String(length=10), nullable=True),
        sa.Column("overrides", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.BigInteger, nullable=False),
        sa.Column("updated_at", sa.BigInteger, nullable=False),
    )

    op.create_index(
        "uniq_profile_rule_uuids",
        "active_rules",
        ["profile_uuid", "rule_uuid"],
        unique=True,
    )

    # active_rule_parameters
    op.create_table(
        "active_rule_parameters",
        sa.Column("uuid", sa.String(length=40), primary_key=True),
        sa.Column("active_rule_uuid", sa.String(length=40), nullable=False),
        sa.Column("rules_parameter_uuid", sa.String(length=40), nullable=False),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("value", sa.String(length=4000), nullable=True),
    )

    op.create_index(
        "idx_active_rule_parameters_ar_uuid",
        "active_rule_parameters",
        ["active_rule_uuid"],
    )

    # qprofile_changes
    op.create_table(
        "qprofile_changes",
        sa.Column("uuid", sa.String(length=40), primary_key=True),
        sa.Column("rules_profile_uuid", sa.String(length=255), nullable=False),
        sa.Column("change_type", sa.String(length=20), nullable=False),
        sa.Column("user_uuid", sa.String(length=255), nullable=True),
        sa.Column("change_data", postgresql.JSONB, nullable=True),
        sa.Column("created_at", sa.BigInteger, nullable=False),
    )

    op.create_index(
        "idx_qprofile_changes_rp_uuid",
        "qprofile_changes",
        ["rules_profile_uuid", "created_at"],
    )


def downgrade() -> None:
    """Drop quality profile tables."""

    op.drop_index("idx_qprofile_changes_rp_uuid", table_name="qprofile_changes")
    op.drop_table("qprofile_changes")
    op.drop_index("idx_active_rule_parameters_ar_uuid", table_name="active_rule_parameters")
    op.drop_table("active_rule_parameters")
    op.drop_index("uniq_profile_rule_uuids", table_name="active_rules")
    op.drop_table("active_rules")
    op.drop_index("uniq_default_qprofiles_kee", table_name="default_qprofiles")
    op.drop_table("default_qprofiles")
    op.drop_index("uniq_quality_profiles_rp_uuid", table_name="quality_profiles")
    op.drop_index("uniq_quality_profiles_lang_name", table_name="quality_profiles")
    op.drop_table("quality_profiles")
