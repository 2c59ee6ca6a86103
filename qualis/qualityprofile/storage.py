"""Qualis – Quality profile storage helpers.

This module provides a small abstraction around the quality profile
tables:

- ``quality_profiles`` – one row per profile, unique per (language, name)
- ``default_qprofiles`` – at most one default profile per language
- ``active_rules`` / ``active_rule_parameters`` – rule activations
- ``qprofile_changes`` – change log of activations

All methods take the caller's :class:`~qualis.core.database.DbSession`;
nothing is committed here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from psycopg2.extras import Json

from qualis.core.database import DbSession
from qualis.core.logging import get_logger
from qualis.qualityprofile.types import (
    ActiveRule,
    ActiveRuleInheritance,
    ActiveRuleParam,
    ChangeType,
    ProfileChange,
    QualityProfile,
)
from qualis.rules.types import Severity


logger = get_logger(__name__)


_PROFILE_COLUMNS = """
    qp.kee,
    qp.rules_profile_uuid,
    qp.name,
    qp.language,
    qp.parent_kee,
    qp.is_built_in,
    dq.qprofile_kee IS NOT NULL AS is_default,
    qp.rules_updated_at,
    qp.user_updated_at,
    qp.last_used
"""

_COUNTABLE_TABLES = frozenset(
    {
        "quality_profiles",
        "default_qprofiles",
        "active_rules",
        "active_rule_parameters",
        "qprofile_changes",
    }
)


def _row_to_profile(row) -> QualityProfile:  # type: ignore[no-untyped-def]
    (
        kee,
        rules_profile_uuid,
        name,
        language,
        parent_kee,
        is_built_in,
        is_default,
        rules_updated_at,
        user_updated_at,
        last_used,
    ) = row
    return QualityProfile(
        kee=kee,
        rules_profile_uuid=rules_profile_uuid,
        name=name,
        language=language,
        parent_kee=parent_kee,
        is_built_in=bool(is_built_in),
        is_default=bool(is_default),
        rules_updated_at=int(rules_updated_at),
        user_updated_at=user_updated_at,
        last_used=last_used,
    )


@dataclass
class QualityProfileStorage:
    """Persistence helper for quality profiles and their activations."""

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def select_by_name_and_language(
        self,
        session: DbSession,
        name: str,
        language: str,
    ) -> Optional[QualityProfile]:
        """Load the profile called ``name`` for ``language``, if present."""

        sql = f"""
            SELECT {_PROFILE_COLUMNS}
            FROM quality_profiles qp
            LEFT JOIN default_qprofiles dq ON dq.qprofile_kee = qp.kee
            WHERE qp.name = %s AND qp.language = %s
            LIMIT 1
        """

        row = session.fetchone(sql, (name, language))
        return _row_to_profile(row) if row is not None else None

    def select_by_kee(self, session: DbSession, kee: str) -> Optional[QualityProfile]:
        """Load a profile by key, if present."""

        sql = f"""
            SELECT {_PROFILE_COLUMNS}
            FROM quality_profiles qp
            LEFT JOIN default_qprofiles dq ON dq.qprofile_kee = qp.kee
            WHERE qp.kee = %s
            LIMIT 1
        """

        row = session.fetchone(sql, (kee,))
        return _row_to_profile(row) if row is not None else None

    def select_default(self, session: DbSession, language: str) -> Optional[QualityProfile]:
        """Load the default profile of ``language``, if one is set."""

        sql = f"""
            SELECT {_PROFILE_COLUMNS}
            FROM default_qprofiles dq
            JOIN quality_profiles qp ON qp.kee = dq.qprofile_kee
            WHERE dq.language = %s
            LIMIT 1
        """

        row = session.fetchone(sql, (language,))
        return _row_to_profile(row) if row is not None else None

    def insert_profile(self, session: DbSession, profile: QualityProfile, now: int) -> None:
        """Stage a new profile row.

        The default flag is not part of the row; see
        :meth:`set_default_if_absent`.
        """

        sql = """
            INSERT INTO quality_profiles (
                kee,
                rules_profile_uuid,
                name,
                language,
                parent_kee,
                is_built_in,
                rules_updated_at,
                user_updated_at,
                last_used,
                created_at,
                updated_at
            ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
        """

        session.insert(
            sql,
            (
                profile.kee,
                profile.rules_profile_uuid,
                profile.name,
                profile.language,
                profile.parent_kee,
                profile.is_built_in,
                profile.rules_updated_at,
                profile.user_updated_at,
                profile.last_used,
                now,
                now,
            ),
        )

    def set_default_if_absent(
        self,
        session: DbSession,
        language: str,
        kee: str,
        now: int,
    ) -> bool:
        """Make ``kee`` the default profile of ``language`` unless one exists.

        Uses INSERT ... ON CONFLICT on ``language`` so that concurrent
        callers never both succeed and never fail.

        Returns:
            ``True`` if the profile became the default.
        """

        sql = """
            INSERT INTO default_qprofiles (language, qprofile_kee, created_at, updated_at)
            VALUES (%s, %s, %s, %s)
            ON CONFLICT (language) DO NOTHING
        """

        return session.execute(sql, (language, kee, now, now)) == 1

    # ------------------------------------------------------------------
    # Active rules
    # ------------------------------------------------------------------

    def insert_active_rule(self, session: DbSession, active_rule: ActiveRule) -> None:
        """Stage an active rule row."""

        sql = """
            INSERT INTO active_rules (
                uuid,
                profile_uuid,
                rule_uuid,
                severity,
                inheritance,
                overrides,
                created_at,
                updated_at
            ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
        """

        session.insert(
            sql,
            (
                active_rule.uuid,
                active_rule.profile_uuid,
                active_rule.rule_uuid,
                active_rule.severity.value,
                active_rule.inheritance.value if active_rule.inheritance else None,
                active_rule.overrides,
                active_rule.created_at,
                active_rule.updated_at,
            ),
        )

    def insert_active_rule_param(self, session: DbSession, param: ActiveRuleParam) -> None:
        """Stage an active rule parameter row."""

        sql = """
            INSERT INTO active_rule_parameters (
                uuid,
                active_rule_uuid,
                rules_parameter_uuid,
                name,
                value
            ) VALUES (%s, %s, %s, %s, %s)
        """

        session.insert(
            sql,
            (
                param.uuid,
                param.active_rule_uuid,
                param.rules_parameter_uuid,
                param.name,
                param.value,
            ),
        )

    def select_active_rules(self, session: DbSession, rules_profile_uuid: str) -> List[ActiveRule]:
        """Load the active rules grouped under ``rules_profile_uuid``."""

        sql = """
            SELECT uuid, profile_uuid, rule_uuid, severity, inheritance,
                   overrides, created_at, updated_at
            FROM active_rules
            WHERE profile_uuid = %s
            ORDER BY created_at, uuid
        """

        rows = session.fetchall(sql, (rules_profile_uuid,))
        return [
            ActiveRule(
                uuid=uuid,
                profile_uuid=profile_uuid,
                rule_uuid=rule_uuid,
                severity=Severity(severity),
                inheritance=ActiveRuleInheritance(inheritance) if inheritance else None,
                overrides=bool(overrides),
                created_at=int(created_at),
                updated_at=int(updated_at),
            )
            for (
                uuid,
                profile_uuid,
                rule_uuid,
                severity,
                inheritance,
                overrides,
                created_at,
                updated_at,
            ) in rows
        ]

    def select_active_rule_params(
        self,
        session: DbSession,
        active_rule_uuid: str,
    ) -> List[ActiveRuleParam]:
        """Load the parameter rows of one active rule."""

        sql = """
            SELECT uuid, active_rule_uuid, rules_parameter_uuid, name, value
            FROM active_rule_parameters
            WHERE active_rule_uuid = %s
            ORDER BY name
        """

        rows = session.fetchall(sql, (active_rule_uuid,))
        return [ActiveRuleParam(*row) for row in rows]

    # ------------------------------------------------------------------
    # Change log
    # ------------------------------------------------------------------

    def insert_change(self, session: DbSession, change: ProfileChange) -> None:
        """Stage a change-log row."""

        sql = """
            INSERT INTO qprofile_changes (
                uuid,
                rules_profile_uuid,
                change_type,
                user_uuid,
                change_data,
                created_at
            ) VALUES (%s, %s, %s, %s, %s, %s)
        """

        session.insert(
            sql,
            (
                change.uuid,
                change.rules_profile_uuid,
                change.change_type.value,
                change.user_uuid,
                Json(change.data),
                change.created_at,
            ),
        )

    def select_changes(self, session: DbSession, rules_profile_uuid: str) -> List[ProfileChange]:
        """Load the change log of a profile, oldest first."""

        sql = """
            SELECT uuid, rules_profile_uuid, change_type, user_uuid, change_data, created_at
            FROM qprofile_changes
            WHERE rules_profile_uuid = %s
            ORDER BY created_at, uuid
        """

        rows = session.fetchall(sql, (rules_profile_uuid,))
        return [
            ProfileChange(
                uuid=uuid,
                rules_profile_uuid=rp_uuid,
                change_type=ChangeType(change_type),
                user_uuid=user_uuid,
                created_at=int(created_at),
                data=dict(change_data or {}),
            )
            for uuid, rp_uuid, change_type, user_uuid, change_data, created_at in rows
        ]

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def count_rows(self, session: DbSession, table: str) -> int:
        """Return the number of rows in one of the quality profile tables.

        Raises:
            ValueError: If ``table`` is not a quality profile table.
        """

        if table not in _COUNTABLE_TABLES:
            raise ValueError(f"Unknown quality profile table {table!r}")

        row = session.fetchone(f"SELECT COUNT(*) FROM {table}")
        return int(row[0]) if row is not None else 0
