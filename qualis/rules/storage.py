"""Qualis – Rule catalog storage.

This module provides a small abstraction around the ``rules`` and
``rules_parameters`` tables. Quality-profile installation uses it to
resolve the rules a built-in profile activates.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from qualis.core.database import DbSession
from qualis.core.logging import get_logger
from qualis.rules.types import RuleDefinition, RuleKey, RuleParam, Severity


logger = get_logger(__name__)


class RuleNotFoundError(LookupError):
    """Raised when a rule key does not resolve to a stored rule."""

    def __init__(self, key: RuleKey) -> None:
        super().__init__(f"Rule '{key}' does not exist")
        self.key = key


@dataclass
class RuleStorage:
    """Persistence helper for rule definitions."""

    def select_by_key(self, session: DbSession, key: RuleKey) -> Optional[RuleDefinition]:
        """Load a rule and its parameters, or ``None`` if it is unknown."""

        sql = """
            SELECT uuid, repository_key, rule_key, language, name, severity
            FROM rules
            WHERE repository_key = %s AND rule_key = %s
            LIMIT 1
        """

        row = session.fetchone(sql, (key.repository, key.rule))
        if row is None:
            return None

        rule_uuid, repository_key, rule_key, language, name, severity = row

        param_rows = session.fetchall(
            """
            SELECT uuid, name, param_type, default_value, description
            FROM rules_parameters
            WHERE rule_uuid = %s
            ORDER BY name
            """,
            (rule_uuid,),
        )

        params = tuple(
            RuleParam(
                uuid=p_uuid,
                name=p_name,
                param_type=p_type,
                default_value=p_default,
                description=p_description,
            )
            for p_uuid, p_name, p_type, p_default, p_description in param_rows
        )

        return RuleDefinition(
            uuid=rule_uuid,
            key=RuleKey(repository=repository_key, rule=rule_key),
            language=language,
            name=name,
            severity=Severity(severity),
            params=params,
        )

    def resolve(self, session: DbSession, repository_key: str, rule_key: str) -> RuleDefinition:
        """Return the rule ``repository_key:rule_key``.

        Raises:
            RuleNotFoundError: If no such rule is stored.
        """

        key = RuleKey(repository=repository_key, rule=rule_key)
        rule = self.select_by_key(session, key)
        if rule is None:
            raise RuleNotFoundError(key)
        return rule

    def insert(self, session: DbSession, rule: RuleDefinition, now: int) -> None:
        """Stage a rule and its parameters."""

        session.insert(
            """
            INSERT INTO rules (
                uuid,
                repository_key,
                rule_key,
                language,
                name,
                severity,
                created_at,
                updated_at
            ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
            """,
            (
                rule.uuid,
                rule.key.repository,
                rule.key.rule,
                rule.language,
                rule.name,
                rule.severity.value,
                now,
                now,
            ),
        )

        for rule_param in rule.params:
            session.insert(
                """
                INSERT INTO rules_parameters (
                    uuid,
                    rule_uuid,
                    name,
                    param_type,
                    default_value,
                    description
                ) VALUES (%s, %s, %s, %s, %s, %s)
                """,
                (
                    rule_param.uuid,
                    rule.uuid,
                    rule_param.name,
                    rule_param.param_type,
                    rule_param.default_value,
                    rule_param.description,
                ),
            )

        logger.debug("Staged rule %s (%d params)", rule.key, len(rule.params))
