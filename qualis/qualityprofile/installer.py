"""Qualis – Built-in quality profile installer.

This module implements the procedure that persists a built-in profile
declared by a plugin: the profile row (found or created), its active rules
and parameter values, one change-log entry per activation, and the
language's default-profile designation.

The installer only stages writes. The caller owns both sessions and
commits them after :meth:`BuiltInProfileInstaller.install` returns.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, List, Set, Tuple

from qualis.core.clock import Clock
from qualis.core.database import DbSession
from qualis.core.ids import UuidFactory
from qualis.core.logging import get_logger
from qualis.qualityprofile.definition import DefinitionError
from qualis.qualityprofile.indexer import ActiveRuleIndexer
from qualis.qualityprofile.storage import QualityProfileStorage
from qualis.qualityprofile.types import (
    ActiveRule,
    ActiveRuleParam,
    BuiltInActiveRule,
    BuiltInProfile,
    ChangeType,
    ProfileChange,
    QualityProfile,
)
from qualis.rules.storage import RuleStorage
from qualis.rules.types import RuleDefinition, RuleKey
from qualis.rules.validation import InvalidParamValueError, validate_param_value


logger = get_logger(__name__)


@dataclass
class BuiltInProfileInstaller:
    """Installs built-in profiles into the caller's sessions.

    Attributes:
        storage: Quality profile tables.
        rules: Rule catalog used to resolve activations.
        clock: Timestamp source; must not go backwards during a call.
        uuid_factory: Source of new row identifiers.
        indexer: Notified of the affected rules once writes are staged.
    """

    storage: QualityProfileStorage
    rules: RuleStorage
    clock: Clock
    uuid_factory: UuidFactory
    indexer: ActiveRuleIndexer = field(default_factory=ActiveRuleIndexer)

    def install(
        self,
        session: DbSession,
        batch_session: DbSession,
        builtin: BuiltInProfile,
    ) -> QualityProfile:
        """Stage ``builtin`` and return the stored profile.

        Profile, default flag and change-log rows go through ``session``;
        active rules and their parameters through ``batch_session``.

        Raises:
            DefinitionError: If the same rule is activated more than once.
            RuleNotFoundError: If an activation names an unknown rule.
            InvalidParamValueError: If a parameter override names an
                unknown parameter or has an invalid value.
            StoreError: If the database rejects a statement.
        """

        # Everything that can be rejected is checked before the first write.
        resolved = self._resolve_rules(session, builtin)

        profile = self._find_or_create_profile(session, builtin)

        if builtin.is_default and not profile.is_default:
            profile = self._flag_as_default_if_absent(session, profile)

        for activation, rule in resolved:
            active_rule, params = self._insert_active_rule(batch_session, profile, rule, activation)
            self._insert_change(session, profile, active_rule, params)

        if resolved:
            self.indexer.notify({rule.uuid for _, rule in resolved})

        logger.info(
            "BuiltInProfileInstaller.install: profile=%r language=%s kee=%s active_rules=%d default=%s",
            profile.name,
            profile.language,
            profile.kee,
            len(resolved),
            profile.is_default,
        )

        return profile

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _resolve_rules(
        self,
        session: DbSession,
        builtin: BuiltInProfile,
    ) -> List[Tuple[BuiltInActiveRule, RuleDefinition]]:
        resolved: List[Tuple[BuiltInActiveRule, RuleDefinition]] = []
        seen: Set[RuleKey] = set()
        for activation in builtin.active_rules:
            if activation.rule_key in seen:
                raise DefinitionError(
                    f"The rule '{activation.rule_key}' is activated more than once in profile "
                    f"'{builtin.name}' ({builtin.language})"
                )
            seen.add(activation.rule_key)
            rule = self.rules.resolve(session, activation.rule_key.repository, activation.rule_key.rule)
            for name, value in activation.params.items():
                rule_param = rule.param(name)
                if rule_param is None:
                    raise InvalidParamValueError(f"Rule '{rule.key}' has no parameter '{name}'")
                validate_param_value(rule_param.param_type, value, param_name=name)
            resolved.append((activation, rule))
        return resolved

    def _find_or_create_profile(self, session: DbSession, builtin: BuiltInProfile) -> QualityProfile:
        existing = self.storage.select_by_name_and_language(session, builtin.name, builtin.language)
        if existing is not None:
            logger.debug(
                "Reusing profile %r (%s) kee=%s",
                existing.name,
                existing.language,
                existing.kee,
            )
            return existing

        now = self.clock.now()
        profile = QualityProfile(
            kee=self.uuid_factory.create(),
            rules_profile_uuid=self.uuid_factory.create(),
            name=builtin.name,
            language=builtin.language,
            parent_kee=None,
            is_built_in=True,
            is_default=False,
            rules_updated_at=now,
            user_updated_at=None,
            last_used=None,
        )
        self.storage.insert_profile(session, profile, now)
        return profile

    def _flag_as_default_if_absent(self, session: DbSession, profile: QualityProfile) -> QualityProfile:
        current = self.storage.select_default(session, profile.language)
        if current is not None:
            logger.info(
                "Keeping %r as default profile of %s; built-in %r is not made default",
                current.name,
                profile.language,
                profile.name,
            )
            return profile

        if self.storage.set_default_if_absent(session, profile.language, profile.kee, self.clock.now()):
            return replace(profile, is_default=True)
        return profile

    def _insert_active_rule(
        self,
        batch_session: DbSession,
        profile: QualityProfile,
        rule: RuleDefinition,
        activation: BuiltInActiveRule,
    ) -> Tuple[ActiveRule, List[ActiveRuleParam]]:
        now = self.clock.now()
        active_rule = ActiveRule(
            uuid=self.uuid_factory.create(),
            profile_uuid=profile.rules_profile_uuid,
            rule_uuid=rule.uuid,
            severity=activation.severity or rule.severity,
            inheritance=None,
            overrides=False,
            created_at=now,
            updated_at=now,
        )
        self.storage.insert_active_rule(batch_session, active_rule)

        # Names were checked against the rule by _resolve_rules.
        rule_params = {p.name: p for p in rule.params}
        params: List[ActiveRuleParam] = []
        for name, value in activation.params.items():
            param = ActiveRuleParam(
                uuid=self.uuid_factory.create(),
                active_rule_uuid=active_rule.uuid,
                rules_parameter_uuid=rule_params[name].uuid,
                name=name,
                value=value,
            )
            self.storage.insert_active_rule_param(batch_session, param)
            params.append(param)

        return active_rule, params

    def _insert_change(
        self,
        session: DbSession,
        profile: QualityProfile,
        active_rule: ActiveRule,
        params: List[ActiveRuleParam],
    ) -> ProfileChange:
        data: Dict[str, str] = {
            "ruleUuid": active_rule.rule_uuid,
            "severity": active_rule.severity.value,
        }
        for param in params:
            data[f"param_{param.name}"] = param.value

        change = ProfileChange(
            uuid=self.uuid_factory.create(),
            rules_profile_uuid=profile.rules_profile_uuid,
            change_type=ChangeType.ACTIVATED,
            user_uuid=None,
            created_at=self.clock.now(),
            data=data,
        )
        self.storage.insert_change(session, change)
        return change
