"""Qualis – Built-in profile definitions.

Plugins declare built-in profiles either programmatically::

    context = BuiltInProfilesContext()
    profile = context.create_profile("Sonar way", "xoo").set_default(True)
    profile.activate_rule("xoo", "x1").override_severity("CRITICAL")
    profile.done()

or through a YAML file read by :func:`load_definitions`::

    profiles:
      - name: Sonar way
        language: xoo
        default: true
        rules:
          - key: "xoo:x1"
            severity: CRITICAL
            params:
              max: "10"
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml

from qualis.core.logging import get_logger
from qualis.qualityprofile.types import BuiltInActiveRule, BuiltInProfile
from qualis.rules.types import RuleKey, Severity


logger = get_logger(__name__)


class DefinitionError(ValueError):
    """Raised when a built-in profile declaration is malformed."""


class NewBuiltInActiveRule:
    """Rule activation being declared."""

    def __init__(self, rule_key: RuleKey) -> None:
        self.rule_key = rule_key
        self._severity: Optional[Severity] = None
        self._params: Dict[str, str] = {}

    def override_severity(self, severity: str | Severity) -> "NewBuiltInActiveRule":
        if isinstance(severity, Severity):
            self._severity = severity
            return self
        try:
            self._severity = Severity.parse(severity)
        except ValueError as exc:
            raise DefinitionError(f"Rule '{self.rule_key}': {exc}") from None
        return self

    def override_param(self, name: str, value: Any) -> "NewBuiltInActiveRule":
        if not name:
            raise DefinitionError(f"Rule '{self.rule_key}': parameter name must not be empty")
        self._params[name] = _param_to_str(value)
        return self

    def build(self) -> BuiltInActiveRule:
        return BuiltInActiveRule(
            rule_key=self.rule_key,
            severity=self._severity,
            params=dict(self._params),
        )


class NewBuiltInProfile:
    """Built-in profile being declared; registered by :meth:`done`."""

    def __init__(self, context: "BuiltInProfilesContext", name: str, language: str) -> None:
        if not name or not name.strip():
            raise DefinitionError("Name of built-in profile must not be empty")
        if not language or not language.strip():
            raise DefinitionError(f"Language of built-in profile '{name}' must not be empty")
        self._context = context
        self.name = name
        self.language = language
        self._is_default = False
        self._active_rules: Dict[RuleKey, NewBuiltInActiveRule] = {}

    def set_default(self, is_default: bool = True) -> "NewBuiltInProfile":
        self._is_default = is_default
        return self

    def activate_rule(self, repository_key: str, rule_key: str) -> NewBuiltInActiveRule:
        key = RuleKey(repository=repository_key, rule=rule_key)
        if key in self._active_rules:
            raise DefinitionError(
                f"The rule '{key}' is already activated in profile '{self.name}' ({self.language})"
            )
        active_rule = NewBuiltInActiveRule(key)
        self._active_rules[key] = active_rule
        return active_rule

    def build(self) -> BuiltInProfile:
        return BuiltInProfile(
            name=self.name,
            language=self.language,
            is_default=self._is_default,
            active_rules=tuple(ar.build() for ar in self._active_rules.values()),
        )

    def done(self) -> BuiltInProfile:
        return self._context._register(self.build())


class BuiltInProfilesContext:
    """Collects the built-in profiles declared by plugins."""

    def __init__(self) -> None:
        self._profiles: Dict[Tuple[str, str], BuiltInProfile] = {}

    def create_profile(self, name: str, language: str) -> NewBuiltInProfile:
        return NewBuiltInProfile(self, name, language)

    def profile(self, language: str, name: str) -> Optional[BuiltInProfile]:
        return self._profiles.get((language, name))

    @property
    def profiles(self) -> List[BuiltInProfile]:
        return list(self._profiles.values())

    def _register(self, profile: BuiltInProfile) -> BuiltInProfile:
        key = (profile.language, profile.name)
        if key in self._profiles:
            raise DefinitionError(
                f"Built-in profile '{profile.name}' is already declared for language '{profile.language}'"
            )
        self._profiles[key] = profile
        return profile


# ============================================================================
# YAML loading
# ============================================================================


def _param_to_str(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _declare(context: BuiltInProfilesContext, raw: Mapping[str, Any], source: str) -> None:
    if not isinstance(raw, Mapping):
        raise DefinitionError(f"{source}: each profile must be a mapping")

    new_profile = context.create_profile(str(raw.get("name") or ""), str(raw.get("language") or ""))
    is_default = raw.get("default", False)
    if not isinstance(is_default, bool):
        raise DefinitionError(f"{source}: 'default' of profile '{new_profile.name}' must be true or false")
    new_profile.set_default(is_default)

    for raw_rule in raw.get("rules") or []:
        if not isinstance(raw_rule, Mapping) or "key" not in raw_rule:
            raise DefinitionError(f"{source}: each rule must be a mapping with a 'key'")
        try:
            key = RuleKey.parse(str(raw_rule["key"]))
        except ValueError as exc:
            raise DefinitionError(f"{source}: {exc}") from None

        active_rule = new_profile.activate_rule(key.repository, key.rule)
        if raw_rule.get("severity") is not None:
            active_rule.override_severity(str(raw_rule["severity"]))
        params = raw_rule.get("params") or {}
        if not isinstance(params, Mapping):
            raise DefinitionError(f"{source}: 'params' of rule '{key}' must be a mapping")
        for name, value in params.items():
            active_rule.override_param(str(name), value)

    new_profile.done()


def load_definitions(path: Path, context: Optional[BuiltInProfilesContext] = None) -> List[BuiltInProfile]:
    """Read built-in profile declarations from a YAML file.

    Args:
        path: YAML file with a top-level ``profiles`` list.
        context: Optional context to add the profiles to, so that several
            files can be checked for duplicate declarations together.

    Returns:
        The profiles declared by this file, in file order.

    Raises:
        DefinitionError: If the file is malformed.
    """

    if context is None:
        context = BuiltInProfilesContext()

    try:
        raw: Any = yaml.safe_load(path.read_text())
    except yaml.YAMLError as exc:
        raise DefinitionError(f"{path}: invalid YAML: {exc}") from exc

    if not isinstance(raw, Mapping) or not isinstance(raw.get("profiles"), list):
        raise DefinitionError(f"{path}: expected a top-level 'profiles' list")

    before = len(context.profiles)
    for raw_profile in raw["profiles"]:
        _declare(context, raw_profile, str(path))

    declared = context.profiles[before:]
    logger.info("Loaded %d built-in profile(s) from %s", len(declared), path)
    return declared
