"""Qualis – Rule catalog types.

This module defines the in-memory representation of rule definitions as
stored in the ``rules`` and ``rules_parameters`` tables.

Key responsibilities:
- Define the fixed severity scale shared by rules and active rules.
- Define rule keys (``repository:rule``) and parameter descriptions.

Database tables accessed:
- None directly. Rules are read via :mod:`qualis.rules.storage`.
"""

from __future__ import annotations

# ============================================================================
# Imports
# ============================================================================

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

# ============================================================================
# Enums
# ============================================================================


class Severity(str, Enum):
    """Severity scale of rules, lowest first."""

    INFO = "INFO"
    MINOR = "MINOR"
    MAJOR = "MAJOR"
    CRITICAL = "CRITICAL"
    BLOCKER = "BLOCKER"

    @classmethod
    def parse(cls, value: str) -> "Severity":
        """Return the severity named ``value`` (case-insensitive).

        Raises:
            ValueError: If ``value`` is not a known severity.
        """

        try:
            return cls(value.strip().upper())
        except ValueError:
            allowed = ", ".join(s.value for s in cls)
            raise ValueError(f"Unknown severity {value!r}, expected one of: {allowed}") from None


# ============================================================================
# Core dataclasses
# ============================================================================


@dataclass(frozen=True)
class RuleKey:
    """Identity of a rule as declared by a plugin.

    Attributes:
        repository: Key of the rule repository (e.g. ``"xoo"``).
        rule: Key of the rule within its repository (e.g. ``"x1"``).
    """

    repository: str
    rule: str

    @classmethod
    def parse(cls, value: str) -> "RuleKey":
        """Parse a ``repository:rule`` string.

        Raises:
            ValueError: If ``value`` has no repository or rule part.
        """

        repository, sep, rule = value.partition(":")
        if not sep or not repository or not rule:
            raise ValueError(f"Invalid rule key {value!r}, expected 'repository:rule'")
        return cls(repository=repository, rule=rule)

    def __str__(self) -> str:
        return f"{self.repository}:{self.rule}"


@dataclass(frozen=True)
class RuleParam:
    """Parameter declared by a rule.

    Attributes:
        uuid: Row identifier in ``rules_parameters``.
        name: Parameter name, unique within its rule.
        param_type: Type descriptor, e.g. ``"INTEGER"`` or
            ``'SINGLE_SELECT_LIST,values="a,b"'``; validated by
            :func:`qualis.rules.validation.validate_param_value`.
        default_value: Value applied when an activation does not override
            the parameter.
        description: Optional human-readable description.
    """

    uuid: str
    name: str
    param_type: str
    default_value: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class RuleDefinition:
    """Rule as stored in the catalog.

    Attributes:
        uuid: Row identifier in ``rules``; referenced by active rules.
        key: Repository/rule key declared by the plugin.
        language: Language the rule applies to.
        name: Display name.
        severity: Default severity used when an activation does not
            override it.
        params: Declared parameters, in declaration order.
    """

    uuid: str
    key: RuleKey
    language: str
    name: str
    severity: Severity
    params: Tuple[RuleParam, ...] = field(default_factory=tuple)

    def param(self, name: str) -> Optional[RuleParam]:
        """Return the declared parameter called ``name``, if any."""

        for rule_param in self.params:
            if rule_param.name == name:
                return rule_param
        return None
