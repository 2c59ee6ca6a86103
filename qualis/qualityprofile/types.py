"""Qualis – Quality profile types.

This module defines the in-memory representation of quality profiles,
their active rules, parameter values and change-log entries, together with
the declaration of a built-in profile as shipped by a plugin.

Database tables accessed:
- None directly. Rows are persisted via
  :mod:`qualis.qualityprofile.storage`.

Thread safety: Dataclasses are immutable value objects; this module is
stateless.
"""

from __future__ import annotations

# ============================================================================
# Imports
# ============================================================================

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from qualis.rules.types import RuleKey, Severity

# ============================================================================
# Enums
# ============================================================================


class ActiveRuleInheritance(str, Enum):
    """How an active rule relates to the same rule in a parent profile."""

    INHERITED = "INHERITED"
    OVERRIDES = "OVERRIDES"


class ChangeType(str, Enum):
    """Kind of change recorded in ``qprofile_changes``."""

    ACTIVATED = "ACTIVATED"
    DEACTIVATED = "DEACTIVATED"
    UPDATED = "UPDATED"


# ============================================================================
# Stored entities
# ============================================================================


@dataclass(frozen=True)
class QualityProfile:
    """Quality profile row.

    ``kee`` identifies the profile itself while ``rules_profile_uuid``
    groups its rule activations; the two are always different so that a
    profile can be re-created while its activations keep their grouping.

    Attributes:
        kee: Profile key.
        rules_profile_uuid: Grouping key of the profile's active rules.
        name: Profile name, unique per language.
        language: Language the profile applies to.
        parent_kee: Key of the parent profile, if the profile inherits.
        is_built_in: Whether the profile was declared by a plugin.
        is_default: Whether the profile is the language's default.
        rules_updated_at: Last change of the rule set (ms since epoch).
        user_updated_at: Last change made by a user, if any.
        last_used: Last time an analysis used the profile, if ever.
    """

    kee: str
    rules_profile_uuid: str
    name: str
    language: str
    parent_kee: Optional[str]
    is_built_in: bool
    is_default: bool
    rules_updated_at: int
    user_updated_at: Optional[int] = None
    last_used: Optional[int] = None


@dataclass(frozen=True)
class ActiveRule:
    """Rule activated within a profile.

    The pair (``profile_uuid``, ``rule_uuid``) is unique, where
    ``profile_uuid`` is the profile's rules-profile uuid.
    """

    uuid: str
    profile_uuid: str
    rule_uuid: str
    severity: Severity
    inheritance: Optional[ActiveRuleInheritance]
    overrides: bool
    created_at: int
    updated_at: int


@dataclass(frozen=True)
class ActiveRuleParam:
    """Parameter value of an active rule."""

    uuid: str
    active_rule_uuid: str
    rules_parameter_uuid: str
    name: str
    value: str


@dataclass(frozen=True)
class ProfileChange:
    """Change-log entry of a profile's rule set.

    Attributes:
        uuid: Row identifier.
        rules_profile_uuid: Grouping key of the affected profile.
        change_type: Kind of change.
        user_uuid: Acting user, ``None`` for system-driven changes.
        created_at: Time of the change (ms since epoch).
        data: Free-form payload; activations carry ``ruleUuid``,
            ``severity`` and one ``param_<name>`` entry per parameter.
    """

    uuid: str
    rules_profile_uuid: str
    change_type: ChangeType
    user_uuid: Optional[str]
    created_at: int
    data: Dict[str, Any] = field(default_factory=dict)


# ============================================================================
# Built-in declarations
# ============================================================================


@dataclass(frozen=True)
class BuiltInActiveRule:
    """Rule activation declared by a built-in profile.

    Attributes:
        rule_key: Rule to activate.
        severity: Severity override; ``None`` keeps the rule's default.
        params: Parameter overrides by name.
    """

    rule_key: RuleKey
    severity: Optional[Severity] = None
    params: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class BuiltInProfile:
    """Built-in profile declaration.

    Attributes:
        name: Profile name.
        language: Profile language.
        is_default: Whether the plugin asks for the profile to become the
            language's default. An existing default always takes
            precedence.
        active_rules: Rule activations, in declaration order.
    """

    name: str
    language: str
    is_default: bool = False
    active_rules: Tuple[BuiltInActiveRule, ...] = ()
