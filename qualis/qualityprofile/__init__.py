"""Qualis – Quality profile package.

This package contains the quality profile types and storage, the
built-in profile declaration API, the installer that persists built-in
profiles, and the registration service that drives it.
"""

from qualis.qualityprofile.types import (
    ActiveRule,
    ActiveRuleInheritance,
    ActiveRuleParam,
    BuiltInActiveRule,
    BuiltInProfile,
    ChangeType,
    ProfileChange,
    QualityProfile,
)
from qualis.qualityprofile.storage import QualityProfileStorage
from qualis.qualityprofile.definition import (
    BuiltInProfilesContext,
    DefinitionError,
    NewBuiltInActiveRule,
    NewBuiltInProfile,
    load_definitions,
)
from qualis.qualityprofile.indexer import ActiveRuleIndexer, QueueActiveRuleIndexer
from qualis.qualityprofile.installer import BuiltInProfileInstaller
from qualis.qualityprofile.registration import BuiltInProfileRegistrar, RegistrationResult
