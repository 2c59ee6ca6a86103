"""Qualis – Built-in profile registration.

Registers every built-in profile declared by the installed plugins. Each
profile is installed and committed in its own pair of sessions, so the
profiles registered before a failure stay registered.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence

from qualis.core.database import DatabaseManager
from qualis.core.logging import get_logger
from qualis.qualityprofile.installer import BuiltInProfileInstaller
from qualis.qualityprofile.storage import QualityProfileStorage
from qualis.qualityprofile.types import BuiltInProfile, QualityProfile


logger = get_logger(__name__)


@dataclass
class RegistrationResult:
    """Outcome of a registration run."""

    installed: List[QualityProfile] = field(default_factory=list)
    skipped: List[BuiltInProfile] = field(default_factory=list)


@dataclass
class BuiltInProfileRegistrar:
    """Installs the built-in profiles that are not stored yet.

    Profiles that already exist are left untouched; updating the rule set
    of an existing built-in profile is not handled here.
    """

    db_manager: DatabaseManager
    installer: BuiltInProfileInstaller
    storage: QualityProfileStorage

    def register(self, profiles: Sequence[BuiltInProfile]) -> RegistrationResult:
        """Install each profile that is missing from the database.

        The interactive session is committed before the batch session.
        Both are rolled back by :meth:`DatabaseManager.open_session` if
        installing a profile fails, and the error is re-raised.
        """

        result = RegistrationResult()

        for builtin in profiles:
            with self.db_manager.open_session() as session, self.db_manager.open_session(
                batch=True
            ) as batch_session:
                existing = self.storage.select_by_name_and_language(session, builtin.name, builtin.language)
                if existing is not None:
                    logger.info(
                        "Built-in profile %r (%s) already registered, skipping",
                        builtin.name,
                        builtin.language,
                    )
                    result.skipped.append(builtin)
                    continue

                try:
                    profile = self.installer.install(session, batch_session, builtin)
                    session.commit()
                except Exception:
                    logger.error(
                        "Failed to register built-in profile %r (%s)",
                        builtin.name,
                        builtin.language,
                    )
                    raise

                try:
                    batch_session.commit()
                except Exception:
                    # The profile row and its change log are already committed.
                    logger.error(
                        "Built-in profile %r (%s) kee=%s was committed without its active rules; "
                        "it will be skipped by later registrations until repaired",
                        profile.name,
                        profile.language,
                        profile.kee,
                    )
                    raise

            result.installed.append(profile)
            logger.info("Registered built-in profile %r (%s)", profile.name, profile.language)

        return result
