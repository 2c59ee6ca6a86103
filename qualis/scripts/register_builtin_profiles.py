"""Register built-in quality profiles declared in YAML files.

This script reads one or more built-in profile definition files, checks
them for duplicate declarations, and installs every profile that is not
yet stored in the database. Profiles that already exist are skipped.

Example::

    python -m qualis.scripts.register_builtin_profiles \
        --definitions configs/qualityprofiles/xoo_builtin.yaml

With ``--dry-run`` the definitions are only parsed and listed, which is
handy for validating a plugin's files without touching the database.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import List, Optional, Sequence

from qualis.core.clock import SystemClock
from qualis.core.config import get_config
from qualis.core.database import DatabaseManager
from qualis.core.ids import RandomUuidFactory
from qualis.core.logging import get_logger
from qualis.qualityprofile import (
    ActiveRuleIndexer,
    BuiltInProfile,
    BuiltInProfileInstaller,
    BuiltInProfileRegistrar,
    BuiltInProfilesContext,
    DefinitionError,
    QualityProfileStorage,
    QueueActiveRuleIndexer,
    load_definitions,
)
from qualis.rules import RuleStorage


logger = get_logger(__name__)


def _load_all(paths: Sequence[Path]) -> List[BuiltInProfile]:
    context = BuiltInProfilesContext()
    for path in paths:
        if not path.exists():
            raise FileNotFoundError(f"Definition file not found: {path}")
        load_definitions(path, context=context)
    return context.profiles


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        description="Install built-in quality profiles declared in YAML definition files.",
    )

    parser.add_argument(
        "--definitions",
        type=Path,
        nargs="+",
        required=True,
        help="One or more YAML files with a top-level 'profiles' list",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Parse and list the declared profiles without writing to the database",
    )

    args = parser.parse_args(argv)

    try:
        profiles = _load_all(args.definitions)
    except (FileNotFoundError, DefinitionError) as exc:
        parser.error(str(exc))

    if args.dry_run:
        print("language,name,default,active_rules")
        for profile in profiles:
            print(f"{profile.language},{profile.name},{str(profile.is_default).lower()},{len(profile.active_rules)}")
        return

    config = get_config()
    db_manager = DatabaseManager(config)

    clock = SystemClock()
    uuid_factory = RandomUuidFactory()
    indexer: ActiveRuleIndexer
    if config.indexer_enabled:
        indexer = QueueActiveRuleIndexer(db_manager=db_manager, clock=clock, uuid_factory=uuid_factory)
    else:
        indexer = ActiveRuleIndexer()

    storage = QualityProfileStorage()
    installer = BuiltInProfileInstaller(
        storage=storage,
        rules=RuleStorage(),
        clock=clock,
        uuid_factory=uuid_factory,
        indexer=indexer,
    )
    registrar = BuiltInProfileRegistrar(db_manager=db_manager, installer=installer, storage=storage)

    try:
        result = registrar.register(profiles)
    finally:
        db_manager.close_all()

    logger.info(
        "Built-in profile registration complete: %d installed, %d skipped",
        len(result.installed),
        len(result.skipped),
    )


if __name__ == "__main__":  # pragma: no cover - manual CLI entry
    main()
