"""Qualis – Plugin registry storage.

This module provides a small abstraction around the ``plugins`` table,
which records the plugins installed on the server and, since revision
0005, whether each one is bundled or externally installed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from qualis.core.database import DbSession
from qualis.core.logging import get_logger
from qualis.plugins.types import Plugin, PluginType


logger = get_logger(__name__)


def _row_to_plugin(row) -> Plugin:  # type: ignore[no-untyped-def]
    uuid, kee, base_plugin_key, file_hash, plugin_type, created_at, updated_at = row
    return Plugin(
        uuid=uuid,
        kee=kee,
        base_plugin_key=base_plugin_key,
        file_hash=file_hash,
        type=PluginType(plugin_type) if plugin_type else None,
        created_at=int(created_at),
        updated_at=int(updated_at),
    )


@dataclass
class PluginStorage:
    """Persistence helper for the plugin registry."""

    def insert(self, session: DbSession, plugin: Plugin) -> None:
        """Stage a new plugin row."""

        sql = """
            INSERT INTO plugins (
                uuid,
                kee,
                base_plugin_key,
                file_hash,
                type,
                created_at,
                updated_at
            ) VALUES (%s, %s, %s, %s, %s, %s, %s)
        """

        session.insert(
            sql,
            (
                plugin.uuid,
                plugin.kee,
                plugin.base_plugin_key,
                plugin.file_hash,
                plugin.type.value if plugin.type else None,
                plugin.created_at,
                plugin.updated_at,
            ),
        )

    def update(self, session: DbSession, plugin: Plugin) -> None:
        """Update the mutable columns of ``plugin``.

        Runs immediately, after any buffered inserts of a batch session.
        """

        sql = """
            UPDATE plugins
            SET base_plugin_key = %s,
                file_hash = %s,
                type = %s,
                updated_at = %s
            WHERE uuid = %s
        """

        session.execute(
            sql,
            (
                plugin.base_plugin_key,
                plugin.file_hash,
                plugin.type.value if plugin.type else None,
                plugin.updated_at,
                plugin.uuid,
            ),
        )

    def select_by_key(self, session: DbSession, kee: str) -> Optional[Plugin]:
        """Load the plugin with key ``kee``, if installed."""

        sql = """
            SELECT uuid, kee, base_plugin_key, file_hash, type, created_at, updated_at
            FROM plugins
            WHERE kee = %s
            LIMIT 1
        """

        row = session.fetchone(sql, (kee,))
        return _row_to_plugin(row) if row is not None else None

    def select_all(self, session: DbSession) -> List[Plugin]:
        """Load all installed plugins ordered by key."""

        sql = """
            SELECT uuid, kee, base_plugin_key, file_hash, type, created_at, updated_at
            FROM plugins
            ORDER BY kee
        """

        return [_row_to_plugin(row) for row in session.fetchall(sql)]
