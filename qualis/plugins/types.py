"""Qualis – Plugin registry types."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class PluginType(str, Enum):
    """Origin of an installed plugin.

    Stored in the ``plugins.type`` column (VARCHAR(10)).
    """

    BUNDLED = "BUNDLED"
    EXTERNAL = "EXTERNAL"


@dataclass(frozen=True)
class Plugin:
    """Row of the ``plugins`` table.

    Attributes:
        uuid: Row identifier.
        kee: Plugin key, unique.
        base_plugin_key: Key of the plugin this one extends, if any.
        file_hash: Hash of the installed plugin archive.
        type: Plugin origin. ``None`` for rows written before the column
            existed.
        created_at: Creation time (ms since epoch).
        updated_at: Last update time (ms since epoch).
    """

    uuid: str
    kee: str
    base_plugin_key: Optional[str]
    file_hash: str
    type: Optional[PluginType]
    created_at: int
    updated_at: int
