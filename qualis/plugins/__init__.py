"""Qualis – Plugin registry package."""

from qualis.plugins.types import Plugin, PluginType
from qualis.plugins.storage import PluginStorage
