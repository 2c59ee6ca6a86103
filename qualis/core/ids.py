"""
Qualis: ID Generation Utilities

This module contains helpers for generating the opaque identifiers used as
primary keys throughout the system (profile keys, rules-profile uuids,
active rules, change records, index queue items).

Key responsibilities:
- Generate UUID-based identifiers
- Provide injectable identifier factories so that services never call a
  module-level generator directly
- Provide a deterministic sequence factory for tests and fixtures

External dependencies:
- uuid: Standard library UUID generation

Database tables accessed:
- None (pure utility functions)

Thread safety: ``generate_uuid`` and ``RandomUuidFactory`` are stateless.
``SequenceUuidFactory`` guards its counter with a lock.

Author: Qualis Team
Created: 2026-10-18
Last Modified: 2026-10-18
Status: Development
Version: v0.1.0
"""

# ============================================================================
# Imports
# ============================================================================

from __future__ import annotations

import threading
import uuid
from typing import Protocol

# ============================================================================
# Public API
# ============================================================================


def generate_uuid() -> str:
    """Generate a random UUIDv4 string.

    Returns:
        A UUID string in standard 8-4-4-4-12 hexadecimal format.
    """

    return str(uuid.uuid4())


class UuidFactory(Protocol):
    """Source of new opaque unique identifiers."""

    def create(self) -> str:  # pragma: no cover - interface
        ...


class RandomUuidFactory:
    """Factory backed by :func:`generate_uuid`."""

    def create(self) -> str:
        return generate_uuid()


class SequenceUuidFactory:
    """Factory returning ``"1"``, ``"2"``, ... in call order.

    Identifiers are unique within one factory instance only, which is
    enough for fixtures and unit tests that need predictable keys.
    """

    def __init__(self, start: int = 1) -> None:
        self._next = start
        self._lock = threading.Lock()

    def create(self) -> str:
        with self._lock:
            value = self._next
            self._next += 1
        return str(value)
