"""
Qualis: Logging Setup

This module provides centralised logging configuration and helper
functions for obtaining namespaced loggers.

Key responsibilities:
- Configure root logging handlers and formats
- Provide a helper to obtain module-specific loggers

External dependencies:
- logging: Python standard library logging framework

Database tables accessed:
- None (logging only)

Thread safety: Thread-safe (logging module is process-global and
thread-safe under normal usage)

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

import logging
import sys
from typing import Optional

from qualis.core.config import QualisConfig, get_config

# ============================================================================
# Public API
# ============================================================================


def setup_logging(config: Optional[QualisConfig] = None) -> None:
    """Configure application-wide logging.

    Initialises the root logger and the ``qualis`` namespace logger. Logs
    go to stdout, and also to ``config.log_file`` when it is set. It is
    idempotent: calling it multiple times will not attach duplicate
    handlers.

    Args:
        config: Optional configuration object. If omitted, the global
            configuration will be loaded via :func:`get_config`.
    """

    if config is None:
        config = get_config()

    root_logger = logging.getLogger()

    if root_logger.handlers:
        return

    log_level = getattr(logging, config.log_level.upper(), logging.INFO)

    formatter = logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)

    root_logger.setLevel(log_level)
    root_logger.addHandler(console_handler)

    # File output is opt-in through LOG_FILE.
    if config.log_file:
        file_handler = logging.FileHandler(config.log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    qualis_logger = logging.getLogger("qualis")
    qualis_logger.setLevel(log_level)


def get_logger(name: str) -> logging.Logger:
    """Return a namespaced logger for the given module.

    Args:
        name: Module-level ``__name__`` or any descriptive logger name.

    Returns:
        A :class:`logging.Logger` instance under the ``qualis`` namespace.
    """

    setup_logging()
    if name == "qualis" or name.startswith("qualis."):
        return logging.getLogger(name)
    return logging.getLogger(f"qualis.{name}")
