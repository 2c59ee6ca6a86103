"""
Qualis: Configuration Management

This module provides centralised configuration management for Qualis.
It loads configuration from environment variables (optionally via a .env
file), with strongly typed access via Pydantic BaseSettings.

Key responsibilities:
- Load and validate configuration from environment variables
- Provide typed configuration objects for the database and logging
- Expose a cached global configuration accessor for convenience

External dependencies:
- pydantic: Data validation and settings management
- pydantic-settings: Environment variable integration for settings
- python-dotenv: Optional .env loading for local development

Database tables accessed:
- None (configuration only)

Thread safety: Thread-safe (configuration is immutable after initial load)

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

from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# ============================================================================
# Data Models
# ============================================================================


class DatabaseConfig(BaseModel):
    """Database connection configuration.

    Describes the single PostgreSQL database holding rules, quality
    profiles and the plugin registry.

    Attributes:
        host: Database host name or IP address.
        port: TCP port for the PostgreSQL instance.
        name: Database name.
        user: Database user for connections.
        password: Password for the database user.
        pool_size: Maximum number of connections in the pool.
        batch_size: Number of buffered rows a batch session writes per
            round trip.
    """

    host: str
    port: int
    name: str
    user: str
    password: str
    pool_size: int = 5
    batch_size: int = 250


class QualisConfig(BaseSettings):
    """Main Qualis configuration loaded from environment variables.

    Environment variables use the following mapping by default:

    - DB_* for the database connection and pooling
    - LOG_LEVEL / LOG_FILE for logging (an empty LOG_FILE logs to the
      console only)
    - ENVIRONMENT for environment name (development/staging/production)
    - INDEXER_ENABLED to switch active-rule index notifications on/off
    """

    model_config = SettingsConfigDict(
        env_prefix="",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    # Database
    db_host: str = Field(default="localhost", alias="DB_HOST")
    db_port: int = Field(default=5432, alias="DB_PORT")
    db_name: str = Field(default="qualis", alias="DB_NAME")
    db_user: str = Field(default="qualis", alias="DB_USER")
    db_password: str = Field(default="", alias="DB_PASSWORD")
    db_pool_size: int = Field(default=5, alias="DB_POOL_SIZE")
    db_batch_size: int = Field(default=250, alias="DB_BATCH_SIZE")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_file: str = Field(default="", alias="LOG_FILE")

    # Environment
    environment: str = Field(default="development", alias="ENVIRONMENT")

    # Index notifications
    indexer_enabled: bool = Field(default=True, alias="INDEXER_ENABLED")

    @property
    def database(self) -> DatabaseConfig:
        """Return the database configuration."""

        return DatabaseConfig(
            host=self.db_host,
            port=self.db_port,
            name=self.db_name,
            user=self.db_user,
            password=self.db_password,
            pool_size=self.db_pool_size,
            batch_size=self.db_batch_size,
        )


# ============================================================================
# Public API
# ============================================================================


def load_config(env_file: Optional[Path] = None) -> QualisConfig:
    """Load Qualis configuration.

    For local development this function will attempt to load a `.env` file
    from the current working directory if one is present. Environment
    variables always take precedence over values from `.env`.

    Args:
        env_file: Optional explicit path to a `.env` file. Values from an
            explicit file override the current environment.

    Returns:
        A fully populated :class:`QualisConfig` instance.

    Raises:
        FileNotFoundError: If an explicit ``env_file`` is provided but
            does not exist.
    """

    if env_file is not None:
        if not env_file.exists():
            msg = f"Environment file not found: {env_file}"
            raise FileNotFoundError(msg)
        load_dotenv(env_file, override=True)
    else:
        default_env = Path(".env")
        if default_env.exists():
            load_dotenv(default_env)

    return QualisConfig()  # type: ignore[call-arg]


_global_config: Optional[QualisConfig] = None


def get_config() -> QualisConfig:
    """Return the global Qualis configuration singleton.

    The configuration is loaded on first access and cached for subsequent
    calls.

    Returns:
        A cached :class:`QualisConfig` instance.
    """

    global _global_config
    if _global_config is None:
        _global_config = load_config()
    return _global_config
