"""Database client factory.

Supports two configuration modes:
1. Profile mode (db.toml): named profiles, selected by ``--profile`` or the
   ``{env_prefix}DB_PROFILE`` env var
2. URL mode (``{env_prefix}DATABASE_URL`` env var): a single connection URL
   when no profile is selected

Usage:
    from table_backup.factory import get_client

    async with get_client(env_prefix="APP_") as client:
        report = await import_backup(client, "backups/shop.json")
"""

import logging
import os
from pathlib import Path
from urllib.parse import quote

from table_backup.adapters.postgres import AsyncPostgresClient
from table_backup.config.loader import load_db_config
from table_backup.config.models import BackupSettings, DatabaseConfig, DatabaseProfile

logger = logging.getLogger(__name__)


class ProfileNotFoundError(Exception):
    """Raised when no database profile or URL is configured."""

    pass


# ============================================================================
# Profile Resolution
# ============================================================================


def get_active_profile_name(env_prefix: str = "") -> str:
    """Get active profile name from the environment.

    Reads ``{env_prefix}DB_PROFILE``.

    Args:
        env_prefix: Prefix for environment variable lookup.

    Returns:
        Profile name

    Raises:
        ProfileNotFoundError: If the env var is not set
    """
    env_var = f"{env_prefix}DB_PROFILE"
    env_profile = os.environ.get(env_var)
    if env_profile:
        return env_profile

    raise ProfileNotFoundError(
        "No database profile configured.\n"
        f"Run: {env_var}=<name> table-backup ... or pass --profile <name>"
    )


def get_profile(config: DatabaseConfig, profile_name: str) -> DatabaseProfile:
    """Look up ``profile_name`` in ``config``.

    Raises:
        ProfileNotFoundError: If the profile is not defined
    """
    if profile_name not in config.profiles:
        available = ", ".join(config.profiles.keys()) or "(none)"
        raise ProfileNotFoundError(
            f"Profile '{profile_name}' not found in db.toml.\n"
            f"Available profiles: {available}"
        )
    return config.profiles[profile_name]


def resolve_url(profile: DatabaseProfile) -> str:
    """Resolve profile URL with password substitution.

    Args:
        profile: Database profile from config

    Returns:
        Connection URL with password substituted
    """
    url = profile.url
    if profile.db_password and "[YOUR-PASSWORD]" in url:
        url = url.replace("[YOUR-PASSWORD]", quote(profile.db_password, safe=""))
    return url


def resolve_database_url(
    profile_name: str | None = None,
    env_prefix: str = "",
    config_path: Path | None = None,
) -> tuple[str | None, str]:
    """Pick the connection URL for this run.

    Priority:
    1. ``profile_name`` argument
    2. ``{env_prefix}DB_PROFILE`` env var
    3. ``{env_prefix}DATABASE_URL`` env var, used as-is
    4. Raise ProfileNotFoundError

    Returns:
        Tuple of (profile name or ``None`` in URL mode, connection URL)

    Raises:
        ProfileNotFoundError: If nothing is configured, or the selected
            profile is not in db.toml
        FileNotFoundError: If a profile is selected but db.toml is missing
    """
    if profile_name is None:
        try:
            profile_name = get_active_profile_name(env_prefix=env_prefix)
        except ProfileNotFoundError:
            database_url = os.environ.get(f"{env_prefix}DATABASE_URL")
            if database_url:
                logger.debug("Using %sDATABASE_URL", env_prefix)
                return None, database_url
            raise

    config = load_db_config(config_path)
    profile = get_profile(config, profile_name)
    logger.debug("Using profile %s", profile_name)
    return profile_name, resolve_url(profile)


# ============================================================================
# Client Factory
# ============================================================================


def get_client(
    profile_name: str | None = None,
    env_prefix: str = "",
    config_path: Path | None = None,
    settings: BackupSettings | None = None,
) -> AsyncPostgresClient:
    """Create a (not yet connected) client for the active configuration.

    Use the result as an async context manager to open the connection.

    Args:
        profile_name: Explicit profile name from db.toml.
        env_prefix: Prefix for environment variable lookup.
        config_path: Path to db.toml (default: ``./db.toml``).
        settings: Backup settings supplying connect timeout and fetch size.

    Raises:
        ProfileNotFoundError: If no profile or URL is configured

    Example:
        >>> client = get_client(profile_name="local")
        >>> async with client:
        ...     tables = await client.list_tables()
    """
    settings = settings or BackupSettings()
    _, url = resolve_database_url(profile_name, env_prefix, config_path)
    return AsyncPostgresClient(
        database_url=url,
        connect_timeout=settings.connect_timeout,
        fetch_size=settings.fetch_size,
    )
