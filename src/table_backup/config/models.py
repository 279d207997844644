"""Pydantic models for db.toml configuration."""

from pydantic import BaseModel, Field


# ============================================================================
# Configuration Models
# ============================================================================


class DatabaseProfile(BaseModel):
    """Database connection profile from db.toml."""

    url: str
    description: str = ""
    db_password: str | None = None  # For [YOUR-PASSWORD] placeholder substitution
    provider: str = "postgres"  # Defaults to postgres


class BackupSettings(BaseModel):
    """``[backup]`` section of db.toml."""

    include_blobs: bool = True
    blob_extension: str = ".blob"
    chunk_size: int = Field(default=64 * 1024, gt=0)
    inline_limit: int = Field(default=0, ge=0)
    default_schema: str = "public"
    fetch_size: int = Field(default=1000, gt=0)
    progress_interval: float = Field(default=1.0, ge=0)
    connect_timeout: int = Field(default=10, gt=0)


class DatabaseConfig(BaseModel):
    """Complete database configuration from db.toml."""

    profiles: dict[str, DatabaseProfile] = Field(default_factory=dict)
    backup: BackupSettings = Field(default_factory=BackupSettings)
