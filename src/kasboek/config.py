"""Centralized configuration management for kasboek.

This module provides a Pydantic Settings-based configuration system that
consolidates all application settings with environment variable integration,
type validation, and per-profile caching.
"""

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, DotEnvSettingsSource, SettingsConfigDict

from kasboek.utils.user_config import get_api_connection, normalize_profile_name


class DatabaseConfig(BaseModel):
    """Local document store (DuckDB) settings."""

    model_config = ConfigDict(frozen=True)

    path: Path | None = Field(
        default=None,
        description="Path to DuckDB file (default: data/<profile>/kasboek.duckdb)",
    )

    @field_validator("path")
    @classmethod
    def validate_database_path(cls, v: Path | None) -> Path | None:
        """Ensure database path has correct extension."""
        if v is not None and not str(v).endswith((".db", ".duckdb")):
            raise ValueError("Database path must end with .db or .duckdb")
        return v


class StorageConfig(BaseModel):
    """Which document store backs the ledger."""

    model_config = ConfigDict(frozen=True)

    backend: Literal["local", "api"] | None = Field(
        default=None,
        description=(
            "'local' uses DuckDB, 'api' uses the remote API gateway; "
            "unset picks 'api' when the profile has a saved connection"
        ),
    )


class ApiConfig(BaseModel):
    """API gateway connection settings."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(default="", description="Gateway base URL")
    token: str = Field(default="", description="JWT bearer token")
    username: str = Field(default="unknown", description="Display name only")
    timeout: float = Field(
        default=30.0, gt=0, le=300, description="Request timeout in seconds"
    )

    @field_validator("url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Store the URL without a trailing slash."""
        return v.strip().rstrip("/")

    @property
    def is_configured(self) -> bool:
        """Both URL and token are present."""
        return bool(self.url and self.token)


class DataConfig(BaseModel):
    """Data directory configuration."""

    model_config = ConfigDict(frozen=True)

    base_path: Path = Field(
        default=Path("data"), description="Root directory for per-profile data"
    )
    archive_imports: bool = Field(
        default=True, description="Copy imported CSV files into the raw directory"
    )


class LoggingSettings(BaseModel):
    """Logging configuration settings."""

    model_config = ConfigDict(frozen=True)

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    log_to_file: bool = Field(default=False, description="Enable file logging")
    log_file_path: Path = Field(
        default=Path("logs/kasboek.log"), description="Path to log file"
    )


class KasboekSettings(BaseSettings):
    """Main application settings with environment variable integration.

    Environment variables are loaded with the KASBOEK_ prefix.
    For nested configs, use double underscores: KASBOEK_API__URL

    Profile Support:
    - Loads from .env.{profile} files (e.g., .env.alice, .env.household)
    - Falls back to .env
    """

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
    data: DataConfig = Field(default_factory=DataConfig)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    profile: str = Field(
        default="default",
        description="User profile name (e.g., alice, bob, household)",
    )

    @field_validator("profile")
    @classmethod
    def validate_profile_name(cls, v: str) -> str:
        """Normalize the profile name so it is safe as a directory name."""
        return normalize_profile_name(v)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: Any,
        env_settings: Any,
        dotenv_settings: Any,
        file_secret_settings: Any,
    ) -> tuple[Any, ...]:
        """Load the profile-specific .env file instead of the default one."""
        init_dict = init_settings.init_kwargs if init_settings else {}
        profile = init_dict.get("profile", "default")  # type: ignore[reportUnknownMemberType]

        profile_env_file = Path(f".env.{profile}")
        env_file = str(profile_env_file) if profile_env_file.exists() else ".env"

        custom_dotenv = DotEnvSettingsSource(
            settings_cls,
            env_file=env_file,
            env_file_encoding="utf-8",
        )

        return (
            init_settings,
            env_settings,
            custom_dotenv,
            file_secret_settings,
        )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="KASBOEK_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    @property
    def profile_data_path(self) -> Path:
        """Per-profile data directory."""
        return self.data.base_path / self.profile

    @property
    def database_path(self) -> Path:
        """Resolved DuckDB path for this profile."""
        return self.database.path or self.profile_data_path / "kasboek.duckdb"

    @property
    def raw_data_path(self) -> Path:
        """Where imported bank exports are archived."""
        return self.profile_data_path / "raw"

    @property
    def export_path(self) -> Path:
        """Default directory for CSV exports and backups."""
        return self.profile_data_path / "exports"

    def create_directories(self) -> None:
        """Create necessary directories for the application."""
        directories = [
            self.database_path.parent,
            self.raw_data_path,
            self.export_path,
        ]
        if self.logging.log_to_file:
            directories.append(self.logging.log_file_path.parent)

        for directory in directories:
            directory.mkdir(parents=True, exist_ok=True)


_settings_cache: dict[str, KasboekSettings] = {}
_current_profile: str = "default"


def get_settings(profile: str | None = None) -> KasboekSettings:
    """Get the settings instance for the specified user profile.

    Settings are loaded once per profile and cached.

    Args:
        profile: User profile name (e.g., 'alice'). Defaults to current profile.

    Returns:
        KasboekSettings: The configuration instance for the specified profile

    Raises:
        ValueError: If configuration is invalid
    """
    if profile is None:
        profile = _current_profile
    profile = normalize_profile_name(profile)

    if profile in _settings_cache:
        return _settings_cache[profile]

    try:
        settings = KasboekSettings(profile=profile)
        settings.create_directories()
    except Exception as e:
        raise ValueError(f"Configuration error for profile '{profile}': {e}") from e

    _settings_cache[profile] = settings
    return settings


def set_current_profile(profile: str) -> None:
    """Set the current active user profile (normalized).

    Raises:
        ValueError: If profile name contains no valid characters
    """
    global _current_profile
    _current_profile = normalize_profile_name(profile)


def get_current_profile() -> str:
    """Get the current active user profile."""
    return _current_profile


def clear_settings_cache() -> None:
    """Drop all cached settings so the next access reloads them."""
    _settings_cache.clear()


def reload_settings(profile: str | None = None) -> KasboekSettings:
    """Reload settings from environment variables.

    Args:
        profile: Profile to reload. If None, reloads current profile.

    Returns:
        KasboekSettings: The reloaded configuration instance
    """
    if profile is None:
        profile = _current_profile
    _settings_cache.pop(normalize_profile_name(profile), None)
    return get_settings(profile)


def get_database_path() -> Path:
    """Get the configured DuckDB path for the current profile."""
    return get_settings().database_path


def get_raw_data_path() -> Path:
    """Get the raw import archive path for the current profile."""
    return get_settings().raw_data_path


def get_export_path() -> Path:
    """Get the export directory for the current profile."""
    return get_settings().export_path


def get_api_config(settings: KasboekSettings | None = None) -> ApiConfig:
    """Get the API connection for a profile (default: the current one).

    Environment settings win when they are complete; otherwise the connection
    saved with ``kasboek config set-api`` is used.
    """
    settings = settings or get_settings()
    if settings.api.is_configured:
        return settings.api

    saved = get_api_connection(settings.profile)
    if saved is not None:
        return ApiConfig(
            url=saved.url,
            token=saved.token,
            username=saved.username,
            timeout=settings.api.timeout,
        )
    return settings.api


def get_storage_backend(settings: KasboekSettings | None = None) -> Literal["local", "api"]:
    """Resolve which document store a profile uses (default: the current one).

    ``KASBOEK_STORAGE__BACKEND`` wins when set. Otherwise a connection saved
    with ``kasboek config set-api`` selects the API gateway, and removing it
    with ``kasboek config clear-api`` falls back to the local DuckDB file.
    """
    settings = settings or get_settings()
    if settings.storage.backend is not None:
        return settings.storage.backend
    if get_api_connection(settings.profile) is not None:
        return "api"
    return "local"
