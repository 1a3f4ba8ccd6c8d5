"""User configuration management for kasboek.

This module manages user-level configuration stored in ~/.kasboek/config.yaml:
the default profile and, per profile, the saved API gateway connection
(URL, JWT token and display name).
"""

import logging
import re
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)


class ApiConnection(BaseModel):
    """A saved API gateway connection."""

    url: str = Field(..., description="Gateway base URL, e.g. http://server:8080")
    token: str = Field(..., description="JWT bearer token")
    username: str = Field(default="unknown", description="Display name only")

    @field_validator("url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Store the URL without a trailing slash."""
        return v.strip().rstrip("/")


class UserConfig(BaseModel):
    """User-level configuration stored in ~/.kasboek/config.yaml."""

    default_profile: str | None = Field(
        default=None,
        description="Profile used when --profile is not given",
    )
    connections: dict[str, ApiConnection] = Field(
        default_factory=dict,
        description="Saved API connections keyed by profile name",
    )

    @field_validator("default_profile")
    @classmethod
    def validate_default_profile(cls, v: str | None) -> str | None:
        """Validate and normalize profile name."""
        if v is None:
            return None
        return normalize_profile_name(v)


def get_user_config_path() -> Path:
    """Get path to user config file.

    Returns:
        Path: ~/.kasboek/config.yaml
    """
    return Path.home() / ".kasboek" / "config.yaml"


def normalize_profile_name(name: str) -> str:
    """Normalize profile name to lowercase with hyphens.

    Args:
        name: Raw profile name (e.g., "John Smith", "Alice_Work", "BOB")

    Returns:
        str: Normalized profile name (e.g., "john-smith", "alice-work", "bob")

    Raises:
        ValueError: If name is empty or contains only invalid characters

    Examples:
        >>> normalize_profile_name("John Smith")
        'john-smith'
        >>> normalize_profile_name("Alice_Work")
        'alice-work'
    """
    if not name or not name.strip():
        raise ValueError("Profile name cannot be empty")

    normalized = name.lower()
    normalized = normalized.replace(" ", "-").replace("_", "-")
    normalized = re.sub(r"[^a-z0-9-]", "", normalized)
    normalized = re.sub(r"-+", "-", normalized)
    normalized = normalized.strip("-")

    if not normalized:
        raise ValueError(
            f"Profile name '{name}' contains no valid characters. "
            "Profile names must contain letters or numbers."
        )

    return normalized


def load_user_config() -> UserConfig:
    """Load user configuration from ~/.kasboek/config.yaml.

    Returns:
        UserConfig: User configuration object

    Note:
        Returns default UserConfig if file doesn't exist or cannot be read.
    """
    config_path = get_user_config_path()

    if not config_path.exists():
        logger.debug(f"User config file not found: {config_path}")
        return UserConfig()

    try:
        with open(config_path) as f:
            raw_data = yaml.safe_load(f)
            data = raw_data if isinstance(raw_data, dict) else {}
            return UserConfig(**data)
    except Exception as e:
        logger.warning(f"Failed to load user config from {config_path}: {e}")
        return UserConfig()


def save_user_config(config: UserConfig) -> None:
    """Save user configuration to ~/.kasboek/config.yaml.

    The file holds bearer tokens, so it is written with owner-only permissions.

    Args:
        config: User configuration object to save

    Raises:
        OSError: If unable to write config file
    """
    config_path = get_user_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(config_path, "w") as f:
            data = config.model_dump(exclude_none=True)
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
        config_path.chmod(0o600)
        logger.info(f"Saved user config to {config_path}")
    except Exception as e:
        logger.error(f"Failed to save user config to {config_path}: {e}")
        raise


def get_default_profile() -> str | None:
    """Get the default profile name from user config.

    Returns:
        str | None: Default profile name, or None if not set
    """
    return load_user_config().default_profile


def set_default_profile(profile_name: str) -> None:
    """Set the default profile name in user config.

    Args:
        profile_name: Profile name to set as default (will be normalized)

    Raises:
        ValueError: If profile name is invalid
    """
    normalized = normalize_profile_name(profile_name)
    config = load_user_config()
    config.default_profile = normalized
    save_user_config(config)
    logger.info(f"Set default profile to: {normalized}")


def get_api_connection(profile: str) -> ApiConnection | None:
    """Get the saved API connection for a profile, if any."""
    return load_user_config().connections.get(normalize_profile_name(profile))


def save_api_connection(profile: str, connection: ApiConnection) -> None:
    """Save (or replace) the API connection for a profile."""
    normalized = normalize_profile_name(profile)
    config = load_user_config()
    config.connections[normalized] = connection
    save_user_config(config)
    logger.info(f"Saved API connection for profile '{normalized}': {connection.url}")


def remove_api_connection(profile: str) -> bool:
    """Forget the saved API connection for a profile.

    Returns:
        bool: True if a connection was removed
    """
    normalized = normalize_profile_name(profile)
    config = load_user_config()
    if normalized not in config.connections:
        return False
    del config.connections[normalized]
    save_user_config(config)
    return True


def reset_user_config() -> bool:
    """Reset user configuration by deleting the config file.

    Returns:
        bool: True if a config file was deleted
    """
    config_path = get_user_config_path()

    if config_path.exists():
        config_path.unlink()
        logger.info(f"Deleted user config: {config_path}")
        return True
    return False
