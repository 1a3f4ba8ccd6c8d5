"""Configuration management commands for kasboek.

This module provides CLI commands for managing user-level configuration:
the default profile and the saved API gateway connection per profile.
"""

import logging
from typing import Annotated

import typer

from kasboek.config import get_current_profile, get_settings, get_storage_backend
from kasboek.utils.user_config import (
    ApiConnection,
    get_api_connection,
    get_default_profile,
    get_user_config_path,
    remove_api_connection,
    reset_user_config,
    save_api_connection,
    set_default_profile,
)

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="config",
    help="User configuration management",
    no_args_is_help=True,
)


def _mask_token(token: str) -> str:
    if len(token) <= 8:
        return "****"
    return f"{token[:4]}...{token[-4:]}"


@app.command("show")
def show_config() -> None:
    """Show current user configuration.

    Displays the default profile, the active profile's storage backend and
    its API connection (token masked).

    Example:
        kasboek config show
    """
    config_path = get_user_config_path()
    default_profile = get_default_profile()
    profile = get_current_profile()

    print("\n📋 Kasboek User Configuration")
    print(f"   Config file: {config_path}")
    print(f"   Exists: {config_path.exists()}")

    if default_profile:
        print(f"\n✅ Default profile: {default_profile}")
    else:
        print("\n⚠️  No default profile set")

    try:
        settings = get_settings()
    except ValueError as e:
        logger.error(f"❌ {e}")
        raise typer.Exit(1) from e

    print(f"\n👤 Active profile: {profile}")
    print(f"   Storage backend: {get_storage_backend(settings)}")
    print(f"   Database: {settings.database_path}")

    connection = get_api_connection(profile)
    if connection:
        print(f"   API URL: {connection.url}")
        print(f"   API user: {connection.username}")
        print(f"   API token: {_mask_token(connection.token)}")
    else:
        print("   API: not configured")

    print()


@app.command("set-api")
def set_api_command(
    url: Annotated[str, typer.Argument(help="API gateway base URL")],
    token: Annotated[str, typer.Argument(help="JWT bearer token")],
    username: Annotated[
        str, typer.Option("--username", "-u", help="User the token belongs to")
    ] = "unknown",
) -> None:
    """Save the API gateway connection for the active profile.

    Once saved, the profile reads and writes through the API gateway instead
    of the local DuckDB file.

    Examples:
        kasboek config set-api https://api.example.com eyJhbGciOi...
        kasboek --profile=alice config set-api https://api.example.com TOKEN -u alice
    """
    profile = get_current_profile()
    try:
        save_api_connection(
            profile, ApiConnection(url=url, token=token, username=username)
        )
    except (OSError, ValueError) as e:
        logger.error(f"❌ Failed to save API connection: {e}")
        raise typer.Exit(1) from e

    print(f"✅ API connection saved for profile: {profile}")
    print("   Commands now use the API gateway (KASBOEK_STORAGE__BACKEND overrides)")


@app.command("clear-api")
def clear_api_command() -> None:
    """Remove the saved API connection for the active profile.

    Example:
        kasboek config clear-api
    """
    profile = get_current_profile()
    if remove_api_connection(profile):
        print(f"✅ API connection removed for profile: {profile}")
        print("   Commands now use the local DuckDB store")
    else:
        print(f"⚠️  No API connection saved for profile: {profile}")


@app.command("get-default-profile")
def get_default_profile_command() -> None:
    """Get the default profile name.

    Example:
        kasboek config get-default-profile
    """
    default_profile = get_default_profile()

    if default_profile:
        print(default_profile)
    else:
        logger.warning("No default profile configured")
        raise typer.Exit(1)


@app.command("set-default-profile")
def set_default_profile_command(
    profile_name: Annotated[
        str,
        typer.Argument(help="Profile name to set as default (e.g., alice, household)"),
    ],
) -> None:
    """Set the default profile name.

    The profile name will be normalized to lowercase with hyphens.

    Examples:
        kasboek config set-default-profile alice
        kasboek config set-default-profile "Samen Thuis"
    """
    try:
        set_default_profile(profile_name)
        normalized = get_default_profile()
        print(f"✅ Default profile set to: {normalized}")
        print(f"   Data location: data/{normalized}/")
    except ValueError as e:
        logger.error(f"Failed to set default profile: {e}")
        raise typer.Exit(1) from e


@app.command("reset")
def reset_config(
    yes: Annotated[
        bool, typer.Option("--yes", "-y", help="Skip the confirmation prompt")
    ] = False,
) -> None:
    """Reset user configuration.

    This deletes the user configuration file, including saved API connections.

    Example:
        kasboek config reset
    """
    if not yes and not typer.confirm(
        "Are you sure you want to reset your configuration?", default=False
    ):
        print("❌ Cancelled")
        raise typer.Exit(0)

    try:
        reset_user_config()
        print("✅ Configuration reset successfully")
    except OSError as e:
        logger.error(f"Failed to reset configuration: {e}")
        raise typer.Exit(1) from e


@app.command("path")
def show_config_path() -> None:
    """Show the path to the user configuration file.

    Example:
        kasboek config path
    """
    print(get_user_config_path())
