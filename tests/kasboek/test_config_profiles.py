# ruff: noqa: S101,S106
"""Tests for the profile-based configuration system."""

from __future__ import annotations

from pathlib import Path

import pytest
from conftest import temp_profile
from pydantic import ValidationError
from pytest_mock import MockerFixture

from kasboek.config import (
    ApiConfig,
    DatabaseConfig,
    KasboekSettings,
    get_api_config,
    get_current_profile,
    get_database_path,
    get_export_path,
    get_raw_data_path,
    get_settings,
    get_storage_backend,
    reload_settings,
    set_current_profile,
)
from kasboek.utils.user_config import ApiConnection, save_api_connection


@pytest.fixture
def isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run in an empty directory without KASBOEK_ environment variables."""
    monkeypatch.chdir(tmp_path)
    for name in (
        "KASBOEK_STORAGE__BACKEND",
        "KASBOEK_API__URL",
        "KASBOEK_API__TOKEN",
        "KASBOEK_DATABASE__PATH",
        "KASBOEK_DATA__BASE_PATH",
    ):
        monkeypatch.delenv(name, raising=False)
    return tmp_path


@pytest.fixture
def user_config_path(tmp_path: Path, mocker: MockerFixture) -> Path:
    path = tmp_path / "home" / ".kasboek" / "config.yaml"
    mocker.patch("kasboek.utils.user_config.get_user_config_path", return_value=path)
    return path


class TestProfileConfiguration:
    """Profile selection and per-profile settings."""

    def test_default_profile_is_test(self) -> None:
        """The autouse fixture puts every test on the 'test' profile."""
        assert get_current_profile() == "test"

    def test_valid_profile_names_work_and_normalize(self) -> None:
        test_cases = [
            ("alice", "alice"),
            ("alice-personal", "alice-personal"),
            ("bob_work", "bob-work"),
            ("John Smith", "john-smith"),
            ("ALICE", "alice"),
            ("invalid/profile", "invalidprofile"),
        ]

        for input_name, expected in test_cases:
            with temp_profile(input_name):
                set_current_profile(input_name)
                assert get_current_profile() == expected

    def test_invalid_profile_raises(self) -> None:
        with pytest.raises(ValueError, match="no valid characters"):
            set_current_profile("@@@")

    def test_settings_are_cached_per_profile(self, isolated_cwd: Path) -> None:
        set_current_profile("alice")
        alice_1 = get_settings()
        alice_2 = get_settings()

        set_current_profile("bob")
        bob = get_settings()

        assert alice_1 is alice_2
        assert alice_1.profile == "alice"
        assert bob.profile == "bob"
        assert get_settings("alice") is alice_1

    def test_reload_settings_clears_cache(self, isolated_cwd: Path) -> None:
        settings_1 = get_settings("dev")
        settings_2 = reload_settings("dev")

        assert settings_1 is not settings_2

    def test_profile_aware_paths(self, isolated_cwd: Path) -> None:
        settings = get_settings("Alice Work")

        assert settings.profile == "alice-work"
        assert settings.database_path == Path("data/alice-work/kasboek.duckdb")
        assert settings.raw_data_path == Path("data/alice-work/raw")
        assert settings.export_path == Path("data/alice-work/exports")
        assert (isolated_cwd / "data" / "alice-work" / "raw").is_dir()
        assert (isolated_cwd / "data" / "alice-work" / "exports").is_dir()

    def test_path_helpers_follow_current_profile(self, isolated_cwd: Path) -> None:
        set_current_profile("bob")

        assert get_database_path() == Path("data/bob/kasboek.duckdb")
        assert get_raw_data_path() == Path("data/bob/raw")
        assert get_export_path() == Path("data/bob/exports")

    def test_environment_overrides(
        self, isolated_cwd: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("KASBOEK_STORAGE__BACKEND", "api")
        monkeypatch.setenv("KASBOEK_DATABASE__PATH", "custom/kb.duckdb")

        settings = KasboekSettings(profile="dev")

        assert settings.storage.backend == "api"
        assert settings.database_path == Path("custom/kb.duckdb")

    def test_profile_env_file_is_used(self, isolated_cwd: Path) -> None:
        (isolated_cwd / ".env.alice").write_text("KASBOEK_API__URL=http://alice:8080/\n")
        (isolated_cwd / ".env").write_text("KASBOEK_API__URL=http://default:8080\n")

        alice = KasboekSettings(profile="alice")
        bob = KasboekSettings(profile="bob")

        assert alice.api.url == "http://alice:8080"
        assert bob.api.url == "http://default:8080"

    def test_invalid_database_extension(self) -> None:
        with pytest.raises(ValidationError):
            DatabaseConfig(path=Path("data/kasboek.sqlite"))

    def test_settings_are_frozen(self, isolated_cwd: Path) -> None:
        settings = get_settings("dev")
        with pytest.raises(ValidationError):
            settings.profile = "other"  # type: ignore[misc]


class TestApiConfig:
    """Resolution of the API gateway connection."""

    def test_is_configured(self) -> None:
        assert not ApiConfig().is_configured
        assert not ApiConfig(url="http://x").is_configured
        assert ApiConfig(url="http://x/", token="t").url == "http://x"
        assert ApiConfig(url="http://x", token="t").is_configured

    def test_environment_wins_over_saved_connection(
        self,
        isolated_cwd: Path,
        user_config_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        save_api_connection("dev", ApiConnection(url="http://saved", token="saved"))
        monkeypatch.setenv("KASBOEK_API__URL", "http://env")
        monkeypatch.setenv("KASBOEK_API__TOKEN", "env-token")

        config = get_api_config(KasboekSettings(profile="dev"))

        assert config.url == "http://env"
        assert config.token == "env-token"

    def test_falls_back_to_saved_connection(
        self, isolated_cwd: Path, user_config_path: Path
    ) -> None:
        save_api_connection(
            "dev", ApiConnection(url="http://saved/", token="saved", username="alice")
        )

        config = get_api_config(KasboekSettings(profile="dev"))

        assert config.url == "http://saved"
        assert config.token == "saved"
        assert config.username == "alice"

    def test_unconfigured_when_nothing_saved(
        self, isolated_cwd: Path, user_config_path: Path
    ) -> None:
        assert not get_api_config(KasboekSettings(profile="dev")).is_configured


class TestStorageBackend:
    """Resolution of the document store backend."""

    def test_local_without_saved_connection(
        self, isolated_cwd: Path, user_config_path: Path
    ) -> None:
        settings = KasboekSettings(profile="dev")

        assert settings.storage.backend is None
        assert get_storage_backend(settings) == "local"

    def test_saved_connection_selects_api(
        self, isolated_cwd: Path, user_config_path: Path
    ) -> None:
        save_api_connection("dev", ApiConnection(url="http://gw", token="t"))

        assert get_storage_backend(KasboekSettings(profile="dev")) == "api"
        assert get_storage_backend(KasboekSettings(profile="other")) == "local"

    def test_environment_backend_wins(
        self,
        isolated_cwd: Path,
        user_config_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        save_api_connection("dev", ApiConnection(url="http://gw", token="t"))
        monkeypatch.setenv("KASBOEK_STORAGE__BACKEND", "local")

        assert get_storage_backend(KasboekSettings(profile="dev")) == "local"
