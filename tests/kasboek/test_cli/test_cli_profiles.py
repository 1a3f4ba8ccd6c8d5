"""Tests for CLI profile handling.

These tests cover the global --profile option: parsing, normalization,
the KASBOEK_PROFILE environment variable and the saved default profile.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest
from pytest_mock import MockerFixture
from typer.testing import CliRunner

from kasboek.cli.main import app
from kasboek.config import get_current_profile

runner = CliRunner()


class TestCLIProfileHandling:
    """Test suite for CLI profile handling."""

    @pytest.fixture(autouse=True)
    def quiet_cli(self, mocker: MockerFixture, tmp_path: Path) -> MagicMock:
        """Skip logging setup and keep `config path` away from the real home."""
        mocker.patch(
            "kasboek.cli.commands.config.get_user_config_path",
            return_value=tmp_path / "config.yaml",
        )
        return mocker.patch("kasboek.cli.main.setup_logging")

    @pytest.fixture
    def no_default_profile(self, mocker: MockerFixture) -> MagicMock:
        return mocker.patch("kasboek.cli.main.get_default_profile", return_value=None)

    def test_default_profile_from_config(self, mocker: MockerFixture) -> None:
        """Without a flag the saved default profile is used."""
        mocker.patch("kasboek.cli.main.get_default_profile", return_value="household")

        result = runner.invoke(app, ["config", "path"])

        assert result.exit_code == 0
        assert get_current_profile() == "household"

    def test_falls_back_to_default(self, no_default_profile: MagicMock) -> None:
        result = runner.invoke(app, ["config", "path"])

        assert result.exit_code == 0
        assert get_current_profile() == "default"

    def test_explicit_profile(self, no_default_profile: MagicMock) -> None:
        result = runner.invoke(app, ["--profile=alice", "config", "path"])

        assert result.exit_code == 0
        assert get_current_profile() == "alice"

    def test_short_profile_flag(self, no_default_profile: MagicMock) -> None:
        result = runner.invoke(app, ["-p", "bob", "config", "path"])

        assert result.exit_code == 0
        assert get_current_profile() == "bob"

    def test_profile_name_gets_normalized(self, no_default_profile: MagicMock) -> None:
        result = runner.invoke(app, ["--profile=Samen Thuis", "config", "path"])

        assert result.exit_code == 0
        assert get_current_profile() == "samen-thuis"

    def test_invalid_profile_is_usage_error(self, no_default_profile: MagicMock) -> None:
        result = runner.invoke(app, ["--profile=@@@", "config", "path"])

        assert result.exit_code == 2
        assert get_current_profile() == "test"

    def test_profile_environment_variable(self, no_default_profile: MagicMock) -> None:
        result = runner.invoke(app, ["config", "path"], env={"KASBOEK_PROFILE": "alice"})

        assert result.exit_code == 0
        assert get_current_profile() == "alice"

    def test_cli_flag_overrides_environment_variable(
        self, no_default_profile: MagicMock
    ) -> None:
        result = runner.invoke(
            app, ["--profile=bob", "config", "path"], env={"KASBOEK_PROFILE": "alice"}
        )

        assert result.exit_code == 0
        assert get_current_profile() == "bob"

    def test_verbose_flag_is_passed_to_logging(
        self, quiet_cli: MagicMock, no_default_profile: MagicMock
    ) -> None:
        result = runner.invoke(app, ["-v", "config", "path"])

        assert result.exit_code == 0
        quiet_cli.assert_called_once_with(cli_mode=True, verbose=True)
