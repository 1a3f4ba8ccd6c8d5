"""Tests for the `kasboek backup` commands."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest
from pytest_mock import MockerFixture
from typer.testing import CliRunner

from kasboek.cli.commands.backup import app
from kasboek.exceptions import ExportError
from kasboek.models import Transaction

MODULE = "kasboek.cli.commands.backup"


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def ledger(
    mocker: MockerFixture, sample_transactions: list[Transaction]
) -> MagicMock:
    ledger = MagicMock()
    ledger.transactions = sample_transactions
    open_ledger = mocker.patch(f"{MODULE}.open_ledger")
    open_ledger.return_value.__enter__.return_value = ledger
    return ledger


class TestBackupExport:
    """Tests for `backup export`."""

    def test_export_to_file(
        self, runner: CliRunner, ledger: MagicMock, tmp_path: Path
    ) -> None:
        ledger.export_backup.return_value = '[{"id": "t1"}]'
        output = tmp_path / "backups" / "kasboek.json"

        result = runner.invoke(app, ["export", "-o", str(output)])

        assert result.exit_code == 0
        assert "Backed up 4 transaction(s)" in result.output
        assert output.read_text(encoding="utf-8") == '[{"id": "t1"}]'

    def test_export_default_location(
        self,
        runner: CliRunner,
        ledger: MagicMock,
        mocker: MockerFixture,
        tmp_path: Path,
    ) -> None:
        ledger.export_backup.return_value = "[]"
        mocker.patch(f"{MODULE}.get_export_path", return_value=tmp_path)

        result = runner.invoke(app, ["export"])

        assert result.exit_code == 0
        assert len(list(tmp_path.glob("backup_*.json"))) == 1


class TestBackupRestore:
    """Tests for `backup restore`."""

    @pytest.fixture
    def backup_file(self, tmp_path: Path) -> Path:
        path = tmp_path / "backup.json"
        path.write_text('[{"date": "2025-03-01", "amount": 5}]', encoding="utf-8")
        return path

    def test_restore(
        self, runner: CliRunner, ledger: MagicMock, backup_file: Path
    ) -> None:
        ledger.restore_backup.return_value = 1

        result = runner.invoke(app, ["restore", str(backup_file), "--yes"])

        assert result.exit_code == 0
        ledger.restore_backup.assert_called_once_with(
            '[{"date": "2025-03-01", "amount": 5}]'
        )
        assert "Restored 1 transaction(s)" in result.output

    def test_restore_declined(
        self, runner: CliRunner, ledger: MagicMock, backup_file: Path
    ) -> None:
        result = runner.invoke(app, ["restore", str(backup_file)], input="n\n")

        assert result.exit_code == 0
        assert "Cancelled" in result.output
        ledger.restore_backup.assert_not_called()

    def test_restore_invalid_backup(
        self, runner: CliRunner, ledger: MagicMock, backup_file: Path
    ) -> None:
        ledger.restore_backup.side_effect = ExportError("Backup is not valid JSON")

        result = runner.invoke(app, ["restore", str(backup_file), "-y"])

        assert result.exit_code == 1

    def test_restore_missing_file(
        self, runner: CliRunner, ledger: MagicMock, tmp_path: Path
    ) -> None:
        result = runner.invoke(app, ["restore", str(tmp_path / "missing.json"), "-y"])

        assert result.exit_code == 1
        ledger.restore_backup.assert_not_called()


class TestDemoData:
    """Tests for `backup demo`."""

    def test_demo_with_seed(self, runner: CliRunner, ledger: MagicMock) -> None:
        ledger.load_dummy_data.return_value = 80

        result = runner.invoke(app, ["demo", "--seed", "7", "--yes"])

        assert result.exit_code == 0
        ledger.load_dummy_data.assert_called_once_with(seed=7)
        assert "80 transactions" in result.output

    def test_demo_declined(self, runner: CliRunner, ledger: MagicMock) -> None:
        result = runner.invoke(app, ["demo"], input="n\n")

        assert result.exit_code == 0
        ledger.load_dummy_data.assert_not_called()
