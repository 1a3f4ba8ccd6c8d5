"""Tests for the `kasboek tx` commands.

The ledger is replaced by a mock so these tests only cover argument parsing,
exit codes and output.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest
from pytest_mock import MockerFixture
from typer.testing import CliRunner

from kasboek.cli.commands.transactions import app
from kasboek.exceptions import LedgerValidationError, StoreError
from kasboek.models import Transaction


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def ledger(
    mocker: MockerFixture, sample_transactions: list[Transaction]
) -> MagicMock:
    """Patch open_ledger to yield a mock ledger holding the sample data."""
    ledger = MagicMock()
    ledger.transactions = sample_transactions
    ledger.get_account_name.side_effect = lambda number: number or "-"
    open_ledger = mocker.patch("kasboek.cli.commands.transactions.open_ledger")
    open_ledger.return_value.__enter__.return_value = ledger
    return ledger


def _saved(tx: Transaction, is_new: bool) -> Transaction:
    return tx.model_copy(update={"id": "new-id"}) if is_new else tx


class TestListTransactions:
    """Tests for `tx list`."""

    def test_list_all(self, runner: CliRunner, ledger: MagicMock) -> None:
        result = runner.invoke(app, ["list"])

        assert result.exit_code == 0
        assert "4 of 4 matching" in result.output
        assert "-€ 45,20" in result.output
        assert "€ 2.800,00" in result.output

    def test_list_with_filters(self, runner: CliRunner, ledger: MagicMock) -> None:
        result = runner.invoke(app, ["list", "--type", "expense", "-s", "netflix"])

        assert result.exit_code == 0
        assert "NETFLIX.COM" in result.output
        assert "[streaming]" in result.output
        assert "1 of 1 matching" in result.output

    def test_list_limit(self, runner: CliRunner, ledger: MagicMock) -> None:
        result = runner.invoke(app, ["list", "-n", "2"])

        assert result.exit_code == 0
        assert "2 of 4 matching" in result.output

    def test_invalid_type_is_usage_error(
        self, runner: CliRunner, ledger: MagicMock
    ) -> None:
        result = runner.invoke(app, ["list", "--type", "transfer"])

        assert result.exit_code == 2

    def test_store_error_exits_1(self, runner: CliRunner, mocker: MockerFixture) -> None:
        open_ledger = mocker.patch("kasboek.cli.commands.transactions.open_ledger")
        open_ledger.side_effect = StoreError("API not reachable")

        result = runner.invoke(app, ["list"])

        assert result.exit_code == 1


class TestAddAndEdit:
    """Tests for `tx add` and `tx edit`."""

    def test_add(self, runner: CliRunner, ledger: MagicMock) -> None:
        ledger.save_transaction.side_effect = _saved

        result = runner.invoke(
            app,
            [
                "add",
                "Albert Heijn 1234",
                "12.5",
                "--date",
                "2025-03-02",
                "--category",
                "Boodschappen",
                "--tag",
                "zakelijk",
            ],
        )

        assert result.exit_code == 0
        assert "Added transaction new-id" in result.output
        tx, = ledger.save_transaction.call_args.args
        assert ledger.save_transaction.call_args.kwargs == {"is_new": True}
        assert tx.amount == 12.5
        assert tx.type == "expense"
        assert tx.date == "2025-03-02"
        assert tx.tags == ["zakelijk"]

    def test_add_invalid_date(self, runner: CliRunner, ledger: MagicMock) -> None:
        result = runner.invoke(app, ["add", "Test", "10", "--date", "2025-02-30"])

        assert result.exit_code == 1
        ledger.save_transaction.assert_not_called()

    def test_add_validation_error(self, runner: CliRunner, ledger: MagicMock) -> None:
        ledger.save_transaction.side_effect = LedgerValidationError(
            "Amount must be greater than 0"
        )

        result = runner.invoke(app, ["add", "Test", "0"])

        assert result.exit_code == 1

    def test_edit_merges_changes(
        self,
        runner: CliRunner,
        ledger: MagicMock,
        sample_transactions: list[Transaction],
    ) -> None:
        ledger.get_transaction.return_value = sample_transactions[0]
        ledger.save_transaction.side_effect = _saved

        result = runner.invoke(app, ["edit", "t1", "--category", "Vervoer", "--amount", "50"])

        assert result.exit_code == 0
        ledger.get_transaction.assert_called_once_with("t1")
        tx, = ledger.save_transaction.call_args.args
        assert ledger.save_transaction.call_args.kwargs == {"is_new": False}
        assert tx.id == "t1"
        assert tx.category == "Vervoer"
        assert tx.amount == 50
        assert tx.description == "Albert Heijn 1234"
        assert tx.account_number == "NL01BANK0123456789"

    def test_edit_without_changes(self, runner: CliRunner, ledger: MagicMock) -> None:
        result = runner.invoke(app, ["edit", "t1"])

        assert result.exit_code == 1
        ledger.save_transaction.assert_not_called()


class TestDeleteCommands:
    """Tests for the destructive commands and their confirmation prompts."""

    def test_delete_declined(self, runner: CliRunner, ledger: MagicMock) -> None:
        result = runner.invoke(app, ["delete", "t1"], input="n\n")

        assert result.exit_code == 0
        assert "Cancelled" in result.output
        ledger.delete_transaction.assert_not_called()

    def test_delete_confirmed(self, runner: CliRunner, ledger: MagicMock) -> None:
        result = runner.invoke(app, ["delete", "t1"], input="y\n")

        assert result.exit_code == 0
        ledger.delete_transaction.assert_called_once_with("t1")

    def test_delete_all_with_yes(self, runner: CliRunner, ledger: MagicMock) -> None:
        result = runner.invoke(app, ["delete-all", "--yes"])

        assert result.exit_code == 0
        assert "Deleted 4 transaction(s)" in result.output
        ledger.delete_all_transactions.assert_called_once_with()

    def test_bulk_edit(self, runner: CliRunner, ledger: MagicMock) -> None:
        ledger.bulk_edit.return_value = 1

        result = runner.invoke(
            app, ["bulk-edit", "--search", "netflix", "--set-category", "Media", "-y"]
        )

        assert result.exit_code == 0
        assert "Updated 1 transaction(s)" in result.output
        call: Any = ledger.bulk_edit.call_args
        assert call.args[0].search == "netflix"
        assert call.kwargs == {"category": "Media", "description": None}

    def test_bulk_edit_declined(self, runner: CliRunner, ledger: MagicMock) -> None:
        result = runner.invoke(app, ["bulk-edit", "--set-category", "Media"], input="n\n")

        assert result.exit_code == 0
        ledger.bulk_edit.assert_not_called()


class TestExport:
    """Tests for `tx export`."""

    def test_export_to_stdout(self, runner: CliRunner, ledger: MagicMock) -> None:
        ledger.export_filtered_csv.return_value = "Datum;Omschrijving\n2025-03-01;AH"

        result = runner.invoke(app, ["export", "-o", "-", "--category", "Boodschappen"])

        assert result.exit_code == 0
        assert "2025-03-01;AH" in result.output
        assert ledger.export_filtered_csv.call_args.args[0].category == "Boodschappen"

    def test_export_to_file(
        self, runner: CliRunner, ledger: MagicMock, tmp_path: Path
    ) -> None:
        ledger.export_filtered_csv.return_value = "Datum;Omschrijving"
        output = tmp_path / "out" / "tx.csv"

        result = runner.invoke(app, ["export", "--output", str(output)])

        assert result.exit_code == 0
        assert output.read_text(encoding="utf-8") == "Datum;Omschrijving\n"

    def test_export_default_path(
        self,
        runner: CliRunner,
        ledger: MagicMock,
        mocker: MockerFixture,
        tmp_path: Path,
    ) -> None:
        ledger.export_filtered_csv.return_value = "Datum"
        mocker.patch(
            "kasboek.cli.commands.transactions.get_export_path", return_value=tmp_path
        )

        result = runner.invoke(app, ["export"])

        assert result.exit_code == 0
        exported = list(tmp_path.glob("transactions_filtered_*.csv"))
        assert len(exported) == 1
