import io
from decimal import Decimal
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from config import ProductionSettings
from errors import DecodeError
from main import app, process_transactions, run
from models import Deposit, Dispute, Withdrawal

runner = CliRunner()

SCENARIO_CSV = (
    "type, client, tx, amount\n"
    "deposit, 1, 1, 1.0\n"
    "deposit, 2, 2, 2.0\n"
    "deposit, 1, 3, 2.0\n"
    "withdrawal, 1, 4, 1.5\n"
    "withdrawal, 2, 5, 3.0\n"
)

SCENARIO_REPORT = (
    "client,available,held,total,locked\n"
    "1,1.5,0,1.5,false\n"
    "2,2,0,2,false\n"
)


@pytest.fixture(autouse=True)
def testing_environment(monkeypatch):
    """Run the CLI with quiet testing settings."""
    monkeypatch.setenv("TX_LEDGER_ENVIRONMENT", "testing")


class TestProcessTransactions:
    """Test feeding records to the engine."""

    def test_counts(self, engine):
        records = [
            Deposit(account=1, tx_id=1, amount=Decimal("1")),
            DecodeError(3, "unknown type"),
            Withdrawal(account=1, tx_id=2, amount=Decimal("5")),
            Dispute(account=1, tx_id=1),
        ]

        summary = process_transactions(engine, records)

        assert summary.processed == 3
        assert summary.decode_failures == 1
        assert summary.execution_failures == 1
        assert summary.accounts_count == 1
        assert summary.duration_seconds >= 0

    @patch("main.logger")
    def test_logging_on_decode_error(self, mock_logger, engine):
        """Test that decode failures are logged and skipped."""
        process_transactions(engine, [DecodeError(2, "bad row")])

        mock_logger.warning.assert_called_once_with("Failed to decode transaction", line=2, reason="bad row")
        assert engine.accounts() == []

    @patch("main.logger")
    def test_logging_on_execution_error(self, mock_logger, engine):
        """Test that rejected transactions are logged with their error code."""
        process_transactions(engine, [Withdrawal(account=1, tx_id=1, amount=Decimal("1"))])

        mock_logger.warning.assert_called_once()
        assert mock_logger.warning.call_args.kwargs["error_code"] == "INSUFFICIENT_FUNDS"
        assert mock_logger.warning.call_args.kwargs["tx_id"] == 1

    @patch("main.logger")
    def test_progress_logging(self, mock_logger, engine):
        """Test that progress is logged every interval."""
        records = [Deposit(account=1, tx_id=tx_id, amount=Decimal("1")) for tx_id in range(10)]

        process_transactions(engine, records, progress_interval=4)

        progress_calls = [
            call for call in mock_logger.info.call_args_list if call.args == ("Processing transactions",)
        ]
        assert [call.kwargs["processed"] for call in progress_calls] == [4, 8]


class TestRun:
    """Test a full run over an in-memory stream."""

    def test_report(self, settings):
        output = io.StringIO()

        summary = run(io.StringIO(SCENARIO_CSV), output, settings)

        assert output.getvalue() == SCENARIO_REPORT
        assert summary.processed == 5
        assert summary.execution_failures == 1

    def test_chargeback_scenario(self, settings):
        content = (
            "type,client,tx,amount\n"
            "deposit,1,100,10.0000\n"
            "dispute,1,100,\n"
            "chargeback,1,100,\n"
            "deposit,1,101,5.0000\n"
        )
        output = io.StringIO()

        summary = run(io.StringIO(content), output, settings)

        assert output.getvalue() == "client,available,held,total,locked\n1,0,0,0,true\n"
        assert summary.execution_failures == 1

    def test_negative_available_scenario(self, settings):
        content = (
            "type,client,tx,amount\n"
            "deposit,1,100,10.0000\n"
            "withdrawal,1,101,10.0000\n"
            "dispute,1,100,\n"
        )
        output = io.StringIO()

        run(io.StringIO(content), output, settings)

        assert output.getvalue() == "client,available,held,total,locked\n1,-10,10,0,false\n"

    def test_bad_rows_are_skipped(self, settings):
        content = (
            "type,client,tx,amount\n"
            "deposit,1,1,3.0\n"
            "refund,1,2,1.0\n"
            "deposit,1,3,not-a-number\n"
            "dispute,1,1,\n"
            "resolve,1,1,\n"
        )
        output = io.StringIO()

        summary = run(io.StringIO(content), output, settings)

        assert output.getvalue() == "client,available,held,total,locked\n1,3,0,3,false\n"
        assert summary.decode_failures == 2
        assert summary.processed == 3

    def test_diagnostics_stay_off_stdout(self, capsys, settings):
        """Test that only the report is written, even before logging is configured."""
        content = (
            "type,client,tx,amount\n"
            "deposit,1,1,3.0\n"
            "dispute,1,1,\n"
            "chargeback,1,1,\n"
            "deposit,1,2,1.0\n"
            "bogus,1,3,1.0\n"
        )
        output = io.StringIO()

        run(io.StringIO(content), output, settings)

        assert output.getvalue() == "client,available,held,total,locked\n1,0,0,0,true\n"
        assert capsys.readouterr().out == ""


class TestCommandLine:
    """Test the command-line entry point."""

    def test_report_on_stdout(self, write_csv):
        path = write_csv("type,client,tx,amount\ndeposit,2,1,2.5\ndeposit,1,2,1\nwithdrawal,2,3,0.25\n")

        result = runner.invoke(app, [str(path)])

        assert result.exit_code == 0
        assert result.stdout == "client,available,held,total,locked\n1,1,0,1,false\n2,2.25,0,2.25,false\n"

    def test_row_failures_do_not_change_exit_code(self, write_csv):
        path = write_csv("type,client,tx,amount\nbogus,1,1,1.0\nwithdrawal,1,2,1.0\n")

        result = runner.invoke(app, [str(path)])

        assert result.exit_code == 0
        assert "1,0,0,0,false" in result.stdout

    @patch("main.configure_logging")
    def test_production_settings_by_default(self, mock_configure_logging, monkeypatch, write_csv):
        """Test that the command runs with production settings when no environment is named."""
        monkeypatch.delenv("TX_LEDGER_ENVIRONMENT", raising=False)
        path = write_csv("type,client,tx,amount\ndeposit,1,1,1\n")

        result = runner.invoke(app, [str(path)])

        assert result.exit_code == 0
        settings = mock_configure_logging.call_args.args[0]
        assert isinstance(settings, ProductionSettings)
        assert settings.log_format == "json"

    def test_missing_input_file(self, tmp_path):
        result = runner.invoke(app, [str(tmp_path / "missing.csv")])

        assert result.exit_code == 1

    def test_missing_argument(self):
        result = runner.invoke(app, [])

        assert result.exit_code != 0
