"""Tests for the ledgerkit command line."""

import pytest

from ledgerkit.cli.main import cli

FUTURE = "2099-01-10"


@pytest.fixture
def run(cli_runner, temp_db):
    """Invoke the CLI against the temporary database."""

    def _run(*args, **kwargs):
        return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, *args], **kwargs)

    return _run


@pytest.fixture
def with_account(run):
    result = run("account", "create", "Checking", "--opening-balance", "1.000,00", "--category", "Checking")
    assert result.exit_code == 0, result.output
    return result


def _add_expense(run, *extra):
    return run(
        "entry", "add",
        "--type", "expense",
        "--account", "Checking",
        "--amount", "100,00",
        "--date", FUTURE,
        "--description", "Internet",
        *extra,
    )


class TestAccountCommands:
    """Tests for account commands."""

    def test_create_account(self, with_account):
        assert "Created account 'Checking' (ID: 1)" in with_account.output

    def test_create_duplicate(self, run, with_account):
        result = run("account", "create", "Checking")
        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_create_bad_amount(self, run):
        result = run("account", "create", "Checking", "--opening-balance", "lots")
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_list_empty(self, run):
        result = run("account", "list")
        assert result.exit_code == 0
        assert "No accounts found" in result.output

    def test_list(self, run, with_account):
        result = run("account", "list")
        assert result.exit_code == 0
        assert "Checking" in result.output
        assert "1,000.00" in result.output
        assert "checking" in result.output

    def test_correct_balance(self, run, with_account):
        result = run("account", "correct", "Checking", "250", "--yes")
        assert result.exit_code == 0
        assert "BRL 250.00" in result.output

    def test_correct_balance_declined(self, run, with_account):
        result = run("account", "correct", "Checking", "250", input="n\n")
        assert "Correction cancelled" in result.output
        assert "1,000.00" in run("account", "list").output

    def test_deactivate_and_activate(self, run, with_account):
        assert "Deactivated account 'Checking'" in run("account", "deactivate", "1").output
        assert "(inactive)" in run("account", "list").output
        assert "Activated account 'Checking'" in run("account", "activate", "Checking").output

    def test_unknown_account(self, run):
        result = run("account", "deactivate", "Nope")
        assert result.exit_code == 1
        assert "not found" in result.output


class TestEntryCommands:
    """Tests for entry commands."""

    def test_add_entry(self, run, with_account):
        result = _add_expense(run)
        assert result.exit_code == 0, result.output
        assert "Created entry 1 (pending)" in result.output

    def test_add_paid_entry(self, run, with_account):
        result = _add_expense(run, "--paid")
        assert "Created entry 1 (paid)" in result.output
        assert "900.00" in run("account", "list").output

    def test_add_installment_plan(self, run, with_account):
        result = _add_expense(run, "--installments", "3")
        assert result.exit_code == 0, result.output
        assert "Split into 3 installments" in result.output

        listed = run("entry", "list")
        assert listed.output.count("Internet") == 3
        assert run("entry", "list", "--with-plans").output.count("Internet") == 4

    def test_add_invalid_amount(self, run, with_account):
        result = _add_expense(run, "--amount", "abc")
        assert result.exit_code == 1
        assert "Invalid amount format" in result.output

    def test_add_unknown_account(self, run):
        result = _add_expense(run)
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_add_transfer_without_counter_account(self, run, with_account):
        result = run("entry", "add", "--type", "transfer", "--account", "Checking", "--amount", "10", "--date", FUTURE)
        assert result.exit_code == 1
        assert "counter account" in result.output

    def test_list_empty(self, run, with_account):
        assert "No entries found" in run("entry", "list").output

    def test_list_status_filter(self, run, with_account):
        _add_expense(run)
        assert "Internet" in run("entry", "list", "--status", "open").output
        assert "No entries found" in run("entry", "list", "--status", "settled").output

        result = run("entry", "list", "--status", "archived")
        assert result.exit_code == 1
        assert "Unknown status filter" in result.output

    def test_show(self, run, with_account):
        _add_expense(run, "--installments", "2")
        result = run("entry", "show", "1")
        assert result.exit_code == 0
        assert "Installments: 0/2 paid" in result.output
        assert "-> entry 2" in result.output

    def test_show_missing(self, run, with_account):
        result = run("entry", "show", "42")
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_pay(self, run, with_account):
        _add_expense(run)
        result = run("entry", "pay", "1", "--date", FUTURE)
        assert result.exit_code == 0, result.output
        assert f"Paid installment 1 of entry 1 on {FUTURE}" in result.output

        again = run("entry", "pay", "1")
        assert again.exit_code == 1
        assert "already paid" in again.output

    def test_cancel(self, run, with_account):
        _add_expense(run)
        assert "Cancelled entry 1" in run("entry", "cancel", "1").output
        assert "cancelled" in run("entry", "list").output

    def test_clone(self, run, with_account):
        _add_expense(run)
        result = run("entry", "clone", "1", "--date", "2099-02-10", "--reference", "NF-2")
        assert result.exit_code == 0, result.output
        assert "Cloned entry 1 into entry 2" in result.output

    def test_delete(self, run, with_account):
        _add_expense(run, "--paid")
        result = run("entry", "delete", "1", "--yes")
        assert "Deleted entry 1" in result.output
        assert "1,000.00" in run("account", "list").output

    def test_delete_declined(self, run, with_account):
        _add_expense(run)
        result = run("entry", "delete", "1", input="n\n")
        assert "Deletion cancelled" in result.output
        assert "Internet" in run("entry", "list").output


class TestBalanceCommands:
    """Tests for the balance summary command."""

    def test_summary(self, run, with_account):
        _add_expense(run)
        result = run("balance", "summary")
        assert result.exit_code == 0, result.output
        assert "Checking" in result.output
        assert "900.00" in result.output
        assert "History:" in result.output
        assert "Categories: checking" in result.output

    def test_summary_with_alert(self, run):
        run("account", "create", "Card", "--opening-balance", "-600", "--credit-limit", "500")
        result = run("balance", "summary")
        assert "Alerts:" in result.output
        assert "below the configured limit" in result.output

    def test_summary_no_match(self, run, with_account):
        result = run("balance", "summary", "--category", "savings")
        assert "No accounts match the filters" in result.output


def test_help_does_not_touch_database(cli_runner, tmp_path):
    result = cli_runner.invoke(cli, ["--db-path", str(tmp_path / "none.db"), "--help"])
    assert result.exit_code == 0
    assert "entry" in result.output
    assert not (tmp_path / "none.db").exists()
