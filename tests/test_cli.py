"""Tests for the command line interface."""

import json
from datetime import datetime
from decimal import Decimal

import pytest

from conftest import make_raw
from ledgerkit.cli.main import cli
from ledgerkit.domain.entities import AccountType, TransferDirection
from ledgerkit.integrations.base import ChainDataSource, NativeBalance


def invoke(cli_runner, temp_db, *args, **kwargs):
    return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, *args], **kwargs)


class TestCompanyAndAccountCommands:
    """Tests for company, account and wallet commands."""

    def test_company_create_and_list(self, cli_runner, temp_db):
        """Test creating and listing companies."""
        result = invoke(cli_runner, temp_db, "company", "create", "Acme", "--legal-name", "Acme Holdings Ltd")

        assert result.exit_code == 0
        assert "Created company 'Acme' (ID: 1)" in result.output

        listed = invoke(cli_runner, temp_db, "company", "list")
        assert "Acme" in listed.output
        assert "Legal: Acme Holdings Ltd" in listed.output

    def test_company_list_empty(self, cli_runner, temp_db):
        """Test listing with no companies."""
        result = invoke(cli_runner, temp_db, "company", "list")

        assert result.exit_code == 0
        assert "No companies found." in result.output

    def test_account_create_list_rename(self, cli_runner, temp_db, sample_company):
        """Test the bank account lifecycle."""
        created = invoke(
            cli_runner, temp_db, "account", "create", "Chase", "--company", "1", "--currency", "usd", "--name", "Main"
        )
        assert created.exit_code == 0
        assert "Created bank account 'Main' (ID: 1)" in created.output

        renamed = invoke(cli_runner, temp_db, "account", "rename", "Main", "Payroll")
        assert renamed.exit_code == 0

        listed = invoke(cli_runner, temp_db, "account", "list")
        assert "Payroll" in listed.output
        assert "USD" in listed.output

    def test_account_create_unknown_company(self, cli_runner, temp_db):
        """Test the error path for a missing company."""
        result = invoke(cli_runner, temp_db, "account", "create", "Chase", "--company", "5", "--currency", "USD")

        assert result.exit_code == 1
        assert "Error: Company 5 not found" in result.output

    def test_deactivate_hides_account(self, cli_runner, temp_db, sample_bank_account):
        """Test that deactivated accounts need --all to be listed."""
        invoke(cli_runner, temp_db, "account", "deactivate", "Operating")

        assert "No accounts found." in invoke(cli_runner, temp_db, "account", "list").output
        assert "inactive" in invoke(cli_runner, temp_db, "account", "list", "--all").output

    def test_wallet_create_and_list(self, cli_runner, temp_db, sample_company):
        """Test creating a multi-currency wallet."""
        result = invoke(
            cli_runner,
            temp_db,
            "wallet",
            "create",
            "Treasury",
            "--company",
            "1",
            "--currency",
            "ETH",
            "--address",
            "0xabc",
            "--blockchain",
            "ethereum",
            "--currencies",
            "ETH,USDT",
        )

        assert result.exit_code == 0
        assert "Created wallet 'Treasury' (ID: 1)" in result.output
        listed = invoke(cli_runner, temp_db, "wallet", "list")
        assert "ETH,USDT" in listed.output
        assert "ethereum:0xabc" in listed.output


class TestInitialBalanceCommands:
    """Tests for initial-balance commands."""

    def test_set_show_and_conflict(self, cli_runner, temp_db, sample_bank_account):
        """Test setting, showing and the overwrite requirement."""
        result = invoke(cli_runner, temp_db, "initial-balance", "set", "Operating", "1,000.50", "--notes", "Opening")
        assert result.exit_code == 0
        assert "Initial balance for bank 1: 1,000.50 USD" in result.output

        shown = invoke(cli_runner, temp_db, "initial-balance", "show", "1")
        assert "Amount: 1,000.50 USD" in shown.output
        assert "Notes: Opening" in shown.output

        conflict = invoke(cli_runner, temp_db, "initial-balance", "set", "1", "5")
        assert conflict.exit_code == 1
        assert "Use overwrite" in conflict.output

        replaced = invoke(cli_runner, temp_db, "initial-balance", "set", "1", "(5)", "--overwrite")
        assert replaced.exit_code == 0
        assert "-5.00 USD" in replaced.output

    def test_wallet_balance_and_delete(self, cli_runner, temp_db, sample_wallet):
        """Test wallet initial balances and deletion."""
        invoke(cli_runner, temp_db, "initial-balance", "set", "Treasury", "2.5", "--type", "wallet", "--currency", "usdt")

        listed = invoke(cli_runner, temp_db, "initial-balance", "list")
        assert "wallet" in listed.output
        assert "USDT" in listed.output

        deleted = invoke(cli_runner, temp_db, "initial-balance", "delete", "Treasury", "--type", "wallet")
        assert deleted.exit_code == 0
        assert "No initial balances found." in invoke(cli_runner, temp_db, "initial-balance", "list").output

    def test_invalid_amount(self, cli_runner, temp_db, sample_bank_account):
        """Test that non-finite amounts are rejected."""
        result = invoke(cli_runner, temp_db, "initial-balance", "set", "1", "NaN")

        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_unknown_account(self, cli_runner, temp_db):
        """Test resolving a missing account."""
        result = invoke(cli_runner, temp_db, "initial-balance", "set", "Ghost", "1")

        assert result.exit_code == 1
        assert "Bank account Ghost not found" in result.output


class TestTransactionCommands:
    """Tests for transaction commands."""

    def test_add_list_delete(self, cli_runner, temp_db, sample_bank_account):
        """Test the transaction lifecycle."""
        added = invoke(
            cli_runner,
            temp_db,
            "transaction",
            "add",
            "Operating",
            "--date",
            "2024-01-15 09:30",
            "--amount",
            "-45.50",
            "--description",
            "Office supplies",
        )
        assert added.exit_code == 0
        assert "Created transaction 1" in added.output
        assert "Date: 2024-01-15 09:30" in added.output
        assert "Amount: -45.50 USD" in added.output

        listed = invoke(cli_runner, temp_db, "transaction", "list", "--account", "Operating")
        assert "Office supplies" in listed.output

        deleted = invoke(cli_runner, temp_db, "transaction", "delete", "1", "--yes")
        assert deleted.exit_code == 0
        assert "No transactions found." in invoke(cli_runner, temp_db, "transaction", "list").output
        assert "[deleted]" in invoke(cli_runner, temp_db, "transaction", "list", "--include-deleted").output

    def test_add_with_in_and_out(self, cli_runner, temp_db, sample_wallet):
        """Test recording a wallet transaction from incoming/outgoing amounts."""
        result = invoke(
            cli_runner,
            temp_db,
            "transaction",
            "add",
            "Treasury",
            "--type",
            "wallet",
            "--date",
            "2024-02-01",
            "--in",
            "3",
            "--out",
            "0.5",
            "--currency",
            "ETH",
            "--pending",
        )

        assert result.exit_code == 0
        txn = temp_db.list_transactions(account_type=AccountType.WALLET)[0]
        assert txn.net_amount == Decimal("2.5")
        assert txn.status.value == "PENDING"

    def test_inconsistent_amounts(self, cli_runner, temp_db, sample_bank_account):
        """Test that mismatched net and in/out amounts are rejected."""
        result = invoke(
            cli_runner, temp_db, "transaction", "add", "1", "--date", "2024-01-01", "--amount", "10", "--in", "5"
        )

        assert result.exit_code == 1
        assert "does not equal" in result.output

    def test_delete_declined(self, cli_runner, temp_db, sample_bank_account):
        """Test that declining the confirmation keeps the transaction."""
        invoke(cli_runner, temp_db, "transaction", "add", "1", "--date", "2024-01-01", "--amount", "10")

        result = invoke(cli_runner, temp_db, "transaction", "delete", "1", input="n\n")

        assert "Deletion cancelled." in result.output
        assert len(temp_db.list_transactions()) == 1


class TestBalancesCommand:
    """Tests for the balances command."""

    @pytest.fixture
    def ledger(self, cli_runner, temp_db, sample_bank_account, sample_wallet):
        invoke(cli_runner, temp_db, "initial-balance", "set", "1", "100")
        for day, amount in (("2024-01-01", "50"), ("2024-01-02", "-20"), ("2024-01-03", "10")):
            invoke(cli_runner, temp_db, "transaction", "add", "1", "--date", day, "--amount", amount)
        invoke(
            cli_runner, temp_db, "transaction", "add", "1", "--type", "wallet",
            "--date", "2024-01-04", "--in", "2", "--currency", "ETH",
        )
        return temp_db

    def test_table_output(self, cli_runner, ledger):
        """Test the default table with summary lines."""
        result = invoke(cli_runner, ledger, "balances")

        assert result.exit_code == 0
        assert "Operating" in result.output
        assert "Treasury (ETH)" in result.output
        assert "140.00" in result.output
        assert "Accounts: 2 (1 bank, 1 wallet)" in result.output

    def test_json_output(self, cli_runner, ledger):
        """Test the JSON report."""
        result = invoke(cli_runner, ledger, "balances", "--format", "json", "--account-type", "banks")

        assert result.exit_code == 0
        report = json.loads(result.output)
        assert [row["key"] for row in report["data"]] == ["bank:1"]
        assert Decimal(report["data"][0]["final_balance"]) == Decimal("140")
        assert report["filters"]["account_type"] == "banks"
        assert report["cached"] is False

    def test_csv_output(self, cli_runner, ledger):
        """Test the CSV export."""
        result = invoke(cli_runner, ledger, "balances", "--format", "csv", "--hide-zero")

        lines = result.output.strip().splitlines()
        assert lines[0].startswith("key,account_type,account_id")
        assert [line.split(",")[0] for line in lines[1:]] == ["bank:1", "wallet:1-ETH"]

    def test_custom_range_and_grouping(self, cli_runner, ledger):
        """Test a custom date range with grouping by account kind."""
        result = invoke(
            cli_runner, ledger, "balances", "--start-date", "2024-01-02", "--end-date", "2024-01-02",
            "--group-by", "account",
        )

        assert result.exit_code == 0
        assert "Bank Accounts (1): 80.00" in result.output
        assert "Digital Wallets (2): 0.00" in result.output

    def test_invalid_period(self, cli_runner, ledger):
        """Test that unknown periods fail cleanly."""
        result = invoke(cli_runner, ledger, "balances", "--period", "fortnight")

        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_empty(self, cli_runner, temp_db):
        """Test the message when no accounts exist."""
        result = invoke(cli_runner, temp_db, "balances")

        assert "No balances found." in result.output


class FakeEtherscanClient(ChainDataSource):
    """Stand-in for EtherscanClient used as a context manager."""

    def __init__(self, api_key=None, **kwargs):
        self.api_key = api_key

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        pass

    def get_transaction_history(self, address, blockchain, options=None):
        if options.currency != "ETH":
            return []
        return [
            make_raw("0xa1", "1", gas_fee="0.001", timestamp=datetime(2024, 1, 5)),
            make_raw("0xa2", "3", direction=TransferDirection.INCOMING, timestamp=datetime(2024, 1, 4)),
        ]

    def get_native_balance(self, address, blockchain):
        return NativeBalance(balance=Decimal("1.999"), currency="ETH", is_live=True)


class TestImportWalletCommand:
    """Tests for the import-wallet command."""

    def test_import(self, cli_runner, temp_db, sample_wallet, monkeypatch):
        """Test a successful import and a repeated one."""
        monkeypatch.setattr("ledgerkit.cli.commands.import_wallet.EtherscanClient", FakeEtherscanClient)

        result = invoke(cli_runner, temp_db, "import-wallet", "Treasury", "--api-key", "test")
        again = invoke(cli_runner, temp_db, "import-wallet", "Treasury", "--api-key", "test")

        assert result.exit_code == 0
        assert "Imported: 3 transactions" in result.output
        assert "Skipped: 3 duplicates" in again.output
        assert len(temp_db.list_transactions(account_type=AccountType.WALLET)) == 3

    def test_unknown_wallet(self, cli_runner, temp_db):
        """Test that a missing wallet fails before any request."""
        result = invoke(cli_runner, temp_db, "import-wallet", "Nope", "--api-key", "test")

        assert result.exit_code == 1
        assert "Wallet Nope not found" in result.output

    def test_wallet_without_address(self, cli_runner, temp_db, account_service, sample_company, monkeypatch):
        """Test that the import is refused and nothing is written."""
        monkeypatch.setattr("ledgerkit.cli.commands.import_wallet.EtherscanClient", FakeEtherscanClient)
        account_service.create_wallet(sample_company.id, "Paper", "ETH")

        result = invoke(cli_runner, temp_db, "import-wallet", "Paper", "--api-key", "test")

        assert result.exit_code == 1
        assert "Import failed; no transactions were written." in result.output
        assert temp_db.list_transactions() == []
