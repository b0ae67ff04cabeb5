"""Tests for the SQLAlchemy database returning domain models."""

from datetime import datetime
from decimal import Decimal

import pytest

from ledgerkit.database.mappers import parse_currency_list
from ledgerkit.domain import entities
from ledgerkit.domain.entities import AccountType, NewTransaction
from ledgerkit.domain.errors import ConflictError, NotFoundError


def new_transaction(account_id, reference, net="1", currency="ETH", account_type=AccountType.WALLET):
    amount = Decimal(net)
    return NewTransaction(
        company_id=1,
        account_id=account_id,
        account_type=account_type,
        date=datetime(2024, 1, 1, 12, 0),
        currency=currency,
        net_amount=amount,
        incoming_amount=max(amount, Decimal("0")),
        outgoing_amount=max(-amount, Decimal("0")),
        reference=reference,
    )


class TestDatabaseInterface:
    """Tests to verify the database returns domain models."""

    def test_accounts_are_domain_entities(self, temp_db, sample_bank_account, sample_wallet):
        """Test that both tables map to the Account entity."""
        accounts = temp_db.list_accounts()

        assert {(a.account_type, a.id) for a in accounts} == {(AccountType.BANK, 1), (AccountType.WALLET, 1)}
        assert all(isinstance(a, entities.Account) for a in accounts)
        assert isinstance(sample_bank_account.created_at, datetime)

    def test_missing_rows_return_none(self, temp_db):
        """Test lookups of unknown ids."""
        assert temp_db.get_company(1) is None
        assert temp_db.get_account(1, AccountType.WALLET) is None
        assert temp_db.get_transaction(1) is None

    def test_amount_precision_round_trips(self, temp_db, sample_wallet):
        """Test that ten decimal places survive storage."""
        (transaction_id,) = temp_db.append_transactions([new_transaction(1, "0xa", net="0.0000000001")])

        assert temp_db.get_transaction(transaction_id).net_amount == Decimal("0.0000000001")

    def test_initial_balance_unique_per_account(self, temp_db, sample_bank_account):
        """Test the one-balance-per-account constraint."""
        temp_db.create_initial_balance(1, AccountType.BANK, 1, Decimal("10"), "USD")

        with pytest.raises(ConflictError):
            temp_db.create_initial_balance(1, AccountType.BANK, 1, Decimal("20"), "USD")


class TestAppendTransactions:
    """Tests for batch writes."""

    def test_append_returns_ids_in_order(self, temp_db, sample_wallet):
        """Test inserting a batch."""
        ids = temp_db.append_transactions([new_transaction(1, "0xa"), new_transaction(1, "0xb")])

        assert [temp_db.get_transaction(i).reference for i in ids] == ["0xa", "0xb"]

    def test_replacements_update_rows(self, temp_db, sample_wallet):
        """Test overwriting an existing row in the same batch."""
        (existing,) = temp_db.append_transactions([new_transaction(1, "0xa", net="1")])

        temp_db.append_transactions([new_transaction(1, "0xb")], {existing: new_transaction(1, "0xa", net="-2")})

        assert temp_db.get_transaction(existing).net_amount == Decimal("-2")
        assert len(temp_db.list_transactions()) == 2

    def test_failed_batch_writes_nothing(self, temp_db, sample_wallet):
        """Test that a bad replacement rolls back the whole batch."""
        with pytest.raises(NotFoundError):
            temp_db.append_transactions([new_transaction(1, "0xa")], {42: new_transaction(1, "0xz")})

        assert temp_db.list_transactions() == []

    def test_find_by_reference(self, temp_db, sample_wallet):
        """Test lookup by reference and currency, skipping deleted rows."""
        eth_id, _ = temp_db.append_transactions(
            [new_transaction(1, "0xa"), new_transaction(1, "0xa", currency="USDT")]
        )

        assert temp_db.find_transaction_by_reference(1, AccountType.WALLET, "0xa", "ETH").id == eth_id
        assert temp_db.find_transaction_by_reference(1, AccountType.BANK, "0xa", "ETH") is None

        temp_db.mark_transaction_deleted(eth_id)
        assert temp_db.find_transaction_by_reference(1, AccountType.WALLET, "0xa", "ETH") is None


@pytest.mark.parametrize(
    "raw,expected",
    [(None, ()), ("", ()), ("eth, usdt,ETH", ("ETH", "USDT")), ("BTC,,", ("BTC",))],
)
def test_parse_currency_list(raw, expected):
    """Test the stored currency list format."""
    assert parse_currency_list(raw) == expected
