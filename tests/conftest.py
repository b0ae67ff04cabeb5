"""Shared pytest fixtures for ledgerkit tests."""

import tempfile
import os
from datetime import datetime
from decimal import Decimal

import pytest

from ledgerkit.database.factories import create_sqlite_database
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.entities import (
    Account,
    AccountType,
    ChainStatus,
    RawChainTransaction,
    TokenType,
    Transaction,
    TransactionStatus,
    ReconciliationStatus,
    TransferDirection,
)
from ledgerkit.domain.initial_balance import InitialBalanceService
from ledgerkit.domain.transaction import TransactionService

WALLET_ADDRESS = "0x1111111111111111111111111111111111111111"
OTHER_ADDRESS = "0x2222222222222222222222222222222222222222"
CONTRACT_ADDRESS = "0x3333333333333333333333333333333333333333"
USDT_CONTRACT = "0xdac17f958d2ee523a2206206994597c13d831ec7"


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def initial_balance_service(temp_db):
    """Create an InitialBalanceService with a temporary database."""
    return InitialBalanceService(temp_db)


@pytest.fixture
def transaction_service(temp_db):
    """Create a TransactionService with a temporary database."""
    return TransactionService(temp_db)


@pytest.fixture
def sample_company(account_service):
    """Create a sample company for testing."""
    company_id = account_service.create_company("Acme", legal_name="Acme Holdings Ltd")
    return account_service.get_company(company_id)


@pytest.fixture
def sample_bank_account(account_service, sample_company):
    """Create a sample USD bank account for testing."""
    account_id = account_service.create_bank_account(
        company_id=sample_company.id,
        bank_name="Test Bank",
        currency="USD",
        account_name="Operating",
        account_number="123456",
    )
    return account_service.get_account(account_id, AccountType.BANK)


@pytest.fixture
def sample_wallet(account_service, sample_company):
    """Create a sample Ethereum wallet holding ETH and USDT."""
    wallet_id = account_service.create_wallet(
        company_id=sample_company.id,
        wallet_name="Treasury",
        currency="ETH",
        wallet_address=WALLET_ADDRESS,
        blockchain="ethereum",
        currencies=["ETH", "USDT"],
    )
    return account_service.get_account(wallet_id, AccountType.WALLET)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


def make_account(
    account_id=1,
    account_type=AccountType.BANK,
    company_id=1,
    name="Operating",
    currency="USD",
    currencies=(),
    **kwargs,
) -> Account:
    """Build an Account entity without touching the database."""
    return Account(
        id=account_id,
        account_type=account_type,
        company_id=company_id,
        name=name,
        currency=currency,
        currencies=tuple(currencies),
        **kwargs,
    )


def make_transaction(
    transaction_id,
    net_amount,
    date,
    account_id=1,
    account_type=AccountType.BANK,
    currency="USD",
    **kwargs,
) -> Transaction:
    """Build a Transaction entity with in/out amounts derived from the net amount."""
    net = Decimal(str(net_amount))
    defaults = {
        "incoming_amount": max(net, Decimal("0")),
        "outgoing_amount": max(-net, Decimal("0")),
        "status": TransactionStatus.CLEARED,
        "reconciliation_status": ReconciliationStatus.UNRECONCILED,
        "category": None,
        "description": None,
        "reference": None,
    }
    defaults.update(kwargs)
    return Transaction(
        id=transaction_id,
        company_id=1,
        account_id=account_id,
        account_type=account_type,
        date=date,
        currency=currency,
        net_amount=net,
        **defaults,
    )


def make_raw(
    tx_hash,
    amount="0",
    direction=TransferDirection.OUTGOING,
    currency="ETH",
    gas_fee="0",
    gas_used=21000,
    timestamp=datetime(2024, 3, 1, 12, 0),
    **kwargs,
) -> RawChainTransaction:
    """Build a raw chain transaction; outgoing ones are sent by the test wallet."""
    if direction == TransferDirection.INCOMING:
        addresses = {"from_address": OTHER_ADDRESS, "to_address": WALLET_ADDRESS}
    else:
        addresses = {"from_address": WALLET_ADDRESS, "to_address": OTHER_ADDRESS}
    addresses.update({k: kwargs.pop(k) for k in ("from_address", "to_address") if k in kwargs})
    status = kwargs.pop("status", ChainStatus.SUCCESS)
    if currency != "ETH" and "token_type" not in kwargs:
        kwargs["token_type"] = TokenType.ERC20
    return RawChainTransaction(
        hash=tx_hash,
        timestamp=timestamp,
        amount=Decimal(amount),
        currency=currency,
        direction=direction,
        status=status,
        gas_used=gas_used,
        gas_fee=Decimal(gas_fee),
        **addresses,
        **kwargs,
    )
