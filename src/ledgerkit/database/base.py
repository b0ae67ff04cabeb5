"""Abstract database interface."""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence

from ledgerkit.domain.entities import (
    Account,
    AccountType,
    Company,
    InitialBalance,
    NewTransaction,
    Transaction,
)


class Database(ABC):
    """Abstract persistence store for ledgerkit.

    Implementations must enforce one initial balance per (account_id,
    account_type) and must never physically delete transaction rows.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Company operations
    @abstractmethod
    def create_company(
        self, trading_name: str, legal_name: Optional[str] = None, logo: Optional[str] = None
    ) -> int:
        """Create a company. Returns company ID."""
        pass

    @abstractmethod
    def get_company(self, company_id: int) -> Optional[Company]:
        """Get company by ID."""
        pass

    @abstractmethod
    def list_companies(self) -> list[Company]:
        """List all companies."""
        pass

    # Account operations
    @abstractmethod
    def create_bank_account(
        self,
        company_id: int,
        bank_name: str,
        currency: str,
        account_name: Optional[str] = None,
        account_number: Optional[str] = None,
    ) -> int:
        """Create a bank account. Returns account ID."""
        pass

    @abstractmethod
    def create_wallet(
        self,
        company_id: int,
        wallet_name: str,
        currency: str,
        wallet_address: Optional[str] = None,
        blockchain: Optional[str] = None,
        currencies: Sequence[str] = (),
    ) -> int:
        """Create a digital wallet. Returns wallet ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int, account_type: AccountType) -> Optional[Account]:
        """Get a bank account or wallet by ID."""
        pass

    @abstractmethod
    def list_accounts(
        self,
        company_id: Optional[int] = None,
        account_type: Optional[AccountType] = None,
        include_inactive: bool = False,
    ) -> list[Account]:
        """List bank accounts and wallets, bank accounts first."""
        pass

    @abstractmethod
    def update_account(
        self,
        account_id: int,
        account_type: AccountType,
        name: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> None:
        """Update administrative account fields."""
        pass

    # Initial balance operations
    @abstractmethod
    def get_initial_balance(
        self, account_id: int, account_type: AccountType
    ) -> Optional[InitialBalance]:
        """Get the initial balance of an account."""
        pass

    @abstractmethod
    def list_initial_balances(self, company_id: Optional[int] = None) -> list[InitialBalance]:
        """List initial balances, optionally for one company."""
        pass

    @abstractmethod
    def create_initial_balance(
        self,
        account_id: int,
        account_type: AccountType,
        company_id: int,
        amount: Decimal,
        currency: str,
        notes: Optional[str] = None,
    ) -> int:
        """Create an initial balance. Returns its ID."""
        pass

    @abstractmethod
    def update_initial_balance(
        self,
        balance_id: int,
        amount: Decimal,
        currency: str,
        notes: Optional[str] = None,
    ) -> None:
        """Replace the values of an existing initial balance."""
        pass

    @abstractmethod
    def delete_initial_balance(self, account_id: int, account_type: AccountType) -> bool:
        """Delete an initial balance. Returns False when none existed."""
        pass

    # Transaction operations
    @abstractmethod
    def create_transaction(self, record: NewTransaction) -> int:
        """Create a transaction. Returns transaction ID."""
        pass

    @abstractmethod
    def append_transactions(
        self,
        records: Sequence[NewTransaction],
        replacements: Optional[dict[int, NewTransaction]] = None,
    ) -> list[int]:
        """Write a batch of transactions atomically.

        Args:
            records: New transactions to insert
            replacements: Existing transaction ID -> new values, applied in the same commit

        Returns:
            IDs of the inserted transactions, in input order
        """
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID (deleted transactions included)."""
        pass

    @abstractmethod
    def find_transaction_by_reference(
        self, account_id: int, account_type: AccountType, reference: str, currency: str
    ) -> Optional[Transaction]:
        """Find a non-deleted transaction by account, reference and currency."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        account_id: Optional[int] = None,
        account_type: Optional[AccountType] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        company_id: Optional[int] = None,
        include_deleted: bool = False,
    ) -> list[Transaction]:
        """List transactions with optional filters.

        Args:
            account_id: Optional account ID filter
            account_type: Optional account type filter
            start: Optional inclusive lower date bound
            end: Optional inclusive upper date bound
            company_id: Optional company filter
            include_deleted: If True, include soft-deleted transactions
        """
        pass

    @abstractmethod
    def mark_transaction_deleted(self, transaction_id: int) -> None:
        """Soft-delete a transaction."""
        pass
