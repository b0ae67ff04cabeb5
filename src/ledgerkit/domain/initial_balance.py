"""Initial (manual) balance domain service."""

from decimal import Decimal
from typing import Optional

from ledgerkit.database.base import Database
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.entities import AccountType, InitialBalance
from ledgerkit.domain.errors import ConflictError, NotFoundError, duplicate_initial_balance
from ledgerkit.utils.amount_parser import require_finite


class InitialBalanceService:
    """Service for the manually entered zero-point of each account."""

    def __init__(self, db: Database):
        """Initialize initial balance service.

        Args:
            db: Database instance
        """
        self.db = db
        self.account_service = AccountService(db)

    def set_initial_balance(
        self,
        account_id: int,
        account_type: AccountType,
        amount: Decimal,
        currency: Optional[str] = None,
        notes: Optional[str] = None,
        overwrite: bool = False,
    ) -> InitialBalance:
        """Create or replace the initial balance of an account.

        Validation happens before anything is written.

        Args:
            account_id: Account ID
            account_type: Bank account or wallet
            amount: Signed starting balance
            currency: Currency of the amount (defaults to the account currency)
            notes: Optional free-text notes
            overwrite: Replace an existing initial balance instead of failing

        Returns:
            The stored initial balance

        Raises:
            NotFoundError: If the account does not exist
            ValidationError: If amount is NaN or infinite
            ConflictError: If a balance exists and overwrite is False
        """
        account = self.account_service.require_account(account_id, account_type)
        amount = require_finite(amount)
        currency = (currency or account.currency).strip().upper()

        existing = self.db.get_initial_balance(account_id, account_type)
        if existing is not None:
            if not overwrite:
                raise ConflictError(duplicate_initial_balance(account_type.value, account_id))
            self.db.update_initial_balance(existing.id, amount=amount, currency=currency, notes=notes)
        else:
            self.db.create_initial_balance(
                account_id=account_id,
                account_type=account_type,
                company_id=account.company_id,
                amount=amount,
                currency=currency,
                notes=notes,
            )

        return self.db.get_initial_balance(account_id, account_type)

    def get_initial_balance(
        self, account_id: int, account_type: AccountType
    ) -> Optional[InitialBalance]:
        return self.db.get_initial_balance(account_id, account_type)

    def get_amount(self, account_id: int, account_type: AccountType) -> Decimal:
        """Initial balance amount; zero when none was recorded."""
        existing = self.db.get_initial_balance(account_id, account_type)
        return existing.amount if existing is not None else Decimal("0")

    def list_initial_balances(self, company_id: Optional[int] = None) -> list[InitialBalance]:
        return self.db.list_initial_balances(company_id)

    def delete_initial_balance(self, account_id: int, account_type: AccountType) -> None:
        """Remove an initial balance, returning the account to a zero start.

        Raises:
            NotFoundError: If no initial balance exists for the account
        """
        if not self.db.delete_initial_balance(account_id, account_type):
            raise NotFoundError(f"No initial balance for {account_type.value} {account_id}")
