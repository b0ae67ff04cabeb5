"""Account domain service for companies, bank accounts and wallets."""

from typing import Optional, Sequence

from ledgerkit.database.base import Database
from ledgerkit.domain.entities import Account, AccountType, Company
from ledgerkit.domain.errors import (
    NotFoundError,
    ValidationError,
    account_not_found,
    company_not_found,
)


def _normalize_currency(currency: str) -> str:
    code = (currency or "").strip().upper()
    if not code:
        raise ValidationError("Currency is required")
    return code


class AccountService:
    """Service for managing companies, bank accounts and digital wallets."""

    def __init__(self, db: Database):
        """Initialize account service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_company(
        self, trading_name: str, legal_name: Optional[str] = None, logo: Optional[str] = None
    ) -> int:
        """Create a company.

        Raises:
            ValidationError: If trading name is empty
        """
        if not trading_name or not trading_name.strip():
            raise ValidationError("Trading name is required")
        return self.db.create_company(trading_name.strip(), legal_name=legal_name, logo=logo)

    def list_companies(self) -> list[Company]:
        return self.db.list_companies()

    def get_company(self, company_id: int) -> Optional[Company]:
        return self.db.get_company(company_id)

    def _require_company(self, company_id: int) -> None:
        if self.db.get_company(company_id) is None:
            raise NotFoundError(company_not_found(company_id))

    def create_bank_account(
        self,
        company_id: int,
        bank_name: str,
        currency: str,
        account_name: Optional[str] = None,
        account_number: Optional[str] = None,
    ) -> int:
        """Create a bank account.

        Args:
            company_id: Owning company ID
            bank_name: Bank name
            currency: ISO currency code
            account_name: Optional account name, shown instead of the bank name
            account_number: Optional account number

        Returns:
            Account ID

        Raises:
            NotFoundError: If company does not exist
            ValidationError: If bank name or currency is empty
        """
        self._require_company(company_id)
        if not bank_name or not bank_name.strip():
            raise ValidationError("Bank name is required")
        return self.db.create_bank_account(
            company_id=company_id,
            bank_name=bank_name.strip(),
            currency=_normalize_currency(currency),
            account_name=account_name,
            account_number=account_number,
        )

    def create_wallet(
        self,
        company_id: int,
        wallet_name: str,
        currency: str,
        wallet_address: Optional[str] = None,
        blockchain: Optional[str] = None,
        currencies: Sequence[str] = (),
    ) -> int:
        """Create a digital wallet.

        Args:
            company_id: Owning company ID
            wallet_name: Wallet name
            currency: Primary currency or token symbol
            wallet_address: On-chain address, required for blockchain import
            blockchain: Chain name (e.g. 'ethereum', 'bsc')
            currencies: Additional currencies held; more than one splits the
                wallet into per-currency balance entries

        Returns:
            Wallet ID

        Raises:
            NotFoundError: If company does not exist
            ValidationError: If wallet name or currency is empty
        """
        self._require_company(company_id)
        if not wallet_name or not wallet_name.strip():
            raise ValidationError("Wallet name is required")

        codes: list[str] = []
        for code in currencies:
            normalized = _normalize_currency(code)
            if normalized not in codes:
                codes.append(normalized)

        return self.db.create_wallet(
            company_id=company_id,
            wallet_name=wallet_name.strip(),
            currency=_normalize_currency(currency),
            wallet_address=wallet_address,
            blockchain=blockchain.lower() if blockchain else None,
            currencies=codes,
        )

    def get_account(self, account_id: int, account_type: AccountType) -> Optional[Account]:
        return self.db.get_account(account_id, account_type)

    def require_account(self, account_id: int, account_type: AccountType) -> Account:
        """Get an account or raise NotFoundError."""
        account = self.db.get_account(account_id, account_type)
        if account is None:
            raise NotFoundError(account_not_found(account_type.value, account_id))
        return account

    def list_accounts(
        self,
        company_id: Optional[int] = None,
        account_type: Optional[AccountType] = None,
        include_inactive: bool = False,
    ) -> list[Account]:
        """List bank accounts and wallets.

        Args:
            company_id: Optional company filter
            account_type: Optional account type filter
            include_inactive: If True, include deactivated accounts

        Returns:
            List of account entities
        """
        return self.db.list_accounts(
            company_id=company_id, account_type=account_type, include_inactive=include_inactive
        )

    def rename_account(self, account_id: int, account_type: AccountType, name: str) -> None:
        """Rename a bank account or wallet.

        Raises:
            NotFoundError: If account not found
            ValidationError: If name is empty
        """
        self.require_account(account_id, account_type)
        if not name or not name.strip():
            raise ValidationError("Account name is required")
        self.db.update_account(account_id, account_type, name=name.strip())

    def set_active(self, account_id: int, account_type: AccountType, is_active: bool) -> None:
        """Activate or deactivate an account. Transactions are left untouched."""
        self.require_account(account_id, account_type)
        self.db.update_account(account_id, account_type, is_active=is_active)
