"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class ChainSourceError(DomainError):
    """The chain data source failed or returned an unusable response."""

    def __init__(self, message: str, blockchain: str | None = None, action: str | None = None):
        super().__init__(message)
        self.blockchain = blockchain
        self.action = action


def account_not_found(account_type: str, account_id: int | str) -> str:
    """Return message for missing bank account or wallet."""
    label = "Wallet" if account_type == "wallet" else "Bank account"
    return f"{label} {account_id} not found"


def company_not_found(company_id: int) -> str:
    """Return message for missing company."""
    return f"Company {company_id} not found"


def duplicate_initial_balance(account_type: str, account_id: int) -> str:
    """Return message for an existing initial balance."""
    return (
        f"Initial balance already exists for {account_type} {account_id}. "
        "Use overwrite to replace it."
    )


def invalid_amount(value: object) -> str:
    """Return message for an amount that is not a finite number."""
    return f"Amount must be a finite number, got '{value}'"


def invalid_date_range(start: object, end: object) -> str:
    """Return message for a start date after the end date."""
    return f"Start date {start} is after end date {end}"


def unsupported_blockchain(blockchain: str) -> str:
    """Return message for a chain the data source cannot query."""
    return f"Unsupported blockchain: {blockchain}"


def unsupported_currency(currency: str, blockchain: str) -> str:
    """Return message for a token the data source does not track on a chain."""
    return f"Unsupported currency {currency} on {blockchain}"


def wallet_without_address(wallet_id: int) -> str:
    """Return message for wallets that cannot be imported."""
    return f"Wallet {wallet_id} has no address or blockchain configured"
