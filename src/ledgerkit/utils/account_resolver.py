"""Utility for resolving account names to IDs."""

from ledgerkit.domain.account import AccountService
from ledgerkit.domain.entities import AccountType
from ledgerkit.domain.errors import NotFoundError, account_not_found


def resolve_account(
    account_service: AccountService, account: str | int, account_type: AccountType
) -> int:
    """Resolve account name or ID to account ID.

    Numeric values are treated as IDs; anything else is matched against
    display names, including inactive accounts.

    Args:
        account_service: AccountService instance
        account: Account name (str) or ID (int or string representation of int)
        account_type: Bank account or wallet

    Returns:
        Account ID

    Raises:
        NotFoundError: If account is not found
    """
    try:
        account_id = int(account)
    except (ValueError, TypeError):
        account_id = None

    if account_id is not None:
        account_service.require_account(account_id, account_type)
        return account_id

    for acc in account_service.list_accounts(account_type=account_type, include_inactive=True):
        if acc.display_name == account:
            return acc.id

    raise NotFoundError(account_not_found(account_type.value, account))
