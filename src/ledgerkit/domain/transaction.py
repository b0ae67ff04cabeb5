"""Transaction domain service."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from ledgerkit.database.base import Database
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.entities import (
    AccountType,
    NewTransaction,
    ReconciliationStatus,
    Transaction as TransactionEntity,
    TransactionStatus,
)
from ledgerkit.domain.errors import NotFoundError, ValidationError
from ledgerkit.utils.amount_parser import require_finite

ZERO = Decimal("0")


def resolve_amounts(
    net_amount: Optional[Decimal],
    incoming_amount: Optional[Decimal],
    outgoing_amount: Optional[Decimal],
) -> tuple[Decimal, Decimal, Decimal]:
    """Complete (net, incoming, outgoing) from whichever values were given.

    Raises:
        ValidationError: If no amount is given, an amount is not finite,
            incoming/outgoing are negative, or net != incoming - outgoing
    """
    if net_amount is None and incoming_amount is None and outgoing_amount is None:
        raise ValidationError("A transaction needs a net, incoming or outgoing amount")

    if net_amount is not None:
        net_amount = require_finite(net_amount)
    incoming = require_finite(incoming_amount) if incoming_amount is not None else None
    outgoing = require_finite(outgoing_amount) if outgoing_amount is not None else None

    if (incoming is not None and incoming < 0) or (outgoing is not None and outgoing < 0):
        raise ValidationError("Incoming and outgoing amounts must not be negative")

    if incoming is None and outgoing is None:
        if net_amount >= 0:
            return net_amount, net_amount, ZERO
        return net_amount, ZERO, -net_amount

    incoming = incoming if incoming is not None else ZERO
    outgoing = outgoing if outgoing is not None else ZERO
    derived = incoming - outgoing
    if net_amount is not None and net_amount != derived:
        raise ValidationError(
            f"Net amount {net_amount} does not equal incoming {incoming} minus outgoing {outgoing}"
        )
    return derived, incoming, outgoing


class TransactionService:
    """Service for recording and removing ledger transactions."""

    def __init__(self, db: Database):
        """Initialize transaction service.

        Args:
            db: Database instance
        """
        self.db = db
        self.account_service = AccountService(db)

    def record_transaction(
        self,
        account_id: int,
        account_type: AccountType,
        date: datetime,
        net_amount: Optional[Decimal] = None,
        incoming_amount: Optional[Decimal] = None,
        outgoing_amount: Optional[Decimal] = None,
        currency: Optional[str] = None,
        status: TransactionStatus = TransactionStatus.CLEARED,
        category: Optional[str] = None,
        description: Optional[str] = None,
        reference: Optional[str] = None,
    ) -> int:
        """Record a manual transaction.

        Args:
            account_id: Account ID
            account_type: Bank account or wallet
            date: Transaction date/time (naive UTC)
            net_amount: Signed amount; derived from incoming/outgoing when omitted
            incoming_amount: Optional money in
            outgoing_amount: Optional money out
            currency: Currency (defaults to the account currency)
            status: Transaction status
            category: Optional category
            description: Optional description
            reference: Optional reference

        Returns:
            Transaction ID

        Raises:
            NotFoundError: If account doesn't exist
            ValidationError: If amounts are missing, not finite or inconsistent
        """
        account = self.account_service.require_account(account_id, account_type)
        net, incoming, outgoing = resolve_amounts(net_amount, incoming_amount, outgoing_amount)

        return self.db.create_transaction(
            NewTransaction(
                company_id=account.company_id,
                account_id=account_id,
                account_type=account_type,
                date=date,
                currency=(currency or account.currency).strip().upper(),
                net_amount=net,
                incoming_amount=incoming,
                outgoing_amount=outgoing,
                status=status,
                reconciliation_status=ReconciliationStatus.UNRECONCILED,
                category=category,
                description=description,
                reference=reference,
                linked_entry_type="MANUAL",
            )
        )

    def get_transaction(self, transaction_id: int) -> Optional[TransactionEntity]:
        return self.db.get_transaction(transaction_id)

    def list_transactions(
        self,
        account_id: Optional[int] = None,
        account_type: Optional[AccountType] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        include_deleted: bool = False,
    ) -> list[TransactionEntity]:
        """List transactions, oldest first."""
        return self.db.list_transactions(
            account_id=account_id,
            account_type=account_type,
            start=start,
            end=end,
            include_deleted=include_deleted,
        )

    def delete_transaction(self, transaction_id: int) -> None:
        """Soft-delete a transaction; the row is kept with is_deleted set.

        Raises:
            NotFoundError: If transaction not found or already deleted
        """
        transaction = self.db.get_transaction(transaction_id)
        if transaction is None or transaction.is_deleted:
            raise NotFoundError(f"Transaction {transaction_id} not found")
        self.db.mark_transaction_deleted(transaction_id)
