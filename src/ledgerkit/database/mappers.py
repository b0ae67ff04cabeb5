"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so bank accounts and wallets can
keep separate tables while the domain sees a single Account entity.
"""

from typing import Any, Optional

from ledgerkit.domain import entities as domain
from ledgerkit.database.models import (
    Company as ORMCompany,
    BankAccount as ORMBankAccount,
    DigitalWallet as ORMDigitalWallet,
    InitialBalance as ORMInitialBalance,
    Transaction as ORMTransaction,
)


def parse_currency_list(raw: Optional[str]) -> tuple[str, ...]:
    """Split a comma-separated currency list, normalizing case and dropping repeats."""
    if not raw:
        return ()
    seen: list[str] = []
    for part in raw.split(","):
        code = part.strip().upper()
        if code and code not in seen:
            seen.append(code)
    return tuple(seen)


def company_to_domain(orm_company: ORMCompany) -> domain.Company:
    """Convert SQLAlchemy Company model to domain Company entity."""
    return domain.Company(
        id=orm_company.id,
        trading_name=orm_company.trading_name,
        legal_name=orm_company.legal_name,
        logo=orm_company.logo,
    )


def bank_account_to_domain(orm_account: ORMBankAccount) -> domain.Account:
    """Convert SQLAlchemy BankAccount model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        account_type=domain.AccountType.BANK,
        company_id=orm_account.company_id,
        name=orm_account.account_name or "",
        currency=orm_account.currency,
        bank_name=orm_account.bank_name,
        account_number=orm_account.account_number,
        is_active=orm_account.is_active,
        created_at=orm_account.created_at,
    )


def wallet_to_domain(orm_wallet: ORMDigitalWallet) -> domain.Account:
    """Convert SQLAlchemy DigitalWallet model to domain Account entity."""
    return domain.Account(
        id=orm_wallet.id,
        account_type=domain.AccountType.WALLET,
        company_id=orm_wallet.company_id,
        name=orm_wallet.wallet_name,
        currency=orm_wallet.currency,
        wallet_address=orm_wallet.wallet_address,
        blockchain=orm_wallet.blockchain,
        currencies=parse_currency_list(orm_wallet.currencies),
        is_active=orm_wallet.is_active,
        created_at=orm_wallet.created_at,
    )


def initial_balance_to_domain(orm_balance: ORMInitialBalance) -> domain.InitialBalance:
    """Convert SQLAlchemy InitialBalance model to domain InitialBalance entity."""
    return domain.InitialBalance(
        id=orm_balance.id,
        account_id=orm_balance.account_id,
        account_type=domain.AccountType(orm_balance.account_type),
        company_id=orm_balance.company_id,
        amount=orm_balance.amount,
        currency=orm_balance.currency,
        notes=orm_balance.notes,
        created_at=orm_balance.created_at,
        updated_at=orm_balance.updated_at,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        company_id=orm_transaction.company_id,
        account_id=orm_transaction.account_id,
        account_type=domain.AccountType(orm_transaction.account_type),
        date=orm_transaction.date,
        currency=orm_transaction.currency,
        net_amount=orm_transaction.net_amount,
        incoming_amount=orm_transaction.incoming_amount,
        outgoing_amount=orm_transaction.outgoing_amount,
        status=domain.TransactionStatus(orm_transaction.status),
        reconciliation_status=domain.ReconciliationStatus(orm_transaction.reconciliation_status),
        category=orm_transaction.category,
        description=orm_transaction.description,
        reference=orm_transaction.reference,
        paid_by=orm_transaction.paid_by,
        paid_to=orm_transaction.paid_to,
        notes=orm_transaction.notes,
        linked_entry_type=orm_transaction.linked_entry_type,
        is_deleted=orm_transaction.is_deleted,
        created_at=orm_transaction.created_at,
    )


def new_transaction_to_columns(record: domain.NewTransaction) -> dict[str, Any]:
    """Convert a NewTransaction into Transaction model column values."""
    return {
        "company_id": record.company_id,
        "account_id": record.account_id,
        "account_type": record.account_type.value,
        "date": record.date,
        "currency": record.currency,
        "net_amount": record.net_amount,
        "incoming_amount": record.incoming_amount,
        "outgoing_amount": record.outgoing_amount,
        "status": record.status.value,
        "reconciliation_status": record.reconciliation_status.value,
        "category": record.category,
        "description": record.description,
        "reference": record.reference,
        "paid_by": record.paid_by,
        "paid_to": record.paid_to,
        "notes": record.notes,
        "linked_entry_type": record.linked_entry_type,
    }
