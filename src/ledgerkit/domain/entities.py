"""Domain model entities for ledgerkit.

These are pure data classes representing business concepts, independent of
database schema. Bank accounts and digital wallets share one Account entity
so the balance engine can treat them uniformly.
"""

import hashlib
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional


class AccountType(str, Enum):
    """Discriminator for the two kinds of ledger accounts."""

    BANK = "bank"
    WALLET = "wallet"


class TransactionStatus(str, Enum):
    PENDING = "PENDING"
    CLEARED = "CLEARED"
    CANCELLED = "CANCELLED"


class ReconciliationStatus(str, Enum):
    UNRECONCILED = "UNRECONCILED"
    RECONCILED = "RECONCILED"
    AUTO_RECONCILED = "AUTO_RECONCILED"


class TransferDirection(str, Enum):
    """Direction of a raw chain transaction relative to the analyzed wallet."""

    INCOMING = "incoming"
    OUTGOING = "outgoing"
    FEE = "fee"


class TokenType(str, Enum):
    NATIVE = "native"
    ERC20 = "erc20"
    BEP20 = "bep20"


class ChainStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class Company:
    """Company entity, used for labeling and search only."""

    id: int
    trading_name: str
    legal_name: Optional[str] = None
    logo: Optional[str] = None


@dataclass(frozen=True)
class Account:
    """Bank account or digital wallet domain entity."""

    id: int
    account_type: AccountType
    company_id: int
    name: str
    currency: str
    bank_name: Optional[str] = None
    account_number: Optional[str] = None
    wallet_address: Optional[str] = None
    blockchain: Optional[str] = None
    currencies: tuple[str, ...] = ()
    is_active: bool = True
    created_at: Optional[datetime] = None

    @property
    def display_name(self) -> str:
        """Account name, falling back to the bank name for unnamed bank accounts."""
        return self.name or self.bank_name or ""

    @property
    def is_wallet(self) -> bool:
        return self.account_type == AccountType.WALLET

    def currency_list(self) -> tuple[str, ...]:
        """Currencies held by this account, primary currency when none are listed."""
        if self.currencies:
            return self.currencies
        return (self.currency,)


@dataclass(frozen=True)
class InitialBalance:
    """Manually recorded starting balance for one account."""

    id: int
    account_id: int
    account_type: AccountType
    company_id: int
    amount: Decimal
    currency: str
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class NewTransaction:
    """Ledger entry that has not been persisted yet."""

    company_id: int
    account_id: int
    account_type: AccountType
    date: datetime
    currency: str
    net_amount: Decimal
    incoming_amount: Optional[Decimal] = None
    outgoing_amount: Optional[Decimal] = None
    status: TransactionStatus = TransactionStatus.CLEARED
    reconciliation_status: ReconciliationStatus = ReconciliationStatus.UNRECONCILED
    category: Optional[str] = None
    description: Optional[str] = None
    reference: Optional[str] = None
    paid_by: Optional[str] = None
    paid_to: Optional[str] = None
    notes: Optional[str] = None
    linked_entry_type: Optional[str] = None


@dataclass(frozen=True)
class Transaction:
    """Persisted ledger entry."""

    id: int
    company_id: int
    account_id: int
    account_type: AccountType
    date: datetime
    currency: str
    net_amount: Decimal
    incoming_amount: Optional[Decimal]
    outgoing_amount: Optional[Decimal]
    status: TransactionStatus
    reconciliation_status: ReconciliationStatus
    category: Optional[str]
    description: Optional[str]
    reference: Optional[str]
    paid_by: Optional[str] = None
    paid_to: Optional[str] = None
    notes: Optional[str] = None
    linked_entry_type: Optional[str] = None
    is_deleted: bool = False
    created_at: Optional[datetime] = None

    def split_amounts(self) -> tuple[Decimal, Decimal]:
        """Return (incoming, outgoing), derived from net_amount when not recorded."""
        if self.incoming_amount is not None and self.outgoing_amount is not None:
            return self.incoming_amount, self.outgoing_amount
        if self.net_amount >= 0:
            return self.net_amount, Decimal("0")
        return Decimal("0"), -self.net_amount


@dataclass(frozen=True)
class RawChainTransaction:
    """Transaction as reported by a chain explorer, before normalization."""

    hash: str
    timestamp: datetime
    from_address: str
    to_address: str
    amount: Decimal
    currency: str
    direction: TransferDirection
    status: ChainStatus = ChainStatus.SUCCESS
    gas_used: int = 0
    gas_fee: Decimal = Decimal("0")
    token_type: TokenType = TokenType.NATIVE
    is_internal: bool = False
    block_number: Optional[int] = None
    contract_address: Optional[str] = None
    blockchain: str = "ethereum"
    description: Optional[str] = None
    related_transaction: Optional[str] = None
    internal_id: Optional[str] = None

    @property
    def entry_id(self) -> str:
        """Identifier of this entry; synthesized fees carry their own id.

        Internal transfers without a trace id are told apart by sender and
        amount, the same way de-duplication keys them.
        """
        if self.internal_id:
            return self.internal_id
        if self.is_internal:
            source = f"{self.from_address.lower()}:{self.amount.normalize():f}"
            return f"{self.hash}-internal-{hashlib.sha1(source.encode()).hexdigest()[:10]}"
        return self.hash


@dataclass(frozen=True)
class Diagnostic:
    """Structured, non-fatal warning produced by a computation."""

    code: str
    message: str
    context: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "context": dict(self.context)}


@dataclass(frozen=True)
class BalanceListItem:
    """Computed balance of one account (or one currency of a wallet)."""

    key: str
    account: Account
    company: Optional[Company]
    display_name: str
    currency: str
    initial_balance: Decimal
    transaction_balance: Decimal
    final_balance: Decimal
    incoming_amount: Decimal
    outgoing_amount: Decimal
    last_transaction_date: Optional[datetime]


@dataclass(frozen=True)
class CurrencyTotals:
    assets: Decimal = Decimal("0")
    liabilities: Decimal = Decimal("0")
    net_worth: Decimal = Decimal("0")


@dataclass(frozen=True)
class BalanceSummary:
    """Roll-up across a set of balance items."""

    total_assets: Decimal
    total_liabilities: Decimal
    net_worth: Decimal
    account_count: int
    bank_account_count: int
    wallet_count: int
    currency_breakdown: dict[str, CurrencyTotals]


@dataclass(frozen=True)
class BalanceResult:
    items: tuple[BalanceListItem, ...]
    summary: BalanceSummary
    warnings: tuple[Diagnostic, ...] = ()
