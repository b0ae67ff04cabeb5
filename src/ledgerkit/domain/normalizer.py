"""Blockchain transaction normalizer.

Turns raw chain-explorer transactions into a cleaned, fee-annotated,
de-duplicated list ready to be stored as ledger transactions. The work is
split into stage functions that all share the signature
``stage(transactions, context) -> list``; ``normalize`` runs them in order.
Stages report through ``context.warnings`` instead of printing.
"""

import json
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Iterable, Optional, Sequence

from ledgerkit.domain.chains import native_currency
from ledgerkit.domain.entities import (
    Account,
    AccountType,
    ChainStatus,
    Diagnostic,
    NewTransaction,
    RawChainTransaction,
    ReconciliationStatus,
    TokenType,
    TransactionStatus,
    TransferDirection,
)
from ledgerkit.domain.reconciliation import BalanceOracle, ReconciliationReport, reconcile
from ledgerkit.utils.periods import end_of_day

logger = logging.getLogger(__name__)

NETWORK_FEE_RECIPIENT = "Network Fee"
LEDGER_CATEGORY = "Cryptocurrency"
LINKED_ENTRY_TYPE = "BLOCKCHAIN_IMPORT"


@dataclass(frozen=True)
class CampaignSignature:
    """A dated spam campaign: zero-value outgoing transfers of one token."""

    name: str
    currency: str
    start: datetime
    end: datetime
    min_gas_used: int

    def matches(self, tx: RawChainTransaction) -> bool:
        return (
            tx.currency.upper() == self.currency
            and tx.amount == 0
            and tx.direction == TransferDirection.OUTGOING
            and tx.gas_used > self.min_gas_used
            and self.start <= tx.timestamp <= self.end
        )


@dataclass(frozen=True)
class FeeBackfillRule:
    """Known upstream gap where gas fees for token transfers went missing."""

    currency: str
    start: datetime
    end: datetime
    amounts: tuple[Decimal, ...]
    description: str
    tolerance: Decimal = Decimal("0.00001")

    def matches(self, tx: RawChainTransaction) -> bool:
        if tx.currency.upper() != self.currency or not self.start <= tx.timestamp <= self.end:
            return False
        return any(abs(tx.gas_fee - amount) <= self.tolerance for amount in self.amounts)


@dataclass(frozen=True)
class SpamPolicy:
    """Deny-lists and thresholds used to recognize spam and phishing.

    All addresses and hashes are compared in lower case.
    """

    phishing_hashes: frozenset[str] = frozenset()
    suspicious_address_suffixes: tuple[str, ...] = ()
    legitimate_addresses: frozenset[str] = frozenset()
    high_gas_threshold: int = 300_000
    extreme_gas_ceiling: int = 2_000_000
    campaigns: tuple[CampaignSignature, ...] = ()
    token_contracts: dict[str, str] = field(default_factory=dict)
    fee_backfills: tuple[FeeBackfillRule, ...] = ()

    @classmethod
    def default(cls) -> "SpamPolicy":
        """Policy with the maintained lists of known spam on Ethereum."""
        return cls(
            phishing_hashes=frozenset(
                {
                    "0xdd72106dca23a22cdd8376a69f956dec5d21d5075d18833f7be5474e6b8e86bc",
                    "0x70cbdb72871c69a17f13ab5b5bab1dd7ef5607706de98f82137fe39c144d8dc3",
                    "0x178450a4c26357b3812225c24d5dc877c5588637d72634ed0e76e1156a957ef5",
                }
            ),
            suspicious_address_suffixes=("ae5a88", "3c27", "b3c27", "f3c27"),
            legitimate_addresses=frozenset({"0xbac46c5513c0653360a673ed0cf05b9fb5ab3c27"}),
            campaigns=(
                CampaignSignature(
                    name="usdt-zero-value-dec-2022",
                    currency="USDT",
                    start=datetime(2022, 12, 1),
                    end=end_of_day(datetime(2022, 12, 31)),
                    min_gas_used=300_000,
                ),
            ),
            token_contracts={
                "USDT": "0xdac17f958d2ee523a2206206994597c13d831ec7",
                "USDC": "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48",
                "DAI": "0x6b175474e89094c44da98b954eedeac495271d0f",
                "WBTC": "0x2260fac5e5542a773aa44fbcfedf7c193bc2c599",
                "WETH": "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2",
            },
            fee_backfills=(
                FeeBackfillRule(
                    currency="USDT",
                    start=datetime(2022, 10, 1),
                    end=end_of_day(datetime(2022, 12, 31)),
                    amounts=(
                        Decimal("0.00070922"),
                        Decimal("0.00068789"),
                        Decimal("0.00139059"),
                        Decimal("0.00090641"),
                        Decimal("0.00287672"),
                    ),
                    description="Missing USDT gas fee from late 2022",
                ),
            ),
        )

    def is_phishing_hash(self, tx_hash: str) -> bool:
        return tx_hash.lower() in self.phishing_hashes

    def is_suspicious_destination(self, address: str) -> bool:
        address = address.lower()
        if address in self.legitimate_addresses:
            return False
        return any(address.endswith(suffix) for suffix in self.suspicious_address_suffixes)

    def legitimate_contract(self, currency: str) -> Optional[str]:
        contract = self.token_contracts.get(currency.upper())
        return contract.lower() if contract else None

    def backfill_rule_for(self, tx: RawChainTransaction) -> Optional[FeeBackfillRule]:
        for rule in self.fee_backfills:
            if rule.matches(tx):
                return rule
        return None


@dataclass
class NormalizationContext:
    """Parameters shared by all stages, plus the warnings they collect."""

    wallet_address: str
    blockchain: str
    now: datetime
    policy: SpamPolicy = field(default_factory=SpamPolicy.default)
    currency: Optional[str] = None
    include_fees: bool = True
    warnings: list[Diagnostic] = field(default_factory=list)

    def __post_init__(self):
        self.native_currency = native_currency(self.blockchain)
        if self.currency is not None:
            self.currency = self.currency.upper()

    @property
    def is_native_scope(self) -> bool:
        """True when no currency was requested or the native one was."""
        return self.currency is None or self.currency == self.native_currency

    def is_wallet(self, address: Optional[str]) -> bool:
        return bool(address) and address.lower() == self.wallet_address.lower()

    def is_native(self, tx: RawChainTransaction) -> bool:
        return tx.currency.upper() == self.native_currency

    def warn(self, code: str, message: str, **context: Any) -> None:
        self.warnings.append(Diagnostic(code=code, message=message, context=context))


Stage = Callable[[Sequence[RawChainTransaction], NormalizationContext], list[RawChainTransaction]]


def count_internal(transactions: Iterable[RawChainTransaction]) -> int:
    return sum(1 for tx in transactions if tx.is_internal)


def dedup_key(tx: RawChainTransaction) -> tuple:
    """Identity of a transaction for de-duplication.

    One hash can carry several internal transfers, so internal entries are
    also keyed by sender and amount.
    """
    key = (tx.hash.lower(), tx.currency.upper(), tx.direction.value, tx.internal_id, tx.is_internal)
    if tx.is_internal:
        return key + (tx.from_address.lower(), tx.amount)
    return key


def merge_duplicates(transactions: Iterable[RawChainTransaction]) -> list[RawChainTransaction]:
    """Drop repeated entries, preferring the copy that carries a gas fee.

    First occurrences keep their position, so merging overlapping batches
    gives the same order as merging their union.
    """
    positions: dict[tuple, int] = {}
    result: list[RawChainTransaction] = []
    for tx in transactions:
        key = dedup_key(tx)
        index = positions.get(key)
        if index is None:
            positions[key] = len(result)
            result.append(tx)
        elif result[index].gas_fee <= 0 < tx.gas_fee:
            result[index] = tx
    return result


def deduplicate_transactions(
    transactions: Sequence[RawChainTransaction], context: NormalizationContext
) -> list[RawChainTransaction]:
    return merge_duplicates(transactions)


def filter_successful(
    transactions: Sequence[RawChainTransaction], context: NormalizationContext
) -> list[RawChainTransaction]:
    return [tx for tx in transactions if tx.status == ChainStatus.SUCCESS]


def filter_future(
    transactions: Sequence[RawChainTransaction], context: NormalizationContext
) -> list[RawChainTransaction]:
    """Drop transactions dated after the processing time."""
    kept = [tx for tx in transactions if tx.timestamp <= context.now]
    if len(kept) != len(transactions):
        context.warn(
            "future_transactions",
            f"Dropped {len(transactions) - len(kept)} transaction(s) dated in the future",
            count=len(transactions) - len(kept),
        )
    return kept


def spam_reason(tx: RawChainTransaction, context: NormalizationContext) -> Optional[str]:
    """Return why a transaction looks like spam or phishing, or None."""
    policy = context.policy
    if policy.is_phishing_hash(tx.hash):
        return "phishing_hash"

    destination = tx.to_address.lower()
    if not context.is_wallet(destination) and policy.is_suspicious_destination(destination):
        return "suspicious_destination"
    if "phishing" in destination:
        return "phishing_address"
    if not tx.currency.isascii():
        return "non_ascii_currency"

    # Gas heuristics describe wallet-signed transfers, not transfers
    # triggered by a contract.
    if tx.is_internal:
        return None
    if (
        not context.is_native(tx)
        and tx.amount == 0
        and tx.direction == TransferDirection.OUTGOING
        and tx.gas_used > policy.high_gas_threshold
    ):
        return "zero_value_token_spam"
    for campaign in policy.campaigns:
        if campaign.matches(tx):
            return f"campaign:{campaign.name}"
    if tx.gas_used > policy.extreme_gas_ceiling:
        return "extreme_gas_usage"
    return None


def filter_spam(
    transactions: Sequence[RawChainTransaction], context: NormalizationContext
) -> list[RawChainTransaction]:
    """Drop spam and phishing transactions, reporting how many per reason."""
    kept = []
    removed: dict[str, int] = {}
    for tx in transactions:
        reason = spam_reason(tx, context)
        if reason is None:
            kept.append(tx)
        else:
            removed[reason] = removed.get(reason, 0) + 1
    if removed:
        context.warn(
            "spam_filtered",
            f"Dropped {sum(removed.values())} spam or phishing transaction(s)",
            reasons=removed,
        )
    return kept


def make_fee(
    tx: RawChainTransaction,
    context: NormalizationContext,
    internal_id: str,
    description: Optional[str] = None,
) -> RawChainTransaction:
    """Build the fee entry for the gas a transaction paid."""
    return replace(
        tx,
        amount=tx.gas_fee,
        currency=context.native_currency,
        direction=TransferDirection.FEE,
        to_address=NETWORK_FEE_RECIPIENT,
        token_type=TokenType.NATIVE,
        is_internal=False,
        contract_address=None,
        related_transaction=tx.hash,
        internal_id=internal_id,
        description=description or f"Gas fee for transaction {tx.hash[:10]}...",
    )


def _fee_hashes(transactions: Iterable[RawChainTransaction]) -> set[str]:
    return {
        tx.related_transaction.lower()
        for tx in transactions
        if tx.direction == TransferDirection.FEE and tx.related_transaction
    }


def synthesize_fees(
    transactions: Sequence[RawChainTransaction], context: NormalizationContext
) -> list[RawChainTransaction]:
    """Create fee entries for native transactions whose gas this wallet paid.

    A zero-value carrier is replaced by its fee; a value transfer is kept and
    gets a fee next to it. Received and internal transactions never produce
    fees, and a hash that already has a fee does not get another one.
    """
    fee_hashes = _fee_hashes(transactions)
    result: list[RawChainTransaction] = []
    for tx in transactions:
        pays_gas = (
            tx.direction != TransferDirection.FEE
            and tx.token_type == TokenType.NATIVE
            and context.is_native(tx)
            and not tx.is_internal
            and context.is_wallet(tx.from_address)
            and tx.gas_fee > 0
        )
        if not pays_gas:
            result.append(tx)
            continue

        zero_value = tx.amount == 0
        if tx.hash.lower() not in fee_hashes:
            suffix = "gas-fee" if zero_value else "fee"
            result.append(make_fee(tx, context, f"{tx.hash}-{suffix}"))
            fee_hashes.add(tx.hash.lower())
        if not zero_value:
            result.append(tx)
    return result


def backfill_token_fees(
    transactions: Sequence[RawChainTransaction], context: NormalizationContext
) -> list[RawChainTransaction]:
    """Add fees for token transfers only where a backfill rule applies.

    Token transfer gas normally shows up as a separate native transaction,
    so token transfers do not get fees of their own. Backfilled fees are
    native entries, so only native-scope runs that keep fees add them.
    """
    if not context.is_native_scope or not context.include_fees:
        return list(transactions)

    fee_hashes = _fee_hashes(transactions)
    result: list[RawChainTransaction] = []
    for tx in transactions:
        result.append(tx)
        if (
            tx.token_type == TokenType.NATIVE
            or tx.direction != TransferDirection.OUTGOING
            or not context.is_wallet(tx.from_address)
            or tx.hash.lower() in fee_hashes
        ):
            continue
        rule = context.policy.backfill_rule_for(tx)
        if rule is None:
            continue
        result.append(make_fee(tx, context, f"{tx.hash}-fee", rule.description))
        fee_hashes.add(tx.hash.lower())
        context.warn(
            "fee_backfilled",
            f"{rule.description}: added fee {tx.gas_fee} {context.native_currency}",
            hash=tx.hash,
            amount=str(tx.gas_fee),
        )
    return result


def is_gas_artifact(tx: RawChainTransaction, context: NormalizationContext) -> bool:
    """Zero-value native entry that only records gas spent on a token transfer."""
    return (
        tx.amount == 0
        and context.is_native(tx)
        and tx.direction != TransferDirection.FEE
        and tx.gas_used > 0
        and not tx.is_internal
        and not tx.contract_address
        and tx.from_address.lower() != tx.to_address.lower()
    )


def filter_currency_scope(
    transactions: Sequence[RawChainTransaction], context: NormalizationContext
) -> list[RawChainTransaction]:
    """Restrict the list to the requested currency.

    Native scope keeps native transfers, every fee entry and every internal
    transaction. Token scope keeps transfers of that token, and for known
    tokens only those from the legitimate contract.
    """
    kept: list[RawChainTransaction]
    if context.currency is None:
        kept = list(transactions)
    elif context.currency == context.native_currency:
        kept = []
        for tx in transactions:
            if tx.is_internal or tx.direction == TransferDirection.FEE:
                kept.append(tx)
            elif context.is_native(tx) and tx.token_type == TokenType.NATIVE:
                if not is_gas_artifact(tx, context):
                    kept.append(tx)
    else:
        contract = context.policy.legitimate_contract(context.currency)
        kept = [
            tx
            for tx in transactions
            if tx.currency.upper() == context.currency
            and tx.direction != TransferDirection.FEE
            and (contract is None or (tx.contract_address or "").lower() == contract)
        ]

    if not context.include_fees:
        kept = [tx for tx in kept if tx.direction != TransferDirection.FEE]
    return kept


PIPELINE: tuple[tuple[str, Stage], ...] = (
    ("deduplicate", deduplicate_transactions),
    ("success", filter_successful),
    ("future", filter_future),
    ("spam", filter_spam),
    ("fee_synthesis", synthesize_fees),
    ("fee_backfill", backfill_token_fees),
    ("currency_scope", filter_currency_scope),
)

# Stages that must never reduce the number of internal transactions
INTERNAL_PRESERVING_STAGES = frozenset({"fee_synthesis", "fee_backfill", "currency_scope"})


@dataclass(frozen=True)
class NormalizationResult:
    transactions: tuple[RawChainTransaction, ...]
    warnings: tuple[Diagnostic, ...]
    reconciliation: Optional[ReconciliationReport] = None
    stage_counts: dict[str, int] = field(default_factory=dict)

    @property
    def fees(self) -> list[RawChainTransaction]:
        return [tx for tx in self.transactions if tx.direction == TransferDirection.FEE]

    def to_ledger(self, wallet: Account) -> list[NewTransaction]:
        return to_ledger_transactions(self.transactions, wallet)


def normalize(
    address: str,
    blockchain: str,
    raw_transactions: Iterable[RawChainTransaction],
    oracle: Optional[BalanceOracle] = None,
    *,
    now: datetime,
    currency: Optional[str] = None,
    include_fees: bool = True,
    policy: Optional[SpamPolicy] = None,
    opening_balance: Decimal = Decimal("0"),
) -> NormalizationResult:
    """Clean raw chain transactions and reconcile them with the live balance.

    Args:
        address: Wallet address under analysis
        blockchain: Chain name
        raw_transactions: Raw transactions from the chain data source
        oracle: Live balance lookup; reconciliation is skipped when None
        now: Processing time; later transactions are dropped
        currency: Restrict output to one currency (native or token symbol)
        include_fees: If False, fee entries are left out
        policy: Spam policy (defaults to SpamPolicy.default())
        opening_balance: Native balance before the first transaction

    Returns:
        NormalizationResult with cleaned transactions and warnings

    Raises:
        ValidationError: If the blockchain is not supported
    """
    context = NormalizationContext(
        wallet_address=address,
        blockchain=blockchain,
        now=now,
        policy=policy or SpamPolicy.default(),
        currency=currency,
        include_fees=include_fees,
    )

    transactions = list(raw_transactions)
    stage_counts = {"input": len(transactions)}
    for name, stage in PIPELINE:
        internal_before = count_internal(transactions)
        transactions = stage(transactions, context)
        stage_counts[name] = len(transactions)

        internal_after = count_internal(transactions)
        if (
            name in INTERNAL_PRESERVING_STAGES
            and context.is_native_scope
            and internal_after < internal_before
        ):
            context.warn(
                "internal_transactions_dropped",
                f"Stage '{name}' dropped {internal_before - internal_after} internal transaction(s)",
                stage=name,
                before=internal_before,
                after=internal_after,
            )
    logger.debug("Normalized %s on %s: %s", address, blockchain, stage_counts)

    report = None
    if oracle is not None and context.is_native_scope:
        live = oracle.fetch(address, blockchain, context.native_currency)
        report = reconcile(transactions, live, context.native_currency, opening_balance)
        context.warnings.extend(report.warnings)

    return NormalizationResult(
        transactions=tuple(transactions),
        warnings=tuple(context.warnings),
        reconciliation=report,
        stage_counts=stage_counts,
    )


def _describe(tx: RawChainTransaction) -> str:
    if tx.description:
        return tx.description
    if tx.direction == TransferDirection.INCOMING:
        return f"Received {tx.amount} {tx.currency} from {tx.from_address}"
    return f"Sent {tx.amount} {tx.currency} to {tx.to_address}"


def to_ledger_transaction(tx: RawChainTransaction, wallet: Account) -> NewTransaction:
    """Convert a normalized chain transaction into a ledger entry of a wallet."""
    incoming = tx.direction == TransferDirection.INCOMING
    if incoming:
        net, incoming_amount, outgoing_amount = tx.amount, tx.amount, Decimal("0")
        paid_by, paid_to = tx.from_address, wallet.display_name
    else:
        net, incoming_amount, outgoing_amount = -tx.amount, Decimal("0"), tx.amount
        paid_by, paid_to = wallet.display_name, tx.to_address

    notes = {
        "hash": tx.hash,
        "block_number": tx.block_number,
        "gas_used": tx.gas_used,
        "gas_fee": str(tx.gas_fee),
        "contract_address": tx.contract_address,
        "token_type": tx.token_type.value,
        "blockchain": tx.blockchain,
        "is_internal": tx.is_internal,
        "related_transaction": tx.related_transaction,
    }
    return NewTransaction(
        company_id=wallet.company_id,
        account_id=wallet.id,
        account_type=AccountType.WALLET,
        date=tx.timestamp,
        currency=tx.currency.upper(),
        net_amount=net,
        incoming_amount=incoming_amount,
        outgoing_amount=outgoing_amount,
        status=TransactionStatus.CLEARED if tx.status == ChainStatus.SUCCESS else TransactionStatus.PENDING,
        reconciliation_status=ReconciliationStatus.UNRECONCILED,
        category=LEDGER_CATEGORY,
        description=_describe(tx),
        reference=tx.entry_id,
        paid_by=paid_by,
        paid_to=paid_to,
        notes=json.dumps(notes, sort_keys=True),
        linked_entry_type=LINKED_ENTRY_TYPE,
    )


def to_ledger_transactions(
    transactions: Iterable[RawChainTransaction], wallet: Account
) -> list[NewTransaction]:
    return [to_ledger_transaction(tx, wallet) for tx in transactions]
