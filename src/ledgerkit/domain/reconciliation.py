"""Balance reconciliation against a live on-chain balance.

Reconciliation only reports; it never changes the transaction list.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional

from ledgerkit.domain.entities import Diagnostic, RawChainTransaction, TransferDirection
from ledgerkit.domain.errors import ChainSourceError
from ledgerkit.integrations.base import ChainDataSource, NativeBalance

logger = logging.getLogger(__name__)

ROUNDING_TOLERANCE = Decimal("0.000001")
SIGNIFICANT_DIFFERENCE = Decimal("0.001")

STATUS_MATCHED = "matched"
STATUS_DISCREPANCY = "discrepancy"
STATUS_SKIPPED = "skipped"


@dataclass(frozen=True)
class ReconciliationReport:
    currency: str
    calculated_balance: Decimal
    live_balance: Optional[Decimal]
    difference: Optional[Decimal]
    status: str
    direction: Optional[str] = None
    is_significant: bool = False
    warnings: tuple[Diagnostic, ...] = ()


class BalanceOracle:
    """Live balance lookup: one primary call, then one direct fallback call."""

    def __init__(self, primary: ChainDataSource, fallback: Optional[ChainDataSource] = None):
        self.primary = primary
        self.fallback = fallback

    @staticmethod
    def _query(source: ChainDataSource, address: str, blockchain: str, currency: str) -> NativeBalance:
        try:
            return source.get_native_balance(address, blockchain)
        except ChainSourceError as e:
            return NativeBalance(balance=None, currency=currency, is_live=False, error=str(e))

    def fetch(self, address: str, blockchain: str, currency: str) -> NativeBalance:
        result = self._query(self.primary, address, blockchain, currency)
        if result.is_live or self.fallback is None:
            return result

        logger.info("Primary balance lookup failed (%s), trying fallback", result.error)
        fallback_result = self._query(self.fallback, address, blockchain, currency)
        if fallback_result.is_live:
            return fallback_result
        return NativeBalance(
            balance=None,
            currency=currency,
            is_live=False,
            error=f"primary: {result.error}; fallback: {fallback_result.error}",
        )


def calculate_balance(
    transactions: Iterable[RawChainTransaction],
    currency: str,
    opening_balance: Decimal = Decimal("0"),
) -> Decimal:
    """Sum incoming minus (outgoing + fees) for one currency."""
    incoming = Decimal("0")
    outgoing = Decimal("0")
    currency = currency.upper()
    for tx in transactions:
        if tx.currency.upper() != currency:
            continue
        if tx.direction == TransferDirection.INCOMING:
            incoming += tx.amount
        else:
            outgoing += tx.amount
    return opening_balance + incoming - outgoing


def reconcile(
    transactions: Iterable[RawChainTransaction],
    live: NativeBalance,
    currency: str,
    opening_balance: Decimal = Decimal("0"),
) -> ReconciliationReport:
    """Compare the transaction-derived balance with a live balance.

    Args:
        transactions: Normalized transactions (transfers and fees)
        live: Result of the live balance lookup
        currency: Currency being reconciled (the chain's native token)
        opening_balance: Balance before the first transaction

    Returns:
        ReconciliationReport; discrepancies and an unavailable oracle are
        reported as warnings
    """
    calculated = calculate_balance(transactions, currency, opening_balance)

    if not live.is_live or live.balance is None:
        return ReconciliationReport(
            currency=currency,
            calculated_balance=calculated,
            live_balance=None,
            difference=None,
            status=STATUS_SKIPPED,
            warnings=(
                Diagnostic(
                    code="oracle_unavailable",
                    message="Live balance unavailable, reconciliation skipped",
                    context={"currency": currency, "error": live.error},
                ),
            ),
        )

    difference = live.balance - calculated
    if abs(difference) <= ROUNDING_TOLERANCE:
        return ReconciliationReport(
            currency=currency,
            calculated_balance=calculated,
            live_balance=live.balance,
            difference=difference,
            status=STATUS_MATCHED,
        )

    if difference > 0:
        direction = "higher"
        cause = "missing incoming transactions"
    else:
        direction = "lower"
        cause = "missing outgoing transactions or fees"
    is_significant = abs(difference) > SIGNIFICANT_DIFFERENCE

    warning = Diagnostic(
        code="balance_discrepancy",
        message=(
            f"Live {currency} balance is {direction} than the calculated balance "
            f"by {abs(difference)}; likely {cause}. Re-import with a wider date range."
        ),
        context={
            "currency": currency,
            "calculated": str(calculated),
            "live": str(live.balance),
            "difference": str(difference),
            "direction": direction,
            "significant": is_significant,
        },
    )
    return ReconciliationReport(
        currency=currency,
        calculated_balance=calculated,
        live_balance=live.balance,
        difference=difference,
        status=STATUS_DISCREPANCY,
        direction=direction,
        is_significant=is_significant,
        warnings=(warning,),
    )
