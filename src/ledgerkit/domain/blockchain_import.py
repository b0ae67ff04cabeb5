"""Blockchain wallet import domain service."""

import logging
from datetime import datetime
from typing import Any, Optional, Sequence

from ledgerkit.database.base import Database
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.chains import native_currency
from ledgerkit.domain.entities import AccountType, Diagnostic, NewTransaction, RawChainTransaction
from ledgerkit.domain.errors import (
    ChainSourceError,
    DomainError,
    ValidationError,
    invalid_date_range,
    wallet_without_address,
)
from ledgerkit.domain.normalizer import SpamPolicy, normalize
from ledgerkit.domain.reconciliation import BalanceOracle
from ledgerkit.integrations.base import ChainDataSource, FetchOptions
from ledgerkit.utils.date_parser import utc_now

logger = logging.getLogger(__name__)


class BlockchainImportService:
    """Service for importing on-chain transactions into a wallet's ledger."""

    def __init__(
        self,
        db: Database,
        source: ChainDataSource,
        oracle: Optional[BalanceOracle] = None,
        policy: Optional[SpamPolicy] = None,
    ):
        """Initialize blockchain import service.

        Args:
            db: Database instance
            source: Chain data source used to fetch raw transactions
            oracle: Live balance lookup for reconciliation (optional)
            policy: Spam policy passed to the normalizer
        """
        self.db = db
        self.source = source
        self.oracle = oracle
        self.policy = policy or SpamPolicy.default()
        self.account_service = AccountService(db)

    def import_wallet(
        self,
        wallet_id: int,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        currencies: Optional[Sequence[str]] = None,
        limit: int = 5000,
        overwrite_duplicates: bool = False,
        now: Optional[datetime] = None,
    ) -> dict[str, Any]:
        """Fetch, normalize and store a wallet's on-chain transactions.

        Currencies are fetched one after another. If any fetch fails nothing
        is written. New rows and overwrites are stored in a single batch.

        Args:
            wallet_id: Wallet ID
            start_date: Only import transactions at or after this moment
            end_date: Only import transactions at or before this moment
            currencies: Currencies to import (defaults to the wallet's list)
            limit: Maximum raw transactions fetched per currency
            overwrite_duplicates: Replace already imported transactions
            now: Processing time (defaults to the current UTC time)

        Returns:
            Dict with import results:
            - success: whether the import was written
            - imported_transactions: rows inserted or overwritten
            - duplicate_transactions: rows skipped as already imported
            - errors: list of error messages
            - warnings: list of warning dicts (code, message, context)
        """
        now = now or utc_now()
        result: dict[str, Any] = {
            "success": False,
            "imported_transactions": 0,
            "duplicate_transactions": 0,
            "errors": [],
            "warnings": [],
        }

        try:
            wallet = self.account_service.require_account(wallet_id, AccountType.WALLET)
            if not wallet.wallet_address or not wallet.blockchain:
                raise ValidationError(wallet_without_address(wallet_id))
            native = native_currency(wallet.blockchain)
            if start_date and end_date and start_date > end_date:
                raise ValidationError(invalid_date_range(start_date, end_date))
        except DomainError as e:
            result["errors"].append(str(e))
            return result

        selected = [c.strip().upper() for c in (currencies or wallet.currency_list()) if c.strip()]
        fetched: dict[str, list[RawChainTransaction]] = {}
        for currency in selected:
            options = FetchOptions(currency=currency, start_date=start_date, end_date=end_date, limit=limit)
            try:
                fetched[currency] = self.source.get_transaction_history(
                    wallet.wallet_address, wallet.blockchain, options
                )
            except (ChainSourceError, ValidationError) as e:
                logger.error("Import of wallet %d aborted while fetching %s: %s", wallet_id, currency, e)
                result["errors"].append(f"Failed to fetch {currency}: {e}")
                return result

        # Tokens go first so the native run sees the cleaned token transfers
        # and can backfill the fees they are missing.
        order = sorted(fetched, key=lambda currency: currency == native)
        records: list[NewTransaction] = []
        warnings: list[Diagnostic] = []
        token_transfers: list[RawChainTransaction] = []
        for currency in order:
            raw = fetched[currency]
            if currency == native:
                raw = raw + token_transfers
            normalized = normalize(
                wallet.wallet_address,
                wallet.blockchain,
                raw,
                self.oracle,
                now=now,
                currency=currency,
                policy=self.policy,
            )
            if currency != native:
                token_transfers.extend(normalized.transactions)

            for warning in normalized.warnings:
                logger.warning("Wallet %d (%s): %s", wallet_id, currency, warning.message)
            warnings.extend(normalized.warnings)
            records.extend(normalized.to_ledger(wallet))

        new_records, replacements, duplicates = self._split_duplicates(wallet_id, records, overwrite_duplicates)
        self.db.append_transactions(new_records, replacements)

        result.update(
            success=True,
            imported_transactions=len(new_records) + len(replacements),
            duplicate_transactions=duplicates,
            warnings=[warning.to_dict() for warning in warnings],
        )
        logger.info(
            "Imported %d transaction(s) into wallet %d, %d duplicate(s)",
            result["imported_transactions"],
            wallet_id,
            duplicates,
        )
        return result

    def _split_duplicates(
        self, wallet_id: int, records: Sequence[NewTransaction], overwrite: bool
    ) -> tuple[list[NewTransaction], dict[int, NewTransaction], int]:
        new_records: list[NewTransaction] = []
        replacements: dict[int, NewTransaction] = {}
        duplicates = 0
        seen: set[tuple[str, str]] = set()
        for record in records:
            key = (record.reference or "", record.currency)
            if key in seen:
                duplicates += 1
                continue
            seen.add(key)

            existing = self.db.find_transaction_by_reference(
                wallet_id, AccountType.WALLET, record.reference, record.currency
            )
            if existing is None:
                new_records.append(record)
            elif overwrite:
                replacements[existing.id] = record
            else:
                duplicates += 1
        return new_records, replacements, duplicates
