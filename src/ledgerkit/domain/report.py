"""Balance report service: loads ledger data and serves cached balance reports."""

import logging
import time
from dataclasses import asdict
from datetime import date, datetime
from typing import Any, Callable, Optional

from ledgerkit.database.base import Database
from ledgerkit.domain.balance import BalanceFilters, compute_balances
from ledgerkit.domain.entities import BalanceResult
from ledgerkit.domain.export import serialize_item, summary_to_dict
from ledgerkit.utils.cache import TTLCache
from ledgerkit.utils.date_parser import utc_now
from ledgerkit.utils.periods import Period

logger = logging.getLogger(__name__)


class BalanceReportService:
    """Service for building balance reports from the database."""

    def __init__(
        self,
        db: Database,
        cache: Optional[TTLCache] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize balance report service.

        Args:
            db: Database instance
            cache: Result cache for identical requests (optional)
            clock: Source of the current time used for period windows
        """
        self.db = db
        self.cache = cache
        self.clock = clock

    def compute(
        self,
        period: "str | Period" = Period.ALL_TIME,
        custom_start: Optional[date] = None,
        custom_end: Optional[date] = None,
        filters: BalanceFilters = BalanceFilters(),
    ) -> BalanceResult:
        """Compute balances for all active accounts.

        Raises:
            ValidationError: If the period or custom range is invalid
        """
        companies = {company.id: company for company in self.db.list_companies()}
        return compute_balances(
            accounts=self.db.list_accounts(),
            initial_balances=self.db.list_initial_balances(),
            transactions=self.db.list_transactions(),
            period=period,
            now=self.clock(),
            filters=filters,
            companies=companies,
            custom_start=custom_start,
            custom_end=custom_end,
        )

    def get_report(
        self,
        period: "str | Period" = Period.ALL_TIME,
        custom_start: Optional[date] = None,
        custom_end: Optional[date] = None,
        filters: BalanceFilters = BalanceFilters(),
    ) -> dict[str, Any]:
        """Get a balance report, served from the cache when possible.

        Args:
            period: Reporting period
            custom_start: Start date for the custom period
            custom_end: End date for the custom period
            filters: Filter, search and sort options

        Returns:
            Dict with keys data, summary, warnings, filters, response_time
            (milliseconds) and cached

        Raises:
            ValidationError: If the period or custom range is invalid
        """
        started = time.perf_counter()
        period = Period.parse(period)
        key = (period, custom_start, custom_end, filters)

        payload = self.cache.get(key) if self.cache is not None else None
        cached = payload is not None
        if payload is None:
            result = self.compute(period, custom_start, custom_end, filters)
            payload = {
                "data": [serialize_item(item) for item in result.items],
                "summary": summary_to_dict(result.summary),
                "warnings": [warning.to_dict() for warning in result.warnings],
                "filters": {
                    "period": period.value,
                    "custom_start": custom_start.isoformat() if custom_start else None,
                    "custom_end": custom_end.isoformat() if custom_end else None,
                    **{name: getattr(value, "value", value) for name, value in asdict(filters).items()},
                },
            }
            for warning in result.warnings:
                logger.warning(warning.message)
            if self.cache is not None:
                self.cache.set(key, payload)

        response_time = round((time.perf_counter() - started) * 1000, 2)
        logger.debug("Balance report %s served in %sms (cached=%s)", key, response_time, cached)
        return {**payload, "response_time": response_time, "cached": cached}

    def invalidate(self) -> None:
        """Drop cached reports, e.g. after writing transactions."""
        if self.cache is not None:
            self.cache.clear()
