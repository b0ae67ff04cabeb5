"""Balance derivation engine.

Computes per-account balances from initial balances and ledger transactions
restricted to a reporting period. Everything here is a pure function of its
inputs: no I/O and no mutation of the records passed in.
"""

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Iterable, Mapping, Optional, Sequence

from dateutil.relativedelta import relativedelta

from ledgerkit.domain.entities import (
    Account,
    AccountType,
    BalanceListItem,
    BalanceResult,
    BalanceSummary,
    Company,
    CurrencyTotals,
    Diagnostic,
    InitialBalance,
    Transaction,
)
from ledgerkit.utils.aggregation import CurrencyAccumulator, stable_sorted
from ledgerkit.utils.periods import Period, resolve_period_window

ZERO = Decimal("0")
ZERO_BALANCE_THRESHOLD = Decimal("0.01")
STALE_AFTER_MONTHS = 6


class AccountTypeFilter(str, Enum):
    ALL = "all"
    BANKS = "banks"
    WALLETS = "wallets"


class ViewFilter(str, Enum):
    """Asset/liability view. Equity shows the same accounts as assets."""

    ALL = "all"
    ASSETS = "assets"
    LIABILITIES = "liabilities"
    EQUITY = "equity"


class SortField(str, Enum):
    ACCOUNT_NAME = "account_name"
    COMPANY_NAME = "company_name"
    FINAL_BALANCE = "final_balance"
    CURRENCY = "currency"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class GroupBy(str, Enum):
    NONE = "none"
    ACCOUNT = "account"
    CURRENCY = "currency"
    TYPE = "type"


@dataclass(frozen=True)
class BalanceFilters:
    """Filter and sort options applied after balances are computed."""

    company_id: Optional[int] = None
    account_type: AccountTypeFilter = AccountTypeFilter.ALL
    search: str = ""
    show_zero_balances: bool = True
    view_filter: ViewFilter = ViewFilter.ALL
    sort_field: SortField = SortField.FINAL_BALANCE
    sort_direction: SortDirection = SortDirection.DESC


@dataclass(frozen=True)
class BalanceValidation:
    errors: tuple[Diagnostic, ...]
    warnings: tuple[Diagnostic, ...]

    @property
    def valid(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class _Entry:
    """One balance line to compute: a whole account or one wallet currency."""

    key: str
    account: Account
    display_name: str
    currency: str
    currency_scoped: bool


def account_key(account_type: AccountType, account_id: int) -> str:
    return f"{account_type.value}:{account_id}"


def expand_account(account: Account) -> list[_Entry]:
    """Split multi-currency wallets into one entry per currency."""
    base_key = account_key(account.account_type, account.id)
    currencies = account.currency_list()
    if not account.is_wallet or len(currencies) <= 1:
        return [_Entry(base_key, account, account.display_name, account.currency, False)]
    return [
        _Entry(
            key=f"{base_key}-{currency}",
            account=account,
            display_name=f"{account.display_name} ({currency})",
            currency=currency,
            currency_scoped=True,
        )
        for currency in currencies
    ]


def _initial_amount_for(
    entry: _Entry, entries: Sequence[_Entry], initial: Optional[InitialBalance]
) -> Decimal:
    """Initial balance belonging to an entry; absence means zero."""
    if initial is None:
        return ZERO
    if not entry.currency_scoped:
        return initial.amount

    # Multi-currency wallet: the balance belongs to its own currency,
    # falling back to the primary currency entry, then the first entry.
    target = initial.currency.upper()
    currencies = [e.currency for e in entries]
    if target not in currencies:
        target = entry.account.currency.upper()
        if target not in currencies:
            target = currencies[0]
    return initial.amount if entry.currency == target else ZERO


def _search_text(item: BalanceListItem) -> list[str]:
    account = item.account
    values = [
        item.display_name,
        account.name,
        account.bank_name,
        account.account_number,
        item.currency,
        item.company.trading_name if item.company else None,
    ]
    return [value.lower() for value in values if value]


def apply_filters(
    items: Iterable[BalanceListItem], filters: BalanceFilters
) -> list[BalanceListItem]:
    """Apply company, search, account-type, view and zero-balance filters."""
    result = list(items)

    if filters.company_id is not None:
        result = [i for i in result if i.account.company_id == filters.company_id]

    term = filters.search.strip().lower()
    if term:
        result = [i for i in result if any(term in text for text in _search_text(i))]

    if filters.account_type == AccountTypeFilter.BANKS:
        result = [i for i in result if i.account.account_type == AccountType.BANK]
    elif filters.account_type == AccountTypeFilter.WALLETS:
        result = [i for i in result if i.account.account_type == AccountType.WALLET]

    if filters.view_filter in (ViewFilter.ASSETS, ViewFilter.EQUITY):
        result = [i for i in result if i.final_balance >= 0]
    elif filters.view_filter == ViewFilter.LIABILITIES:
        result = [i for i in result if i.final_balance < 0]

    if not filters.show_zero_balances:
        result = [i for i in result if abs(i.final_balance) > ZERO_BALANCE_THRESHOLD]

    return result


_SORT_KEYS = {
    SortField.ACCOUNT_NAME: lambda item: item.display_name.casefold(),
    SortField.COMPANY_NAME: lambda item: item.company.trading_name.casefold() if item.company else None,
    SortField.FINAL_BALANCE: lambda item: item.final_balance,
    SortField.CURRENCY: lambda item: item.currency.casefold(),
}


def sort_balances(
    items: Iterable[BalanceListItem],
    field: SortField = SortField.FINAL_BALANCE,
    direction: SortDirection = SortDirection.DESC,
) -> list[BalanceListItem]:
    """Sort balance items; ties keep their input order."""
    key = _SORT_KEYS.get(field, _SORT_KEYS[SortField.FINAL_BALANCE])
    return stable_sorted(items, [(key, direction == SortDirection.DESC)])


def summarize_balances(items: Sequence[BalanceListItem]) -> BalanceSummary:
    """Build totals, account counts and a per-currency breakdown.

    Counts are over distinct underlying accounts, so a wallet split into
    several currency entries is counted once.
    """
    total_assets = ZERO
    total_liabilities = ZERO
    net_worth = ZERO
    by_currency: defaultdict[str, list[Decimal]] = defaultdict(lambda: [ZERO, ZERO, ZERO])
    accounts: set[tuple[AccountType, int]] = set()

    for item in items:
        balance = item.final_balance
        assets = max(balance, ZERO)
        liabilities = max(-balance, ZERO)
        total_assets += assets
        total_liabilities += liabilities
        net_worth += balance

        totals = by_currency[item.currency]
        totals[0] += assets
        totals[1] += liabilities
        totals[2] += balance

        accounts.add((item.account.account_type, item.account.id))

    return BalanceSummary(
        total_assets=total_assets,
        total_liabilities=total_liabilities,
        net_worth=net_worth,
        account_count=len(accounts),
        bank_account_count=sum(1 for t, _ in accounts if t == AccountType.BANK),
        wallet_count=sum(1 for t, _ in accounts if t == AccountType.WALLET),
        currency_breakdown={
            currency: CurrencyTotals(assets=v[0], liabilities=v[1], net_worth=v[2])
            for currency, v in sorted(by_currency.items())
        },
    )


def compute_balances(
    accounts: Sequence[Account],
    initial_balances: Iterable[InitialBalance],
    transactions: Iterable[Transaction],
    period: "str | Period",
    now: datetime,
    filters: BalanceFilters = BalanceFilters(),
    companies: Optional[Mapping[int, Company]] = None,
    custom_start: Optional[date] = None,
    custom_end: Optional[date] = None,
) -> BalanceResult:
    """Compute balances for a set of accounts over a reporting period.

    finalBalance = initialBalance + sum(incoming - outgoing) for the
    non-deleted transactions dated inside the period window.

    Args:
        accounts: Bank accounts and wallets in scope
        initial_balances: Initial balances; accounts without one start at zero
        transactions: Candidate ledger transactions
        period: Reporting period name
        now: Current time used to resolve the period window
        filters: Post-computation filter and sort options
        companies: Company lookup for labeling and search
        custom_start: Start date for the custom period
        custom_end: End date for the custom period

    Returns:
        BalanceResult with sorted items, summary and data-integrity warnings

    Raises:
        ValidationError: If the period or custom range is invalid
    """
    window = resolve_period_window(period, now, custom_start, custom_end)
    companies = companies or {}

    initial_by_account = {(ib.account_type, ib.account_id): ib for ib in initial_balances}
    known_accounts = {(a.account_type, a.id) for a in accounts}

    by_account: defaultdict[tuple[AccountType, int], list[Transaction]] = defaultdict(list)
    orphans: defaultdict[tuple[AccountType, int], int] = defaultdict(int)
    for txn in transactions:
        if txn.is_deleted:
            continue
        account_ref = (txn.account_type, txn.account_id)
        if account_ref not in known_accounts:
            orphans[account_ref] += 1
            continue
        if window is not None and not window.contains(txn.date):
            continue
        by_account[account_ref].append(txn)

    items = []
    for account in accounts:
        account_ref = (account.account_type, account.id)
        entries = expand_account(account)
        for entry in entries:
            items.append(
                _compute_entry(
                    entry,
                    _initial_amount_for(entry, entries, initial_by_account.get(account_ref)),
                    by_account.get(account_ref, []),
                    companies.get(account.company_id),
                )
            )

    warnings = tuple(
        Diagnostic(
            code="orphaned_transactions",
            message=f"{count} transaction(s) reference unknown {account_type.value} {account_id}",
            context={"account_type": account_type.value, "account_id": account_id, "count": count},
        )
        for (account_type, account_id), count in sorted(orphans.items())
    )

    filtered = apply_filters(items, filters)
    ordered = sort_balances(filtered, filters.sort_field, filters.sort_direction)
    return BalanceResult(
        items=tuple(ordered),
        summary=summarize_balances(ordered),
        warnings=warnings,
    )


def _compute_entry(
    entry: _Entry,
    initial_amount: Decimal,
    transactions: Sequence[Transaction],
    company: Optional[Company],
) -> BalanceListItem:
    flows = CurrencyAccumulator()
    last_date: Optional[datetime] = None
    for txn in transactions:
        if entry.currency_scoped and txn.currency.upper() != entry.currency:
            continue
        incoming, outgoing = txn.split_amounts()
        flows.add(entry.currency, incoming, outgoing)
        if last_date is None or txn.date > last_date:
            last_date = txn.date

    flow = flows.flow(entry.currency)
    transaction_balance = flow.net
    return BalanceListItem(
        key=entry.key,
        account=entry.account,
        company=company,
        display_name=entry.display_name,
        currency=entry.currency,
        initial_balance=initial_amount,
        transaction_balance=transaction_balance,
        final_balance=initial_amount + transaction_balance,
        incoming_amount=flow.incoming,
        outgoing_amount=flow.outgoing,
        last_transaction_date=last_date,
    )


@dataclass(frozen=True)
class BalanceGroup:
    name: str
    items: tuple[BalanceListItem, ...]
    total: Decimal

    @property
    def count(self) -> int:
        return len(self.items)


def _make_group(name: str, items: Sequence[BalanceListItem]) -> BalanceGroup:
    return BalanceGroup(name=name, items=tuple(items), total=sum((i.final_balance for i in items), ZERO))


def group_balances(items: Iterable[BalanceListItem], group_by: GroupBy) -> list[BalanceGroup]:
    """Group balance items for display, groups ordered by name.

    Totals add final balances as they are, even across currencies.
    """
    items = list(items)
    if group_by == GroupBy.NONE:
        return [_make_group("All Accounts", items)]

    grouped: defaultdict[str, list[BalanceListItem]] = defaultdict(list)
    for item in items:
        is_bank = item.account.account_type == AccountType.BANK
        if group_by == GroupBy.ACCOUNT:
            name = "Bank Accounts" if is_bank else "Digital Wallets"
        elif group_by == GroupBy.CURRENCY:
            name = item.currency
        else:
            name = f"{'Banks' if is_bank else 'Wallets'} ({item.currency})"
        grouped[name].append(item)

    return [_make_group(name, grouped[name]) for name in sorted(grouped)]


def validate_balance_data(items: Sequence[BalanceListItem], now: datetime) -> BalanceValidation:
    """Check computed balances for missing labels and stale accounts."""
    errors: list[Diagnostic] = []
    warnings: list[Diagnostic] = []
    stale_before = now - relativedelta(months=STALE_AFTER_MONTHS)

    for item in items:
        context = {"key": item.key}
        if item.company is None:
            errors.append(Diagnostic("missing_company", f"{item.display_name}: missing company", context))
        if not item.final_balance.is_finite():
            errors.append(Diagnostic("invalid_balance", f"{item.display_name}: invalid final balance", context))
        if not item.currency:
            errors.append(Diagnostic("missing_currency", f"{item.display_name}: missing currency", context))
        if item.last_transaction_date is not None and item.last_transaction_date < stale_before:
            warnings.append(
                Diagnostic(
                    "stale_account",
                    f"{item.display_name}: last transaction over {STALE_AFTER_MONTHS} months ago",
                    {**context, "last_transaction_date": item.last_transaction_date.isoformat()},
                )
            )

    return BalanceValidation(errors=tuple(errors), warnings=tuple(warnings))
