"""Serialization and export of computed balances."""

import csv
import io
import json
from decimal import Decimal
from typing import Any, Iterable

from ledgerkit.domain.entities import BalanceListItem, BalanceSummary

CSV_COLUMNS = [
    "key",
    "account_type",
    "account_id",
    "account_name",
    "company",
    "currency",
    "initial_balance",
    "incoming_amount",
    "outgoing_amount",
    "transaction_balance",
    "final_balance",
    "last_transaction_date",
]


def serialize_item(item: BalanceListItem) -> dict[str, Any]:
    """Convert a balance item to a flat dict. Amounts stay Decimal."""
    return {
        "key": item.key,
        "account_type": item.account.account_type.value,
        "account_id": item.account.id,
        "account_name": item.display_name,
        "company": item.company.trading_name if item.company else None,
        "currency": item.currency,
        "initial_balance": item.initial_balance,
        "incoming_amount": item.incoming_amount,
        "outgoing_amount": item.outgoing_amount,
        "transaction_balance": item.transaction_balance,
        "final_balance": item.final_balance,
        "last_transaction_date": (
            item.last_transaction_date.isoformat() if item.last_transaction_date else None
        ),
    }


def summary_to_dict(summary: BalanceSummary) -> dict[str, Any]:
    return {
        "total_assets": summary.total_assets,
        "total_liabilities": summary.total_liabilities,
        "net_worth": summary.net_worth,
        "account_count": summary.account_count,
        "bank_account_count": summary.bank_account_count,
        "wallet_count": summary.wallet_count,
        "currency_breakdown": {
            currency: {
                "assets": totals.assets,
                "liabilities": totals.liabilities,
                "net_worth": totals.net_worth,
            }
            for currency, totals in summary.currency_breakdown.items()
        },
    }


def _json_default(value: Any) -> str:
    if isinstance(value, Decimal):
        return str(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def to_json(payload: Any, indent: int | None = 2) -> str:
    """Dump a payload to JSON, writing Decimal amounts as strings."""
    return json.dumps(payload, default=_json_default, indent=indent)


def export_json(items: Iterable[BalanceListItem]) -> str:
    return to_json([serialize_item(item) for item in items])


def export_csv(items: Iterable[BalanceListItem]) -> str:
    """Export balance items as CSV text with a header row."""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=CSV_COLUMNS, lineterminator="\n")
    writer.writeheader()
    for item in items:
        row = serialize_item(item)
        writer.writerow({column: "" if row[column] is None else row[column] for column in CSV_COLUMNS})
    return buffer.getvalue()
