"""Currency accumulation and sorting helpers shared by the balance engine
and the chain transaction normalizer."""

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from functools import cmp_to_key
from typing import Any, Callable, Iterable, Sequence, TypeVar

T = TypeVar("T")

SortKey = tuple[Callable[[Any], Any], bool]


@dataclass
class CurrencyFlow:
    """Running incoming/outgoing totals for one currency."""

    incoming: Decimal = Decimal("0")
    outgoing: Decimal = Decimal("0")

    @property
    def net(self) -> Decimal:
        return self.incoming - self.outgoing


class CurrencyAccumulator:
    """Builds a currency -> {incoming, outgoing, net} mapping."""

    def __init__(self):
        self._flows: defaultdict[str, CurrencyFlow] = defaultdict(CurrencyFlow)

    def add(
        self,
        currency: str,
        incoming: Decimal = Decimal("0"),
        outgoing: Decimal = Decimal("0"),
    ) -> None:
        flow = self._flows[currency]
        flow.incoming += incoming
        flow.outgoing += outgoing

    def flow(self, currency: str) -> CurrencyFlow:
        """Return totals for a currency; zero totals when nothing was added."""
        existing = self._flows.get(currency)
        if existing is None:
            return CurrencyFlow()
        return CurrencyFlow(existing.incoming, existing.outgoing)

    def currencies(self) -> list[str]:
        return sorted(self._flows)

    def as_dict(self) -> dict[str, dict[str, Decimal]]:
        return {
            currency: {"incoming": flow.incoming, "outgoing": flow.outgoing, "net": flow.net}
            for currency, flow in sorted(self._flows.items())
        }


def build_comparator(fields: Sequence[SortKey]) -> Callable[[Any, Any], int]:
    """Build a comparison function over several fields.

    Args:
        fields: Sequence of (key function, descending) pairs, most significant first.
            Missing values (None) always sort last.

    Returns:
        A cmp-style function returning -1, 0 or 1
    """

    def compare(left: Any, right: Any) -> int:
        for key, descending in fields:
            a, b = key(left), key(right)
            if a == b:
                continue
            if a is None:
                return 1
            if b is None:
                return -1
            result = -1 if a < b else 1
            return -result if descending else result
        return 0

    return compare


def stable_sorted(items: Iterable[T], fields: Sequence[SortKey]) -> list[T]:
    """Sort items by several fields; equal items keep their input order."""
    return sorted(items, key=cmp_to_key(build_comparator(fields)))
