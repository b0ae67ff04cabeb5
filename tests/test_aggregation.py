"""Tests for currency accumulation and multi-field sorting."""

from decimal import Decimal

from ledgerkit.utils.aggregation import CurrencyAccumulator, build_comparator, stable_sorted


def test_accumulator_tracks_currencies_separately():
    """Test incoming, outgoing and net per currency."""
    acc = CurrencyAccumulator()
    acc.add("USD", incoming=Decimal("60"))
    acc.add("USD", outgoing=Decimal("20"))
    acc.add("EUR", incoming=Decimal("5"))

    assert acc.flow("USD").net == Decimal("40")
    assert acc.currencies() == ["EUR", "USD"]
    assert acc.as_dict()["EUR"] == {
        "incoming": Decimal("5"),
        "outgoing": Decimal("0"),
        "net": Decimal("5"),
    }


def test_accumulator_unknown_currency_is_zero():
    """Test that asking for an unseen currency does not create it."""
    acc = CurrencyAccumulator()

    assert acc.flow("BTC").net == Decimal("0")
    assert acc.currencies() == []


def test_flow_returns_a_copy():
    """Test that mutating a returned flow leaves the accumulator unchanged."""
    acc = CurrencyAccumulator()
    acc.add("USD", incoming=Decimal("1"))

    acc.flow("USD").incoming += Decimal("100")

    assert acc.flow("USD").incoming == Decimal("1")


def test_stable_sorted_keeps_input_order_for_ties():
    """Test that equal keys keep their insertion order in both directions."""
    rows = [("a", 1), ("b", 2), ("c", 1), ("d", 2)]

    ascending = stable_sorted(rows, [(lambda r: r[1], False)])
    descending = stable_sorted(rows, [(lambda r: r[1], True)])

    assert [r[0] for r in ascending] == ["a", "c", "b", "d"]
    assert [r[0] for r in descending] == ["b", "d", "a", "c"]


def test_comparator_uses_secondary_fields_and_puts_none_last():
    """Test multi-field comparison with missing values."""
    rows = [("x", None), ("y", 3), ("x", 1), ("y", None)]
    fields = [(lambda r: r[0], False), (lambda r: r[1], True)]

    assert stable_sorted(rows, fields) == [("x", 1), ("x", None), ("y", 3), ("y", None)]
    assert build_comparator(fields)(("x", 1), ("x", 1)) == 0
