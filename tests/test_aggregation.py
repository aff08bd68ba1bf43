"""Tests for sheet aggregation."""

import math
from uuid import uuid4

import pytest

from nutrition_platform.domain.catalog import AmountFact
from nutrition_platform.domain.diet import DietEntry
from nutrition_platform.services.aggregation import aggregate, round_display
from nutrition_platform.services.amounts import AmountTable
from tests.conftest import sample_facts

COLUMNS = ["n-cal", "n-pro", "n-fat", "n-fib"]
FOODS = ["f-apple", "f-banana", "f-oats"]


def _table() -> AmountTable:
    table = AmountTable()
    table.apply(FOODS, COLUMNS, sample_facts())
    return table


def _entry(food_id: str, grams: float) -> DietEntry:
    return DietEntry(id=uuid4(), food_id=food_id, grams=grams)


def test_rows_scale_amounts_by_grams() -> None:
    entry = _entry("f-apple", 150)

    sheet = aggregate([entry], _table(), ["n-cal", "n-pro"], {"f-apple": "Apple"})

    row = sheet.rows[0]
    assert row.entry_id == entry.id
    assert row.food_name == "Apple"
    assert row.values["n-cal"] == pytest.approx(78.0)
    assert row.values["n-pro"] == pytest.approx(0.45)
    assert sheet.total_grams == 150


def test_totals_match_sum_of_scaled_amounts() -> None:
    table = _table()
    entries = [
        _entry("f-apple", 150),
        _entry("f-banana", 100),
        _entry("f-oats", 42.5),
        _entry("f-apple", 12.25),
    ]

    sheet = aggregate(entries, table, COLUMNS)

    for nutrient_id in COLUMNS:
        expected = sum(
            table.amount(entry.food_id, nutrient_id) * entry.grams / 100
            for entry in entries
        )
        assert sheet.totals[nutrient_id] == pytest.approx(expected)


def test_missing_facts_count_as_zero() -> None:
    sheet = aggregate([_entry("f-apple", 200)], _table(), ["n-fat"])

    assert sheet.rows[0].values["n-fat"] == 0.0
    assert sheet.totals["n-fat"] == 0.0


def test_empty_ledger_yields_zero_totals() -> None:
    sheet = aggregate([], _table(), COLUMNS)

    assert sheet.rows == []
    assert sheet.totals == {nutrient_id: 0.0 for nutrient_id in COLUMNS}
    assert sheet.total_grams == 0.0


def test_invalid_entries_stay_visible_but_count_as_zero() -> None:
    entries = [
        _entry("f-banana", 100),
        _entry("f-apple", math.nan),
        _entry("f-oats", -20),
    ]

    sheet = aggregate(entries, _table(), ["n-cal"])

    assert [row.valid for row in sheet.rows] == [True, False, False]
    assert sheet.rows[1].grams == 0.0
    assert sheet.rows[1].values["n-cal"] == 0.0
    assert sheet.totals["n-cal"] == pytest.approx(89.0)
    assert sheet.total_grams == 100


def test_unknown_food_name_falls_back() -> None:
    sheet = aggregate([_entry("f-mystery", 100)], AmountTable(), ["n-cal"])

    assert sheet.rows[0].food_name == "Unknown food"
    assert sheet.totals["n-cal"] == 0.0


def test_aggregate_does_not_mutate_inputs() -> None:
    table = AmountTable()
    table.apply(["f-apple"], ["n-cal"], [AmountFact("f-apple", "n-cal", 52.0)])
    entries = [_entry("f-apple", 100)]

    first = aggregate(entries, table, ["n-cal"])
    second = aggregate(entries, table, ["n-cal"])

    assert first == second
    assert len(table) == 1


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (78.0, 78.0),
        (0.45, 0.45),
        (0.125, 0.13),
        (-0.125, -0.13),
        (2.675, 2.68),
        (1 / 3, 0.33),
        (math.nan, 0.0),
        (math.inf, 0.0),
        (None, 0.0),
        (1e20, 1e20),
    ],
)
def test_round_display(value: float | None, expected: float) -> None:
    assert round_display(value) == expected
