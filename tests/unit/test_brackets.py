"""Unit coverage for bracket tables and the bracket walk."""

from __future__ import annotations

import math

import pytest

from incometax.backend.app.services.calculators import (
    TaxYearTable,
    UnknownTaxYearError,
    apply_brackets,
    build_bracket_labels,
)
from incometax.backend.config.year_config import TaxBracket, YearConfiguration


def _configuration(year: int, *brackets: dict[str, float | None]) -> YearConfiguration:
    return YearConfiguration.model_validate({"year": year, "brackets": list(brackets)})


@pytest.fixture()
def table() -> TaxYearTable:
    return TaxYearTable.from_configurations(
        [
            _configuration(
                2040,
                {"min": 0, "max": 10_000, "rate": 0.1},
                {"min": 10_000, "max": None, "rate": 0.3},
            ),
            _configuration(2039, {"min": 0, "max": None, "rate": 0.2}),
        ]
    )


def test_table_lists_years_in_ascending_order(table: TaxYearTable) -> None:
    assert table.years == (2039, 2040)
    assert 2040 in table
    assert 2041 not in table


def test_get_brackets_returns_empty_tuple_for_unknown_year(table: TaxYearTable) -> None:
    assert table.get_brackets(2041) == ()
    assert table.labels_for(2041) == ()
    with pytest.raises(UnknownTaxYearError):
        table.configuration(2041)


def test_labels_are_computed_when_table_is_built(table: TaxYearTable) -> None:
    labels = table.labels_for(2040)

    assert [label.as_tuple() for label in labels] == [
        ("0 TRY", "10.000 TRY", "%10"),
        ("10.000 TRY", "-", "%30"),
    ]
    assert table.labels_for(2040) is labels


def test_packaged_table_labels_use_sentinel_for_open_bracket() -> None:
    table = TaxYearTable.load()
    labels = table.labels_for(2023)

    assert labels[-1].as_tuple() == ("1.961.784 TRY", "-", "%40")
    assert labels[0].as_tuple() == ("0 TRY", "71.337 TRY", "%15")


def test_bracket_width_is_infinite_when_unbounded() -> None:
    bracket = TaxBracket.model_validate({"min": 880_000, "max": None, "rate": 0.4})

    assert bracket.is_unbounded
    assert math.isinf(bracket.width)
    assert build_bracket_labels(bracket, "EUR").maximum == "-"


def test_apply_brackets_walks_in_order(table: TaxYearTable) -> None:
    results = apply_brackets(25_000, table.get_brackets(2040))

    assert [entry.applicable_amount for entry in results] == [10_000, 15_000]
    assert [entry.tax_amount for entry in results] == pytest.approx([1_000, 4_500])


def test_apply_brackets_treats_negative_amounts_as_zero(table: TaxYearTable) -> None:
    results = apply_brackets(-500, table.get_brackets(2040))

    assert all(entry.applicable_amount == 0 for entry in results)
    assert all(entry.tax_amount == 0 for entry in results)
