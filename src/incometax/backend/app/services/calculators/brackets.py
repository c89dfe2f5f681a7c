"""Per-year progressive bracket tables and the bracket walk."""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType

from incometax.backend.app.models import BracketResult
from incometax.backend.config.year_config import (
    TaxBracket,
    YearConfiguration,
    available_years,
    load_year_configuration,
)

from .utils import format_amount, format_percentage


class UnknownTaxYearError(LookupError):
    """Raised when a calculation targets a year without a bracket table."""

    def __init__(self, year: int) -> None:
        super().__init__(f"No tax bracket table configured for year {year}")
        self.year = year


@dataclass(frozen=True, slots=True)
class BracketLabels:
    """Display labels for a bracket row."""

    minimum: str
    maximum: str
    rate: str

    def as_tuple(self) -> tuple[str, str, str]:
        return (self.minimum, self.maximum, self.rate)


def build_bracket_labels(
    bracket: TaxBracket, currency: str | None = None
) -> BracketLabels:
    """Return the labels shown for ``bracket``; unbounded maxima render ``-``."""

    return BracketLabels(
        minimum=format_amount(bracket.lower_bound, currency),
        maximum=format_amount(
            math.inf if bracket.upper_bound is None else bracket.upper_bound, currency
        ),
        rate=format_percentage(bracket.rate),
    )


@dataclass(frozen=True)
class TaxYearTable:
    """Immutable mapping from tax year to its configuration and labels."""

    configurations: Mapping[int, YearConfiguration]
    currency: str = "TRY"
    _labels: Mapping[int, tuple[BracketLabels, ...]] = field(
        init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        configurations = MappingProxyType(
            {int(year): config for year, config in sorted(self.configurations.items())}
        )
        labels = MappingProxyType(
            {
                year: tuple(
                    build_bracket_labels(bracket, self.currency)
                    for bracket in config.brackets
                )
                for year, config in configurations.items()
            }
        )
        object.__setattr__(self, "configurations", configurations)
        object.__setattr__(self, "_labels", labels)

    @classmethod
    def from_configurations(
        cls, configurations: Iterable[YearConfiguration], currency: str = "TRY"
    ) -> TaxYearTable:
        return cls({config.year: config for config in configurations}, currency)

    @classmethod
    def load(
        cls, years: Sequence[int] | None = None, currency: str = "TRY"
    ) -> TaxYearTable:
        """Build a table from the YAML configuration on disk."""

        targets = years if years is not None else available_years()
        return cls.from_configurations(
            (load_year_configuration(year) for year in targets), currency
        )

    def __contains__(self, year: object) -> bool:
        return year in self.configurations

    @property
    def years(self) -> tuple[int, ...]:
        return tuple(self.configurations)

    def configuration(self, year: int) -> YearConfiguration:
        try:
            return self.configurations[year]
        except KeyError as exc:
            raise UnknownTaxYearError(year) from exc

    def get_brackets(self, year: int) -> tuple[TaxBracket, ...]:
        """Return the ordered brackets for ``year`` or an empty tuple."""

        config = self.configurations.get(year)
        if config is None:
            return ()
        return config.brackets

    def labels_for(self, year: int) -> tuple[BracketLabels, ...]:
        return self._labels.get(year, ())


def apply_brackets(
    taxable_amount: float, brackets: Sequence[TaxBracket]
) -> tuple[BracketResult, ...]:
    """Split ``taxable_amount`` across ``brackets`` in ascending order."""

    remaining = max(0.0, taxable_amount)
    results: list[BracketResult] = []

    for bracket in brackets:
        applicable = min(remaining, bracket.width)
        results.append(
            BracketResult(
                applicable_amount=applicable,
                tax_amount=applicable * bracket.rate,
            )
        )
        remaining = max(0.0, remaining - applicable)

    return tuple(results)


__all__ = [
    "BracketLabels",
    "TaxYearTable",
    "UnknownTaxYearError",
    "apply_brackets",
    "build_bracket_labels",
]
