"""Pydantic models describing the tax year configuration schema."""

from __future__ import annotations

import math
from typing import Any, Mapping, Sequence

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    computed_field,
    field_validator,
    model_validator,
)
from typing_extensions import Self


class ConfigurationError(ValueError):
    """Raised when configuration values violate schema expectations."""


class ImmutableModel(BaseModel):
    """Base class that freezes instances and rejects unknown fields."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


class TaxBracket(ImmutableModel):
    """A contiguous income range taxed at a single marginal rate."""

    lower_bound: float = Field(alias="min")
    upper_bound: float | None = Field(default=None, alias="max")
    rate: float

    @field_validator("upper_bound", mode="before")
    @classmethod
    def _coerce_unbounded(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip().lower() in {"", "inf", "infinity"}:
            return None
        if isinstance(value, float) and math.isinf(value):
            return None
        return value

    @model_validator(mode="after")
    def _validate_values(self) -> Self:
        if self.rate < 0 or self.rate > 1:
            raise ConfigurationError("Tax rates must be between 0 and 1")
        if self.lower_bound < 0:
            raise ConfigurationError("Lower bounds must be non-negative")
        if self.upper_bound is not None and self.upper_bound <= self.lower_bound:
            raise ConfigurationError("Upper bounds must exceed lower bounds")
        return self

    @property
    def is_unbounded(self) -> bool:
        return self.upper_bound is None

    @property
    def width(self) -> float:
        """Return the span of income covered by the bracket."""

        if self.upper_bound is None:
            return math.inf
        return self.upper_bound - self.lower_bound


class ExemptionConfig(ImmutableModel):
    """Constants driving the exemption steps for a year."""

    under_29_ceiling: float = Field(default=75_000.0, ge=0)
    export_exempt_share: float = Field(default=0.5, ge=0, le=1)


class YearConfiguration(ImmutableModel):
    """Complete configuration for a single tax year."""

    year: int
    brackets: tuple[TaxBracket, ...]
    exemptions: ExemptionConfig = Field(default_factory=ExemptionConfig)
    meta: Mapping[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _validate_year(self) -> Self:
        self._validate_bracket_sequence(self.brackets)
        return self

    @staticmethod
    def _validate_bracket_sequence(brackets: Sequence[TaxBracket]) -> None:
        if not brackets:
            raise ConfigurationError("At least one tax bracket must be defined")
        if brackets[0].lower_bound != 0:
            raise ConfigurationError("The first tax bracket must start at zero")
        for previous, current in zip(brackets, brackets[1:]):
            if previous.upper_bound is None:
                raise ConfigurationError("Only the final tax bracket may be unbounded")
            if current.lower_bound != previous.upper_bound:
                raise ConfigurationError(
                    "Tax brackets must be contiguous and in ascending order"
                )
        if brackets[-1].upper_bound is not None:
            raise ConfigurationError("Final tax bracket must have an open upper bound")


class ContributionPolicy(ImmutableModel):
    """Optional flat mandatory contribution deducted from net income."""

    enabled: bool = False
    annual_amount_per_tier: float = Field(default=0.0, ge=0)
    max_tier: int | None = Field(default=None, ge=0)
    waived_by: tuple[str, ...] = ()

    @model_validator(mode="after")
    def _validate_amount(self) -> Self:
        if self.enabled and self.annual_amount_per_tier <= 0:
            raise ConfigurationError(
                "Enabled contribution policies require a positive per-tier amount"
            )
        return self

    def amount_for(self, tier: int, exemptions: Mapping[str, bool]) -> float:
        """Return the annual contribution owed for ``tier``."""

        if not self.enabled or tier <= 0:
            return 0.0
        if any(exemptions.get(flag) for flag in self.waived_by):
            return 0.0
        if self.max_tier is not None:
            tier = min(tier, self.max_tier)
        return tier * self.annual_amount_per_tier


class CalculatorPolicy(ImmutableModel):
    """Deployment-level policy switches shared by every tax year."""

    currency: str = "TRY"
    contribution: ContributionPolicy = Field(default_factory=ContributionPolicy)


class TaxYearManifestEntry(ImmutableModel):
    """Entry describing a supported tax year in the manifest."""

    year: int
    filename: str | None = None
    status: str = "active"
    notes_url: str | None = None

    @computed_field
    @property
    def resolved_filename(self) -> str:
        return self.filename or f"{self.year}.yaml"


class TaxYearManifest(ImmutableModel):
    """Manifest describing the available tax year configuration files."""

    years: Sequence[TaxYearManifestEntry]

    @model_validator(mode="after")
    def _validate_years(self) -> Self:
        seen: set[int] = set()
        for entry in self.years:
            if entry.year in seen:
                raise ConfigurationError(
                    f"Duplicate year {entry.year} declared in the configuration manifest"
                )
            seen.add(entry.year)
        return self

    def get_entry(self, year: int) -> TaxYearManifestEntry:
        for entry in self.years:
            if entry.year == year:
                return entry
        raise KeyError(year)

    @computed_field
    @property
    def supported_years(self) -> tuple[int, ...]:
        return tuple(sorted(entry.year for entry in self.years))


__all__ = [
    "CalculatorPolicy",
    "ConfigurationError",
    "ContributionPolicy",
    "ExemptionConfig",
    "ImmutableModel",
    "TaxBracket",
    "TaxYearManifest",
    "TaxYearManifestEntry",
    "ValidationError",
    "YearConfiguration",
]
