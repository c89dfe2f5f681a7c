"""Typed request/response models shared across the calculation services.

Inputs are validated with Pydantic while derived results are plain frozen
dataclasses. A result is recomputed from scratch for every input change and is
never mutated afterwards, so the presentation layer can render it directly.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from incometax.backend.config.schema import TaxBracket

from .api import (
    EXEMPTION_FLAGS,
    CalculationRequest,
    coerce_amount,
    format_validation_error,
)

__all__ = [
    "EXEMPTION_FLAGS",
    "BracketResult",
    "CalculationInput",
    "CalculationRequest",
    "CalculationResult",
    "DeductionLine",
    "coerce_amount",
    "format_validation_error",
]


class CalculationInput(BaseModel):
    """Validated input for a single calculation."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    year: int
    income: float = Field(..., ge=0, allow_inf_nan=False)
    expenses: float = Field(default=0.0, ge=0, allow_inf_nan=False)
    exemptions: Mapping[str, bool] = Field(default_factory=dict)
    contribution_tier: int = Field(default=0, ge=0)

    @field_validator("exemptions", mode="before")
    @classmethod
    def _coerce_exemptions(cls, value: Any) -> Mapping[str, bool]:
        if value is None:
            return {}
        if isinstance(value, Mapping):
            return {str(key): bool(raw) for key, raw in value.items()}
        if isinstance(value, (str, bytes)):
            raise ValueError("Exemptions must be a mapping or a collection of flags")
        return {str(key): True for key in value}

    def model_post_init(self, __context: Any) -> None:  # type: ignore[override]
        object.__setattr__(self, "exemptions", MappingProxyType(dict(self.exemptions)))

    def exemption_enabled(self, key: str) -> bool:
        return bool(self.exemptions.get(key, False))

    @classmethod
    def from_request(cls, request: CalculationRequest) -> CalculationInput:
        """Build an input from a request that carries a usable income."""

        if request.income is None:
            raise ValueError("Income is required to build a calculation input")
        return cls(
            year=request.year,
            income=request.income,
            expenses=request.expenses,
            exemptions=request.exemptions,
            contribution_tier=request.contribution_tier,
        )


@dataclass(frozen=True, slots=True)
class DeductionLine:
    """One step of the audit trail from gross income to taxable income."""

    label: str
    value: float


@dataclass(frozen=True, slots=True)
class BracketResult:
    """Portion of the taxable amount falling into a bracket and its tax."""

    applicable_amount: float
    tax_amount: float


@dataclass(frozen=True, slots=True)
class CalculationResult:
    """Fully derived outcome of a calculation."""

    input: CalculationInput
    brackets: tuple[TaxBracket, ...]
    deductions: tuple[DeductionLine, ...]
    bracket_results: tuple[BracketResult, ...]
    taxable_amount: float
    total_tax: float
    contribution_amount: float
    net_income: float
    effective_tax_rate: float

    @property
    def year(self) -> int:
        return self.input.year

    @property
    def income(self) -> float:
        return self.input.income

    @property
    def expenses(self) -> float:
        return self.input.expenses

    @property
    def monthly_net_income(self) -> float:
        return self.net_income / 12

    @property
    def has_effective_rate(self) -> bool:
        return math.isfinite(self.effective_tax_rate)
