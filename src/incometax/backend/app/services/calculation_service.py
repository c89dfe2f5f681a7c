"""Turn a calculator input into the full bracket-by-bracket tax breakdown.

The engine is constructed with an immutable :class:`TaxYearTable` and the
deployment :class:`CalculatorPolicy`, so several tax regimes can coexist in one
process (and in tests) without touching module-level state. ``compute`` is a
pure function of its input: every call rebuilds the result from scratch.
"""

from __future__ import annotations

import logging
import math
import os
from collections.abc import Callable, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from functools import lru_cache
from time import perf_counter
from typing import Any

from pydantic import ValidationError

from incometax.backend.app.models import (
    CalculationInput,
    CalculationRequest,
    CalculationResult,
    DeductionLine,
    format_validation_error,
)
from incometax.backend.config.year_config import (
    CalculatorPolicy,
    ExemptionConfig,
    load_policy,
)

from .calculators import TaxYearTable, apply_brackets

_LOGGER = logging.getLogger(__name__)

BASE_TAXABLES_LABEL = "Base Taxables (Income)"
TOTAL_DEDUCTION_LABEL = "Total Deduction"
TOTAL_TAXABLES_LABEL = "Total Taxables"


def _profiling_enabled() -> bool:
    """Return ``True`` when calculation profiling should be captured."""

    flag = os.getenv("INCOMETAX_PROFILE_CALCULATIONS", "")
    return flag.strip().lower() in {"1", "true", "yes", "on"}


@contextmanager
def _profile_section(name: str, store: dict[str, float] | None):
    """Capture the duration of a named section when profiling is enabled."""

    if store is None:
        yield
        return

    start = perf_counter()
    try:
        yield
    finally:
        store[name] = perf_counter() - start


@dataclass(frozen=True, slots=True)
class DeductionStep:
    """A single exemption applied to the running taxable amount.

    ``consume`` returns the amount removed from the taxable base, or ``None``
    when the step does not apply to the input.
    """

    key: str
    label: str
    consume: Callable[[float, CalculationInput, ExemptionConfig], float | None]


def _consume_expenses(
    taxable: float, calculation_input: CalculationInput, _: ExemptionConfig
) -> float | None:
    if calculation_input.expenses <= 0:
        return None
    return min(calculation_input.expenses, taxable)


def _consume_export_exemption(
    taxable: float, calculation_input: CalculationInput, exemptions: ExemptionConfig
) -> float | None:
    if not calculation_input.exemption_enabled("export_exempt"):
        return None
    return taxable * exemptions.export_exempt_share


def _consume_under_29_exemption(
    taxable: float, calculation_input: CalculationInput, exemptions: ExemptionConfig
) -> float | None:
    if not calculation_input.exemption_enabled("under_29"):
        return None
    # The ceiling is only partially used when less taxable income remains.
    return min(taxable, exemptions.under_29_ceiling)


# Later steps apply to the base already reduced by earlier ones.
DEDUCTION_STEPS: tuple[DeductionStep, ...] = (
    DeductionStep("expenses", "Deduction (Expenses)", _consume_expenses),
    DeductionStep(
        "export_exempt", "Deduction (Software Exporter)", _consume_export_exemption
    ),
    DeductionStep(
        "under_29", "Deduction (Aged Under 29)", _consume_under_29_exemption
    ),
)


def apply_deductions(
    calculation_input: CalculationInput,
    exemptions: ExemptionConfig,
    steps: Sequence[DeductionStep] = DEDUCTION_STEPS,
) -> tuple[float, tuple[DeductionLine, ...]]:
    """Return the taxable amount and the ordered deduction audit trail."""

    income = calculation_input.income
    taxable = income
    lines = [DeductionLine(BASE_TAXABLES_LABEL, income)]

    for step in steps:
        consumed = step.consume(taxable, calculation_input, exemptions)
        if consumed is None:
            continue
        taxable -= consumed
        lines.append(DeductionLine(step.label, -consumed))

    lines.append(DeductionLine(TOTAL_DEDUCTION_LABEL, income - taxable))
    lines.append(DeductionLine(TOTAL_TAXABLES_LABEL, taxable))
    return taxable, tuple(lines)


class TaxCalculationEngine:
    """Compute progressive income tax against an injected bracket table."""

    def __init__(
        self,
        table: TaxYearTable,
        policy: CalculatorPolicy | None = None,
        steps: Sequence[DeductionStep] = DEDUCTION_STEPS,
    ) -> None:
        self.table = table
        self.policy = policy or CalculatorPolicy()
        self.steps = tuple(steps)

    @classmethod
    def from_configuration(cls) -> TaxCalculationEngine:
        """Build an engine from the YAML tables and the deployment policy."""

        policy = load_policy()
        table = TaxYearTable.load(currency=policy.currency)
        return cls(table, policy)

    @property
    def years(self) -> tuple[int, ...]:
        return self.table.years

    def supports_year(self, year: int) -> bool:
        return year in self.table

    def compute(self, calculation_input: CalculationInput) -> CalculationResult:
        """Return the full breakdown for ``calculation_input``.

        Raises :class:`UnknownTaxYearError` when the year has no table; callers
        are expected to check :meth:`supports_year` first.
        """

        timings: dict[str, float] | None = {} if _profiling_enabled() else None

        configuration = self.table.configuration(calculation_input.year)
        brackets = configuration.brackets

        with _profile_section("deductions", timings):
            taxable_amount, deductions = apply_deductions(
                calculation_input, configuration.exemptions, self.steps
            )

        with _profile_section("brackets", timings):
            bracket_results = apply_brackets(taxable_amount, brackets)

        total_tax = sum(entry.tax_amount for entry in bracket_results)
        contribution_amount = self.policy.contribution.amount_for(
            calculation_input.contribution_tier, calculation_input.exemptions
        )

        income = calculation_input.income
        net_income = income - total_tax - contribution_amount
        effective_tax_rate = total_tax / income if income > 0 else math.nan

        if timings is not None:
            _LOGGER.debug(
                "compute timings (ms): %s",
                {name: round(duration * 1000, 3) for name, duration in timings.items()},
            )

        return CalculationResult(
            input=calculation_input,
            brackets=brackets,
            deductions=deductions,
            bracket_results=bracket_results,
            taxable_amount=taxable_amount,
            total_tax=total_tax,
            contribution_amount=contribution_amount,
            net_income=net_income,
            effective_tax_rate=effective_tax_rate,
        )


@lru_cache(maxsize=1)
def get_default_engine() -> TaxCalculationEngine:
    """Return the engine configured from the packaged YAML files."""

    return TaxCalculationEngine.from_configuration()


def parse_request(payload: Mapping[str, Any] | CalculationRequest) -> CalculationRequest:
    """Validate a raw payload into a :class:`CalculationRequest`."""

    if isinstance(payload, CalculationRequest):
        return payload
    if not isinstance(payload, Mapping):
        raise ValueError("Payload must be a mapping")
    if "year" not in payload:
        raise ValueError("Payload must include a tax year")
    try:
        return CalculationRequest.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(format_validation_error(exc)) from exc


def calculate_tax(
    payload: Mapping[str, Any] | CalculationRequest,
    engine: TaxCalculationEngine | None = None,
) -> CalculationResult | None:
    """Compute the breakdown for ``payload``, or ``None`` without a usable income."""

    request = parse_request(payload)
    if not request.has_income:
        _LOGGER.debug("Skipping calculation for %s: income missing or invalid", request.year)
        return None

    engine = engine or get_default_engine()
    return engine.compute(CalculationInput.from_request(request))


__all__ = [
    "BASE_TAXABLES_LABEL",
    "DEDUCTION_STEPS",
    "DeductionStep",
    "TOTAL_DEDUCTION_LABEL",
    "TOTAL_TAXABLES_LABEL",
    "TaxCalculationEngine",
    "apply_deductions",
    "calculate_tax",
    "get_default_engine",
    "parse_request",
]
