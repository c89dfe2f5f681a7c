"""Utilities for serialising calculation responses.

The table builders mirror the two result regions of the calculator form: the
inputs breakdown and the bracket table with its totals footer. They only format
values already present on the :class:`CalculationResult`.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from typing import Any, Tuple

from flask import jsonify

from incometax.backend.app.models import CalculationResult
from incometax.backend.app.services.calculators import (
    SENTINEL,
    BracketLabels,
    build_bracket_labels,
    format_amount,
    format_percentage,
    format_positive_amount,
    round_currency,
    round_rate,
)
from incometax.backend.config.year_config import CalculatorPolicy

ResponseTuple = Tuple[Any, int]


def _finite_or_none(value: float) -> float | None:
    return value if math.isfinite(value) else None


def format_effective_rate(rate: float) -> str:
    """Return the footer label for the effective rate, e.g. ``(~%21 effective)``."""

    if not math.isfinite(rate):
        return SENTINEL
    return f"(~{format_percentage(rate)} effective)"


def describe_contribution_tier(tier: int, policy: CalculatorPolicy) -> str:
    """Return the label shown next to the contribution tier selector."""

    if tier <= 0:
        return "None"
    annual = tier * policy.contribution.annual_amount_per_tier
    return f"{tier} ({format_amount(annual, policy.currency)} annually)"


def build_input_rows(result: CalculationResult, currency: str) -> list[dict[str, Any]]:
    return [
        {
            "label": line.label,
            "value": round_currency(line.value),
            "display": format_amount(line.value, currency),
        }
        for line in result.deductions
    ]


def build_bracket_rows(
    result: CalculationResult,
    currency: str,
    labels: Sequence[BracketLabels] | None = None,
) -> list[dict[str, Any]]:
    if not labels:
        labels = [build_bracket_labels(bracket, currency) for bracket in result.brackets]

    rows: list[dict[str, Any]] = []
    for label, entry in zip(labels, result.bracket_results):
        rows.append(
            {
                "minimum": label.minimum,
                "maximum": label.maximum,
                "rate": label.rate,
                "applicable_amount": format_positive_amount(
                    entry.applicable_amount, currency
                ),
                "tax_amount": format_positive_amount(entry.tax_amount, currency),
            }
        )
    return rows


def build_totals(
    result: CalculationResult, policy: CalculatorPolicy
) -> dict[str, str]:
    currency = policy.currency
    totals = {
        "total_income": format_amount(result.income, currency),
        "total_tax": format_amount(-result.total_tax, currency),
        "effective_tax_rate": format_effective_rate(result.effective_tax_rate),
    }
    if policy.contribution.enabled:
        totals["contribution"] = (
            format_amount(-result.contribution_amount, currency)
            if result.contribution_amount > 0
            else SENTINEL
        )
    totals["net_income"] = format_amount(result.net_income, currency)
    totals["net_income_monthly"] = format_amount(result.monthly_net_income, currency)
    return totals


def build_result_tables(
    result: CalculationResult,
    policy: CalculatorPolicy | None = None,
    labels: Sequence[BracketLabels] | None = None,
) -> dict[str, Any]:
    """Return display rows for the inputs list and the bracket table."""

    policy = policy or CalculatorPolicy()
    return {
        "inputs": build_input_rows(result, policy.currency),
        "brackets": build_bracket_rows(result, policy.currency, labels),
        "totals": build_totals(result, policy),
    }


def serialise_result(result: CalculationResult) -> dict[str, Any]:
    """Return a JSON-ready representation of the raw result values."""

    return {
        "year": result.year,
        "income": round_currency(result.income),
        "expenses": round_currency(result.expenses),
        "taxable_amount": round_currency(result.taxable_amount),
        "deductions": [
            {"label": line.label, "value": round_currency(line.value)}
            for line in result.deductions
        ],
        "brackets": [
            {
                "min": bracket.lower_bound,
                "max": bracket.upper_bound,
                "rate": bracket.rate,
                "applicable_amount": round_currency(entry.applicable_amount),
                "tax_amount": round_currency(entry.tax_amount),
            }
            for bracket, entry in zip(result.brackets, result.bracket_results)
        ],
        "total_tax": round_currency(result.total_tax),
        "contribution_amount": round_currency(result.contribution_amount),
        "net_income": round_currency(result.net_income),
        "net_income_monthly": round_currency(result.monthly_net_income),
        "effective_tax_rate": _finite_or_none(round_rate(result.effective_tax_rate)),
    }


def build_calculation_payload(
    result: CalculationResult,
    policy: CalculatorPolicy | None = None,
    labels: Sequence[BracketLabels] | None = None,
) -> dict[str, Any]:
    """Combine the echoed input, raw result and display tables."""

    calculation_input = result.input
    return {
        "input": {
            "year": calculation_input.year,
            "income": calculation_input.income,
            "expenses": calculation_input.expenses,
            "exemptions": dict(calculation_input.exemptions),
            "contribution_tier": calculation_input.contribution_tier,
        },
        "result": serialise_result(result),
        "tables": build_result_tables(result, policy, labels),
    }


def build_calculation_response(payload: Mapping[str, Any]) -> ResponseTuple:
    """Return a Flask JSON response for the calculation ``payload``."""

    return jsonify(payload), 200


__all__ = [
    "build_bracket_rows",
    "build_calculation_payload",
    "build_calculation_response",
    "build_input_rows",
    "build_result_tables",
    "build_totals",
    "describe_contribution_tier",
    "format_effective_rate",
    "serialise_result",
]
