"""Utilities for validating year configuration data and surfacing issues."""

from __future__ import annotations

import argparse
import math
from typing import Sequence

from .year_config import (
    CalculatorPolicy,
    ConfigurationError,
    ExemptionConfig,
    TaxBracket,
    YearConfiguration,
    available_years,
    load_policy,
    load_year_configuration,
)

KNOWN_EXEMPTIONS = frozenset({"export_exempt", "under_29"})


def _format_scope(scope: str, message: str) -> str:
    return f"{scope}: {message}"


def _validate_brackets(brackets: Sequence[TaxBracket]) -> list[str]:
    errors: list[str] = []

    if not brackets:
        return [_format_scope("brackets", "no tax brackets defined")]

    if brackets[0].lower_bound != 0:
        errors.append(_format_scope("brackets[0]", "first bracket must start at 0"))

    for index, (previous, current) in enumerate(zip(brackets, brackets[1:]), start=1):
        scope = f"brackets[{index}]"
        if previous.upper_bound is None:
            errors.append(
                _format_scope(f"brackets[{index - 1}]", "only the final bracket may be unbounded")
            )
            continue
        if current.lower_bound > previous.upper_bound:
            errors.append(
                _format_scope(
                    scope,
                    f"gap between {previous.upper_bound:g} and {current.lower_bound:g}",
                )
            )
        elif current.lower_bound < previous.upper_bound:
            errors.append(
                _format_scope(
                    scope,
                    f"overlaps previous bracket ending at {previous.upper_bound:g}",
                )
            )
        if current.rate < previous.rate:
            errors.append(
                _format_scope(scope, "rates should not decrease across brackets")
            )

    for index, bracket in enumerate(brackets):
        if bracket.rate < 0 or bracket.rate > 1:
            errors.append(
                _format_scope(f"brackets[{index}]", "rate must be between 0 and 1")
            )

    if brackets[-1].upper_bound is not None and not math.isinf(brackets[-1].upper_bound):
        errors.append(
            _format_scope(f"brackets[{len(brackets) - 1}]", "final bracket must be unbounded")
        )

    return errors


def _validate_exemptions(exemptions: ExemptionConfig) -> list[str]:
    errors: list[str] = []

    if exemptions.under_29_ceiling <= 0:
        errors.append(
            _format_scope("exemptions.under_29_ceiling", "ceiling should be positive")
        )
    if not 0 < exemptions.export_exempt_share <= 1:
        errors.append(
            _format_scope(
                "exemptions.export_exempt_share",
                "share must be greater than 0 and at most 1",
            )
        )

    return errors


def validate_year_configuration(config: YearConfiguration) -> list[str]:
    """Return a list of validation issues for the provided configuration."""

    errors: list[str] = []

    errors.extend(_validate_brackets(config.brackets))
    errors.extend(_validate_exemptions(config.exemptions))

    return errors


def validate_policy(policy: CalculatorPolicy) -> list[str]:
    """Return a list of validation issues for the deployment policy."""

    errors: list[str] = []
    contribution = policy.contribution

    if not policy.currency.strip():
        errors.append(_format_scope("policy.currency", "currency code must be set"))

    unknown = sorted(set(contribution.waived_by) - KNOWN_EXEMPTIONS)
    if unknown:
        errors.append(
            _format_scope(
                "policy.contribution.waived_by",
                f"unknown exemption flags: {', '.join(unknown)}",
            )
        )

    if contribution.enabled and contribution.annual_amount_per_tier <= 0:
        errors.append(
            _format_scope(
                "policy.contribution.annual_amount_per_tier",
                "enabled contributions require a positive amount",
            )
        )

    return errors


def validate_all_years(years: Sequence[int] | None = None) -> dict[int, list[str]]:
    """Validate all configured years and return issues keyed by year."""

    targets = years or available_years()
    results: dict[int, list[str]] = {}

    for year in targets:
        config = load_year_configuration(year)
        results[int(year)] = validate_year_configuration(config)

    return results


def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate configured tax years and the deployment policy."
    )
    parser.add_argument(
        "years",
        nargs="*",
        type=int,
        help="Specific years to validate (defaults to all configured years)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for running validations from the command line."""

    parser = _build_argument_parser()
    args = parser.parse_args(argv)
    years = args.years or available_years()

    if not years:
        parser.print_help()
        return 1

    exit_code = 0

    for year in years:
        try:
            config = load_year_configuration(year)
        except (FileNotFoundError, ConfigurationError) as error:
            print(f"[{year}] failed to load configuration: {error}")
            exit_code = 1
            continue

        issues = validate_year_configuration(config)
        if issues:
            exit_code = 1
            print(f"[{year}] {len(issues)} issue(s) detected:")
            for issue in issues:
                print(f"  - {issue}")
        else:
            print(f"[{year}] OK")

    try:
        policy_issues = validate_policy(load_policy())
    except (FileNotFoundError, ConfigurationError) as error:
        print(f"[policy] failed to load configuration: {error}")
        return 1

    if policy_issues:
        exit_code = 1
        print(f"[policy] {len(policy_issues)} issue(s) detected:")
        for issue in policy_issues:
            print(f"  - {issue}")
    else:
        print("[policy] OK")

    return exit_code


if __name__ == "__main__":  # pragma: no cover - CLI invocation
    raise SystemExit(main())
