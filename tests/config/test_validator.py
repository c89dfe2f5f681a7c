from incometax.backend.config.validator import (
    main,
    validate_all_years,
    validate_policy,
    validate_year_configuration,
)
from incometax.backend.config.year_config import (
    CalculatorPolicy,
    ContributionPolicy,
    load_year_configuration,
)


def test_current_configurations_are_valid() -> None:
    results = validate_all_years()
    assert all(not issues for issues in results.values()), results


def test_validator_flags_gap_between_brackets() -> None:
    config = load_year_configuration(2022)
    brackets = list(config.brackets)
    brackets[2] = brackets[2].model_copy(update={"lower_bound": 75_000})
    broken = config.model_copy(update={"brackets": tuple(brackets)})

    errors = validate_year_configuration(broken)

    assert any("brackets[2]" in error and "gap" in error for error in errors)


def test_validator_flags_overlap_and_decreasing_rate() -> None:
    config = load_year_configuration(2021)
    brackets = list(config.brackets)
    brackets[1] = brackets[1].model_copy(update={"lower_bound": 20_000, "rate": 0.1})
    broken = config.model_copy(update={"brackets": tuple(brackets)})

    errors = validate_year_configuration(broken)

    assert any("overlaps" in error for error in errors)
    assert any("should not decrease" in error for error in errors)


def test_validator_flags_bounded_final_bracket() -> None:
    config = load_year_configuration(2023)
    brackets = list(config.brackets)
    brackets[-1] = brackets[-1].model_copy(update={"upper_bound": 5_000_000})
    broken = config.model_copy(update={"brackets": tuple(brackets)})

    errors = validate_year_configuration(broken)

    assert any("final bracket must be unbounded" in error for error in errors)


def test_validator_flags_unknown_waiver_flag() -> None:
    policy = CalculatorPolicy(
        contribution=ContributionPolicy(
            enabled=True, annual_amount_per_tier=1_000, waived_by=("under_30",)
        )
    )

    errors = validate_policy(policy)

    assert any("under_30" in error for error in errors)


def test_main_reports_ok_for_packaged_configuration(capsys) -> None:
    exit_code = main([])

    output = capsys.readouterr().out
    assert exit_code == 0
    assert "[2022] OK" in output
    assert "[policy] OK" in output


def test_main_reports_missing_year(capsys) -> None:
    exit_code = main(["1999"])

    assert exit_code == 1
    assert "[1999] failed to load configuration" in capsys.readouterr().out
