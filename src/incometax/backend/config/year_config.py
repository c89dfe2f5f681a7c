"""Configuration loader wrapping the shared schema models."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Sequence

import yaml
from pydantic import ValidationError

from .schema import (
    CalculatorPolicy,
    ConfigurationError,
    ContributionPolicy,
    ExemptionConfig,
    TaxBracket,
    TaxYearManifest,
    TaxYearManifestEntry,
    YearConfiguration,
)

CONFIG_DIRECTORY = Path(__file__).resolve().parent / "data"
MANIFEST_FILE = CONFIG_DIRECTORY / "manifest.yaml"
POLICY_FILE = CONFIG_DIRECTORY / "policy.yaml"
POLICY_FILE_ENV = "INCOMETAX_POLICY_FILE"


def _load_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ConfigurationError("Configuration file must define a mapping at the top level")
    return data


@lru_cache(maxsize=1)
def load_manifest() -> TaxYearManifest:
    """Load and cache the configuration manifest."""

    if not MANIFEST_FILE.exists():
        raise FileNotFoundError("Configuration manifest not found")

    raw_manifest = _load_yaml(MANIFEST_FILE)

    try:
        return TaxYearManifest.model_validate(raw_manifest)
    except ValidationError as error:
        raise ConfigurationError(f"Manifest validation failed: {error}") from error


def manifest_entries() -> Sequence[TaxYearManifestEntry]:
    """Expose the configured manifest entries."""

    return load_manifest().years


@lru_cache(maxsize=8)
def load_year_configuration(year: int) -> YearConfiguration:
    """Load configuration for the specified tax year from disk."""

    try:
        manifest_entry = load_manifest().get_entry(year)
    except KeyError as exc:
        raise FileNotFoundError(f"Configuration for year {year} not declared in manifest") from exc

    config_file = CONFIG_DIRECTORY / manifest_entry.resolved_filename
    if not config_file.exists():
        raise FileNotFoundError(
            f"Configuration file for year {year} missing: {config_file.name}"
        )

    raw_config = _load_yaml(config_file)
    raw_config.setdefault("year", year)

    try:
        configuration = YearConfiguration.model_validate(raw_config)
    except ValidationError as error:
        raise ConfigurationError(f"Configuration validation failed for {year}: {error}") from error

    if configuration.year != year:
        raise ConfigurationError(
            f"Configuration year mismatch: expected {year}, found {configuration.year}"
        )

    return configuration


def available_years() -> Sequence[int]:
    """Return the tax years declared in the manifest."""

    return load_manifest().supported_years


def resolve_policy_file() -> Path:
    """Return the policy file for this deployment, honouring the env override."""

    override = os.getenv(POLICY_FILE_ENV, "").strip()
    if override:
        return Path(override)
    return POLICY_FILE


@lru_cache(maxsize=4)
def _load_policy_from(path: Path) -> CalculatorPolicy:
    if not path.exists():
        raise FileNotFoundError(f"Policy file not found: {path}")

    try:
        return CalculatorPolicy.model_validate(_load_yaml(path))
    except ValidationError as error:
        raise ConfigurationError(f"Policy validation failed: {error}") from error


def load_policy() -> CalculatorPolicy:
    """Load the deployment policy (currency and contribution strategy)."""

    return _load_policy_from(resolve_policy_file())


def clear_caches() -> None:
    """Drop cached configuration so the next load re-reads the YAML files."""

    load_manifest.cache_clear()
    load_year_configuration.cache_clear()
    _load_policy_from.cache_clear()


__all__ = [
    "CONFIG_DIRECTORY",
    "CalculatorPolicy",
    "ConfigurationError",
    "ContributionPolicy",
    "ExemptionConfig",
    "MANIFEST_FILE",
    "POLICY_FILE",
    "POLICY_FILE_ENV",
    "TaxBracket",
    "TaxYearManifest",
    "TaxYearManifestEntry",
    "YearConfiguration",
    "available_years",
    "clear_caches",
    "load_manifest",
    "load_policy",
    "load_year_configuration",
    "manifest_entries",
    "resolve_policy_file",
]
