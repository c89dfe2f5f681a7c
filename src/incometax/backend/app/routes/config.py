"""Expose configuration metadata consumed by the calculator form.

The form populates its year selector, bracket table headers and contribution
tier selector from these endpoints instead of duplicating the YAML tables.
"""

from __future__ import annotations

from typing import Any

from flask import Blueprint, jsonify

from incometax.backend.app.http import unknown_year_response
from incometax.backend.app.services.calculation_service import (
    TaxCalculationEngine,
    get_default_engine,
)
from incometax.backend.config.year_config import load_manifest
from incometax.backend.services.response_builder import describe_contribution_tier
from incometax.backend.version import get_project_version

blueprint = Blueprint("config", __name__, url_prefix="/api/v1/config")


def get_configuration_metadata() -> dict[str, Any]:
    """Expose runtime metadata derived from the configuration manifest."""

    manifest = load_manifest()
    supported_years = list(manifest.supported_years)
    default_year = supported_years[-1] if supported_years else None
    return {
        "version": get_project_version(),
        "supported_years": supported_years,
        "default_year": default_year,
    }


def _serialise_year(engine: TaxCalculationEngine, year: int) -> dict[str, Any]:
    configuration = engine.table.configuration(year)
    labels = engine.table.labels_for(year)

    brackets = [
        {
            "min": bracket.lower_bound,
            "max": bracket.upper_bound,
            "rate": bracket.rate,
            "labels": list(label.as_tuple()),
        }
        for bracket, label in zip(configuration.brackets, labels)
    ]

    return {
        "year": year,
        "brackets": brackets,
        "exemptions": configuration.exemptions.model_dump(mode="json"),
    }


def _serialise_policy(engine: TaxCalculationEngine) -> dict[str, Any]:
    policy = engine.policy
    contribution = policy.contribution
    payload: dict[str, Any] = {
        "currency": policy.currency,
        "contribution": {
            "enabled": contribution.enabled,
            "annual_amount_per_tier": contribution.annual_amount_per_tier,
            "waived_by": list(contribution.waived_by),
        },
    }

    if contribution.enabled and contribution.max_tier is not None:
        payload["contribution"]["tiers"] = [
            {
                "tier": tier,
                "label": describe_contribution_tier(tier, policy),
            }
            for tier in range(contribution.max_tier + 1)
        ]

    return payload


@blueprint.get("/meta")
def get_application_metadata() -> tuple[Any, int]:
    """Expose lightweight application metadata such as the version identifier."""

    payload = get_configuration_metadata()
    return jsonify(payload), 200


@blueprint.get("/years")
def list_years() -> tuple[Any, int]:
    """Return all configured years with their bracket tables and the policy."""

    engine = get_default_engine()
    metadata = get_configuration_metadata()
    payload = {
        "years": [_serialise_year(engine, year) for year in engine.years],
        "policy": _serialise_policy(engine),
        "default_year": metadata["default_year"],
        "supported_years": metadata["supported_years"],
    }
    return jsonify(payload), 200


@blueprint.get("/<int:year>/brackets")
def get_year_brackets(year: int) -> tuple[Any, int]:
    """Return the bracket table for a single year."""

    engine = get_default_engine()
    if not engine.supports_year(year):
        return unknown_year_response(year, engine.years).to_response()

    return jsonify(_serialise_year(engine, year)), 200
