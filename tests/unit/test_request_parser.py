"""Unit tests for calculation request parsing helpers."""

from __future__ import annotations

import pytest
from flask import Flask, request
from werkzeug.exceptions import BadRequest

from incometax.backend.services.request_parser import parse_calculation_payload


def test_parse_payload_returns_json_object(app: Flask) -> None:
    with app.test_request_context(
        "/api/v1/calculations",
        method="POST",
        json={"year": 2022, "income": 100000},
    ):
        payload = parse_calculation_payload(request)

    assert payload == {"year": 2022, "income": 100000}


def test_parse_payload_maps_form_controls(app: Flask) -> None:
    """Form submissions use the calculator's control names."""

    with app.test_request_context(
        "/api/v1/calculations",
        method="POST",
        data={
            "taxYear": "2022",
            "amount": "100000",
            "expenses": "",
            "exemptExportSoftware": "on",
            "bagkurLevel": "2",
        },
    ):
        payload = parse_calculation_payload(request)

    assert payload == {
        "year": "2022",
        "income": "100000",
        "expenses": "",
        "contribution_tier": "2",
        "exemptions": {"export_exempt": True},
    }


def test_parse_payload_rejects_non_object(app: Flask) -> None:
    """Non-object JSON payloads should trigger BadRequest responses."""

    with app.test_request_context(
        "/api/v1/calculations",
        method="POST",
        json=["not", "an", "object"],
    ):
        with pytest.raises(BadRequest):
            parse_calculation_payload(request)


def test_parse_payload_requires_year(app: Flask) -> None:
    with app.test_request_context(
        "/api/v1/calculations",
        method="POST",
        json={"income": 100000},
    ):
        with pytest.raises(BadRequest, match="tax year"):
            parse_calculation_payload(request)
