"""REST endpoints for tax calculations."""

from __future__ import annotations

from http import HTTPStatus
from typing import Any

from flask import Blueprint, request

from incometax.backend.app.http import unknown_year_response
from incometax.backend.app.services.calculation_service import (
    calculate_tax,
    get_default_engine,
    parse_request,
)
from incometax.backend.services import (
    build_calculation_payload,
    build_calculation_response,
    parse_calculation_payload,
)

blueprint = Blueprint("calculations", __name__, url_prefix="/api/v1")


@blueprint.post("/calculations")
def create_calculation() -> tuple[Any, int]:
    """Run a calculation for the submitted form values.

    Responds with ``204 No Content`` when the income field is blank or not a
    usable number so the client keeps whatever it rendered last.
    """

    payload = parse_calculation_payload(request)
    calculation_request = parse_request(payload)

    engine = get_default_engine()
    if not engine.supports_year(calculation_request.year):
        return unknown_year_response(calculation_request.year, engine.years).to_response()

    result = calculate_tax(calculation_request, engine)
    if result is None:
        return "", HTTPStatus.NO_CONTENT

    body = build_calculation_payload(
        result, engine.policy, engine.table.labels_for(result.year)
    )
    return build_calculation_response(body)
