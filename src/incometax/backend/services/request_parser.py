"""Helpers for normalising incoming calculation requests."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from flask import Request
from werkzeug.exceptions import BadRequest

from incometax.backend.app.models import EXEMPTION_FLAGS

_FORM_FIELD_ALIASES = {
    "taxYear": "year",
    "amount": "income",
    "bagkurLevel": "contribution_tier",
}
_FORM_EXEMPTION_ALIASES = {
    "exemptExportSoftware": "export_exempt",
    "exemptUnder29": "under_29",
}


def _read_form(req: Request) -> dict[str, Any]:
    """Map raw form control names onto the JSON payload field names."""

    payload: dict[str, Any] = {}
    exemptions: dict[str, bool] = {}

    for key, value in req.form.items():
        if key in _FORM_EXEMPTION_ALIASES:
            exemptions[_FORM_EXEMPTION_ALIASES[key]] = value not in {"", "0", "false", "off"}
        elif key in EXEMPTION_FLAGS:
            exemptions[key] = value not in {"", "0", "false", "off"}
        else:
            payload[_FORM_FIELD_ALIASES.get(key, key)] = value

    if exemptions:
        payload["exemptions"] = exemptions
    return payload


def parse_calculation_payload(req: Request) -> dict[str, Any]:
    """Extract a calculation payload from a JSON body or submitted form."""

    if req.mimetype in {"application/x-www-form-urlencoded", "multipart/form-data"}:
        payload = _read_form(req)
    else:
        data = req.get_json(silent=True)
        if data is None:
            raise BadRequest("Request body must be valid JSON")
        if not isinstance(data, Mapping):
            raise BadRequest("Request JSON must be an object")
        payload = dict(data)

    if "year" not in payload:
        raise BadRequest("Request must include a tax year")

    return payload
