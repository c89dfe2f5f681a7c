"""Pydantic models describing the public API surface."""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

__all__ = [
    "EXEMPTION_FLAGS",
    "CalculationRequest",
    "coerce_amount",
    "format_validation_error",
]


EXEMPTION_FLAGS = ("export_exempt", "under_29")


def coerce_amount(value: Any) -> float | None:
    """Return ``value`` as a finite non-negative float, or ``None``."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        value = text
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(amount) or amount < 0:
        return None
    return amount


class CalculationRequest(BaseModel):
    """Raw calculator form values as submitted by the presentation layer.

    The form sends whatever the user typed, so optional numeric fields fall back
    to zero instead of failing validation. Only ``income`` gates the
    calculation: when it cannot be read as a finite, non-negative number the
    field is left as ``None`` and no result is produced.
    """

    model_config = ConfigDict(extra="ignore")

    year: int = Field(..., ge=0)
    income: float | None = None
    expenses: float = 0.0
    exemptions: dict[str, bool] = Field(default_factory=dict)
    contribution_tier: int = 0

    @field_validator("year", mode="before")
    @classmethod
    def _coerce_year(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip().isdigit():
            return int(value.strip())
        return value

    @field_validator("income", mode="before")
    @classmethod
    def _coerce_income(cls, value: Any) -> float | None:
        return coerce_amount(value)

    @field_validator("expenses", mode="before")
    @classmethod
    def _coerce_expenses(cls, value: Any) -> float:
        amount = coerce_amount(value)
        return amount if amount is not None else 0.0

    @field_validator("contribution_tier", mode="before")
    @classmethod
    def _coerce_tier(cls, value: Any) -> int:
        amount = coerce_amount(value)
        if amount is None:
            return 0
        return int(amount)

    @field_validator("exemptions", mode="before")
    @classmethod
    def _normalise_exemptions(cls, value: Any) -> Mapping[str, Any]:
        if value is None:
            return {}
        if isinstance(value, Mapping):
            return {str(key): bool(raw) for key, raw in value.items()}
        if isinstance(value, (list, tuple, set, frozenset)):
            return {str(key): True for key in value}
        raise ValueError(
            "Exemptions section must be an object mapping flags to booleans"
        )

    @property
    def has_income(self) -> bool:
        return self.income is not None


def format_validation_error(error: ValidationError) -> str:
    """Return a concise human-readable description of validation issues."""

    messages: list[str] = []
    for issue in error.errors():
        location = ".".join(str(part) for part in issue.get("loc", ()))
        message = issue.get("msg", "Invalid value")
        if location:
            messages.append(f"{location}: {message}")
        else:
            messages.append(message)

    details = "; ".join(messages) if messages else str(error)
    return f"Invalid calculation payload: {details}"
